from __future__ import annotations

"""Core value types: paired question ids, questions, history, settings, sessions.

Everything here is immutable. Session transitions build new objects via
``dataclasses.replace`` or by constructing the next state class; nothing is
updated in place. ``to_json``/``from_json`` give the storage layer a plain
dict form without teaching the core about any storage medium.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple, Type, Union

UNIFIED_SUFFIX = "unified"


@dataclass(frozen=True)
class PairedQuestionId:
    """Composite id: question number plus answer variant.

    ``variant`` is the index of the correct answer a fan-out question was
    paired with, or ``None`` for the single unified multi-answer question.
    """

    question_number: int
    variant: Optional[int] = None

    @property
    def is_unified(self) -> bool:
        return self.variant is None

    def __str__(self) -> str:
        suffix = UNIFIED_SUFFIX if self.variant is None else str(self.variant)
        return f"{self.question_number}-{suffix}"

    @classmethod
    def unified(cls, question_number: int) -> "PairedQuestionId":
        return cls(question_number=int(question_number), variant=None)

    @classmethod
    def paired(cls, question_number: int, index: int) -> "PairedQuestionId":
        if index < 0:
            raise ValueError(f"answer index must be >= 0, got {index}")
        return cls(question_number=int(question_number), variant=int(index))

    @classmethod
    def parse(cls, text: str) -> "PairedQuestionId":
        raw = str(text).strip()
        number, sep, suffix = raw.rpartition("-")
        if not sep or not number or not suffix:
            raise ValueError(f"Malformed paired question id: {text!r}")
        try:
            question_number = int(number)
        except ValueError:
            raise ValueError(f"Malformed paired question id: {text!r}") from None
        if suffix == UNIFIED_SUFFIX:
            return cls.unified(question_number)
        if not suffix.isdigit():
            raise ValueError(f"Malformed paired question id: {text!r}")
        return cls.paired(question_number, int(suffix))


Correct = Union[int, FrozenSet[int]]


@dataclass(frozen=True)
class PairedQuestion:
    id: PairedQuestionId
    question_number: int
    question: str
    answers: Tuple[str, ...]
    correct: Correct
    correct_answer_text: str
    expected_answers: Optional[int] = None
    theme: str = ""
    section: str = ""

    @property
    def is_multi_answer(self) -> bool:
        return not isinstance(self.correct, int)

    def to_json(self) -> Dict[str, Any]:
        correct: Any = self.correct if isinstance(self.correct, int) else sorted(self.correct)
        data: Dict[str, Any] = {
            "id": str(self.id),
            "question_number": self.question_number,
            "question": self.question,
            "answers": list(self.answers),
            "correct": correct,
            "correct_answer_text": self.correct_answer_text,
            "theme": self.theme,
            "section": self.section,
        }
        if self.expected_answers is not None:
            data["expected_answers"] = self.expected_answers
        return data

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "PairedQuestion":
        raw_correct = data["correct"]
        correct: Correct
        if isinstance(raw_correct, (list, tuple, set, frozenset)):
            correct = frozenset(int(i) for i in raw_correct)
        else:
            correct = int(raw_correct)
        expected = data.get("expected_answers")
        return cls(
            id=PairedQuestionId.parse(data["id"]),
            question_number=int(data["question_number"]),
            question=str(data["question"]),
            answers=tuple(str(a) for a in data.get("answers", [])),
            correct=correct,
            correct_answer_text=str(data.get("correct_answer_text", "")),
            expected_answers=int(expected) if expected is not None else None,
            theme=str(data.get("theme", "")),
            section=str(data.get("section", "")),
        )


@dataclass(frozen=True)
class HistoryEntry:
    ts: datetime
    correct: bool

    def to_json(self) -> Dict[str, Any]:
        return {"ts": self.ts.isoformat(), "correct": self.correct}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "HistoryEntry":
        ts = data["ts"]
        if not isinstance(ts, datetime):
            ts = datetime.fromisoformat(str(ts))
        return cls(ts=ts, correct=bool(data["correct"]))


AnswerHistory = Tuple[HistoryEntry, ...]
HistoryMap = Mapping[PairedQuestionId, AnswerHistory]


def history_to_json(history: HistoryMap) -> Dict[str, Any]:
    return {str(qid): [entry.to_json() for entry in entries] for qid, entries in history.items()}


def history_from_json(data: Dict[str, Any]) -> Dict[PairedQuestionId, AnswerHistory]:
    return {
        PairedQuestionId.parse(key): tuple(HistoryEntry.from_json(e) for e in entries)
        for key, entries in (data or {}).items()
    }


@dataclass(frozen=True)
class GameSettings:
    max_questions: int = 20
    win_threshold: int = 12
    user_state: str = "CA"
    user_district: Optional[str] = None
    question_numbers: Optional[Tuple[int, ...]] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "max_questions": self.max_questions,
            "win_threshold": self.win_threshold,
            "user_state": self.user_state,
            "user_district": self.user_district,
            "question_numbers": list(self.question_numbers) if self.question_numbers is not None else None,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GameSettings":
        numbers = data.get("question_numbers")
        district = data.get("user_district")
        return cls(
            max_questions=int(data.get("max_questions", 20)),
            win_threshold=int(data.get("win_threshold", 12)),
            user_state=str(data.get("user_state", "CA")),
            user_district=str(district) if district is not None else None,
            question_numbers=tuple(int(n) for n in numbers) if numbers else None,
        )


@dataclass(frozen=True)
class SubmittedAnswer:
    """A learner's selection for one served question.

    ``answered_at`` is optional; when omitted the transition reads the clock
    exactly once.
    """

    question_id: PairedQuestionId
    selected: Union[int, Tuple[int, ...]]
    answered_at: Optional[datetime] = None


# ---- Session states ----


@dataclass(frozen=True)
class _SessionBase:
    id: str
    questions: Tuple[PairedQuestionId, ...]
    current_index: int
    correct_answers: int
    incorrect_answers: int
    total_answered: int
    started_at: datetime
    history: HistoryMap = field(compare=False)
    settings: GameSettings

    tag: ClassVar[str] = ""

    @property
    def is_terminal(self) -> bool:
        return self.tag != InProgress.tag

    def _base_json(self) -> Dict[str, Any]:
        return {
            "_tag": self.tag,
            "id": self.id,
            "questions": [str(q) for q in self.questions],
            "current_index": self.current_index,
            "correct_answers": self.correct_answers,
            "incorrect_answers": self.incorrect_answers,
            "total_answered": self.total_answered,
            "started_at": self.started_at.isoformat(),
            "history": history_to_json(self.history),
            "settings": self.settings.to_json(),
        }

    def to_json(self) -> Dict[str, Any]:
        return self._base_json()


@dataclass(frozen=True)
class InProgress(_SessionBase):
    tag: ClassVar[str] = "InProgress"


@dataclass(frozen=True)
class _TerminalSession(_SessionBase):
    completed_at: datetime

    def to_json(self) -> Dict[str, Any]:
        data = self._base_json()
        data["completed_at"] = self.completed_at.isoformat()
        return data


@dataclass(frozen=True)
class EarlyWin(_TerminalSession):
    tag: ClassVar[str] = "EarlyWin"


@dataclass(frozen=True)
class EarlyFail(_TerminalSession):
    tag: ClassVar[str] = "EarlyFail"


@dataclass(frozen=True)
class CompletedNormal(_TerminalSession):
    tag: ClassVar[str] = "CompletedNormal"


GameSession = Union[InProgress, EarlyWin, EarlyFail, CompletedNormal]
TerminalSession = Union[EarlyWin, EarlyFail, CompletedNormal]

SESSION_TYPES: Dict[str, Type[_SessionBase]] = {
    cls.tag: cls for cls in (InProgress, EarlyWin, EarlyFail, CompletedNormal)
}


def session_from_json(data: Dict[str, Any]) -> GameSession:
    tag = data.get("_tag", InProgress.tag)
    try:
        cls = SESSION_TYPES[tag]
    except KeyError:
        raise ValueError(f"Unknown session tag: {tag!r}") from None
    kwargs: Dict[str, Any] = dict(
        id=str(data["id"]),
        questions=tuple(PairedQuestionId.parse(q) for q in data.get("questions", [])),
        current_index=int(data.get("current_index", 0)),
        correct_answers=int(data.get("correct_answers", 0)),
        incorrect_answers=int(data.get("incorrect_answers", 0)),
        total_answered=int(data.get("total_answered", 0)),
        started_at=datetime.fromisoformat(str(data["started_at"])),
        history=history_from_json(data.get("history", {})),
        settings=GameSettings.from_json(data.get("settings", {})),
    )
    if cls is not InProgress:
        kwargs["completed_at"] = datetime.fromisoformat(str(data["completed_at"]))
    return cls(**kwargs)  # type: ignore[return-value]


# ---- Outputs ----


@dataclass(frozen=True)
class GameResult:
    session_id: str
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    percentage: int
    is_early_win: bool
    is_early_fail: bool
    is_completed_normal: bool
    completed_at: datetime

    def to_json(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "incorrect_answers": self.incorrect_answers,
            "percentage": self.percentage,
            "is_early_win": self.is_early_win,
            "is_early_fail": self.is_early_fail,
            "is_completed_normal": self.is_completed_normal,
            "completed_at": self.completed_at.isoformat(),
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GameResult":
        completed_at = data["completed_at"]
        if not isinstance(completed_at, datetime):
            completed_at = datetime.fromisoformat(str(completed_at))
        return cls(
            session_id=str(data["session_id"]),
            total_questions=int(data.get("total_questions", 0)),
            correct_answers=int(data.get("correct_answers", 0)),
            incorrect_answers=int(data.get("incorrect_answers", 0)),
            percentage=int(data.get("percentage", 0)),
            is_early_win=bool(data.get("is_early_win", False)),
            is_early_fail=bool(data.get("is_early_fail", False)),
            is_completed_normal=bool(data.get("is_completed_normal", False)),
            completed_at=completed_at,
        )


@dataclass(frozen=True)
class QuestionDisplay:
    id: PairedQuestionId
    text: str
    answers: Tuple[str, ...]
    correct: Correct
    position: int
    total: int
    expected_answers: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        correct: Any = self.correct if isinstance(self.correct, int) else sorted(self.correct)
        return {
            "id": str(self.id),
            "text": self.text,
            "answers": list(self.answers),
            "correct": correct,
            "position": self.position,
            "total": self.total,
            "expected_answers": self.expected_answers,
        }
