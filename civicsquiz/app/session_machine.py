from __future__ import annotations

"""Game session lifecycle.

InProgress is the only non-terminal state. Each answer produces a brand new
session object; once EarlyFail, EarlyWin or CompletedNormal is reached the
session accepts no further answers.
"""

import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import (
    EmptyQuestionPoolError,
    InvalidSettingsError,
    SessionCompletedError,
    UnknownQuestionError,
)
from ..models import (
    CompletedNormal,
    EarlyFail,
    EarlyWin,
    GameSession,
    GameSettings,
    HistoryMap,
    InProgress,
    PairedQuestion,
    PairedQuestionId,
    SubmittedAnswer,
)
from ..policy.history import record_answer
from ..policy.selector import DEFAULT_WEIGHTS, SelectionWeights, select_question
from ..util.randomness import Clock, session_id_from
from .explain import trace as xtrace
from .validator import validate_selection

# Nine misses fail the session no matter how many questions remain.
EARLY_FAIL_THRESHOLD = 9


@dataclass(frozen=True)
class SessionStart:
    """A freshly created session plus the questions it will serve, in order."""

    session: InProgress
    questions: Tuple[PairedQuestion, ...]
    requested: int

    @property
    def served(self) -> int:
        return len(self.questions)

    @property
    def short_by(self) -> int:
        return max(0, self.requested - self.served)

    @property
    def is_short(self) -> bool:
        return self.short_by > 0

    def question(self, qid: PairedQuestionId) -> Optional[PairedQuestion]:
        for q in self.questions:
            if q.id == qid:
                return q
        return None


def validate_settings(settings: GameSettings) -> None:
    if settings.max_questions < 1:
        raise InvalidSettingsError(f"max_questions must be >= 1, got {settings.max_questions}")
    if settings.win_threshold < 1:
        raise InvalidSettingsError(f"win_threshold must be >= 1, got {settings.win_threshold}")
    if settings.win_threshold > settings.max_questions:
        raise InvalidSettingsError(
            f"win_threshold ({settings.win_threshold}) cannot exceed max_questions ({settings.max_questions})"
        )
    if not settings.user_state:
        raise InvalidSettingsError("user_state is required")


def _select_adaptive(
    pool: Sequence[PairedQuestion],
    count: int,
    history: HistoryMap,
    rng: random.Random,
    weights: SelectionWeights,
) -> List[PairedQuestion]:
    by_id = {q.id: q for q in pool}
    remaining = [q.id for q in pool]
    picked: List[PairedQuestion] = []
    while remaining and len(picked) < count:
        qid = select_question(remaining, history, rng=rng, weights=weights)
        if qid is None:
            qid = remaining[0]
        remaining.remove(qid)
        picked.append(by_id[qid])
    return picked


def _select_uniform(pool: Sequence[PairedQuestion], count: int, rng: random.Random) -> List[PairedQuestion]:
    shuffled = list(pool)
    rng.shuffle(shuffled)
    return shuffled[:count]


def create_session(
    pool: Iterable[PairedQuestion],
    settings: GameSettings,
    prior_history: Optional[HistoryMap] = None,
    *,
    rng: random.Random,
    clock: Clock,
    weights: SelectionWeights = DEFAULT_WEIGHTS,
    adaptive: bool = True,
) -> SessionStart:
    """Pick the questions for a new session and return it InProgress.

    With prior history the questions are drawn one at a time by weight,
    otherwise the pool is shuffled and the first ``max_questions`` taken.
    """
    validate_settings(settings)
    questions = list(pool)
    if not questions:
        raise EmptyQuestionPoolError(
            f"No questions resolve for state={settings.user_state!r} district={settings.user_district!r}"
        )
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise ValueError("Question pool contains duplicate paired question ids")

    count = min(settings.max_questions, len(questions))
    history = dict(prior_history or {})
    weighted = adaptive and any(history.values())
    if weighted:
        served = _select_adaptive(questions, count, history, rng, weights)
    else:
        served = _select_uniform(questions, count, rng)

    session = InProgress(
        id=session_id_from(rng),
        questions=tuple(q.id for q in served),
        current_index=0,
        correct_answers=0,
        incorrect_answers=0,
        total_answered=0,
        started_at=clock(),
        history=history,
        settings=settings,
    )
    start = SessionStart(session=session, questions=tuple(served), requested=settings.max_questions)
    xtrace(
        "session_created",
        {"id": session.id, "served": start.served, "requested": start.requested, "adaptive": weighted},
    )
    return start


def session_length(session: GameSession) -> int:
    """Answers needed to finish normally; capped at the number served."""
    return min(session.settings.max_questions, len(session.questions))


def submit_answer(
    session: GameSession,
    answer: SubmittedAnswer,
    question: PairedQuestion,
    *,
    clock: Optional[Clock] = None,
) -> GameSession:
    """Apply one answer and return the next session state.

    The timestamp is ``answer.answered_at`` when given, else one read of
    ``clock``; the same value is written to history and, on a terminal
    transition, to ``completed_at``.
    """
    if session.is_terminal:
        raise SessionCompletedError(f"Session {session.id} already ended ({session.tag})")
    if answer.question_id != question.id or question.id not in session.questions:
        raise UnknownQuestionError(f"Question {answer.question_id} was not served in session {session.id}")

    if answer.answered_at is not None:
        ts: datetime = answer.answered_at
    elif clock is not None:
        ts = clock()
    else:
        raise ValueError("submit_answer needs answer.answered_at or a clock")

    is_correct = validate_selection(answer.selected, question.correct, question.expected_answers)
    correct = session.correct_answers + (1 if is_correct else 0)
    incorrect = session.incorrect_answers + (0 if is_correct else 1)
    total = session.total_answered + 1

    fields: Dict[str, Any] = dict(
        id=session.id,
        questions=session.questions,
        current_index=session.current_index + 1,
        correct_answers=correct,
        incorrect_answers=incorrect,
        total_answered=total,
        started_at=session.started_at,
        history=record_answer(session.history, question.id, is_correct, ts),
        settings=session.settings,
    )
    xtrace("answer_graded", {"session": session.id, "question": str(question.id), "correct": is_correct})

    nxt: GameSession
    if incorrect >= EARLY_FAIL_THRESHOLD:
        nxt = EarlyFail(**fields, completed_at=ts)
    elif correct >= session.settings.win_threshold:
        nxt = EarlyWin(**fields, completed_at=ts)
    elif total >= session_length(session):
        nxt = CompletedNormal(**fields, completed_at=ts)
    else:
        nxt = InProgress(**fields)

    if nxt.is_terminal:
        xtrace("session_completed", {"session": session.id, "tag": nxt.tag, "correct": correct, "total": total})
    return nxt


# ---- Guards ----


def is_in_progress(session: GameSession) -> bool:
    return isinstance(session, InProgress)


def is_completed(session: GameSession) -> bool:
    return isinstance(session, (EarlyWin, EarlyFail, CompletedNormal))


def is_early_win(session: GameSession) -> bool:
    return isinstance(session, EarlyWin)


def is_early_fail(session: GameSession) -> bool:
    return isinstance(session, EarlyFail)


def is_completed_normal(session: GameSession) -> bool:
    return isinstance(session, CompletedNormal)


def completed_at_of(session: GameSession) -> Optional[datetime]:
    return getattr(session, "completed_at", None) if is_completed(session) else None


def current_question_id(session: GameSession) -> Optional[PairedQuestionId]:
    if session.is_terminal or session.current_index >= len(session.questions):
        return None
    return session.questions[session.current_index]
