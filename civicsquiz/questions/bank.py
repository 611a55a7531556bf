from __future__ import annotations

"""Question bank loading.

Accepts the combined "question with distractors" list produced by the data
pipeline, or an explicit ``{"questions": [...], "distractors": [...]}``
document. JSON and YAML are both read; the suffix decides.
"""

import json
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import yaml

from ..models import GameSettings, PairedQuestion
from .schema import DistractorPool, RawQuestion
from .transformer import load_questions

SAMPLE_BANK = Path(__file__).resolve().parent.parent / "resources" / "sample_questions.json"


@dataclass(frozen=True)
class QuestionBank:
    questions: Tuple[RawQuestion, ...]
    distractors: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        seen = set()
        for q in self.questions:
            if q.question_number in seen:
                raise ValueError(f"Duplicate question number in bank: {q.question_number}")
            seen.add(q.question_number)

    def __len__(self) -> int:
        return len(self.questions)

    def question_numbers(self) -> List[int]:
        return [q.question_number for q in self.questions]

    def get(self, question_number: int) -> Optional[RawQuestion]:
        for q in self.questions:
            if q.question_number == question_number:
                return q
        return None

    def distractors_for(self, question_number: int) -> Tuple[str, ...]:
        return tuple(self.distractors.get(question_number, ()))

    def paired_questions(self, settings: GameSettings, *, rng: random.Random) -> List[PairedQuestion]:
        """Resolve the learner's eligible pool for ``settings``."""
        return load_questions(
            self.questions,
            self.distractors,
            settings.user_state,
            settings.user_district,
            settings.question_numbers,
            rng=rng,
        )


def bank_from_records(records: Iterable[Dict[str, Any]], pools: Iterable[Dict[str, Any]] = ()) -> QuestionBank:
    questions: List[RawQuestion] = []
    distractors: Dict[int, List[str]] = {}
    for rec in records:
        q = RawQuestion.model_validate(rec)
        questions.append(q)
        inline = rec.get("distractors")
        if inline:
            distractors.setdefault(q.question_number, []).extend(str(d) for d in inline)
    for rec in pools:
        pool = DistractorPool.model_validate(rec)
        distractors.setdefault(pool.question_number, []).extend(pool.distractors)
    return QuestionBank(
        questions=tuple(questions),
        distractors={n: tuple(ds) for n, ds in distractors.items()},
    )


def _read(path: Path) -> Any:
    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() in (".yml", ".yaml"):
            return yaml.safe_load(f)
        return json.load(f)


def load_bank(path: Optional[str | Path] = None) -> QuestionBank:
    """Load a bank file, or the bundled sample bank when ``path`` is None."""
    p = Path(path) if path else SAMPLE_BANK
    data = _read(p)
    if isinstance(data, dict):
        return bank_from_records(data.get("questions", []) or [], data.get("distractors", []) or [])
    if isinstance(data, list):
        return bank_from_records(data)
    raise ValueError(f"Unrecognised question bank layout in {p}")
