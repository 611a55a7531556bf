from __future__ import annotations

"""Turn raw civics questions into independently trackable paired questions.

A question with several valid answers ("Name one of your state's U.S.
Senators") fans out into one paired question per answer so each answer gets
its own history. Questions that ask for several answers at once ("Name two
Cabinet-level positions") become a single unified question whose correct
answer is a set of indices.
"""

import random
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..app.explain import trace as xtrace
from ..models import PairedQuestion, PairedQuestionId
from .schema import DistractorPool, RawQuestion

DistractorSource = Union[Mapping[int, Sequence[str]], Iterable[DistractorPool]]


def option_budget(expected_answers: int) -> int:
    """Total options shown for a question expecting ``expected_answers`` picks."""
    if expected_answers <= 1:
        return 4
    if expected_answers == 2:
        return 6
    return 8


def distractor_count(expected_answers: int) -> int:
    return option_budget(expected_answers) - max(1, expected_answers)


def _draw(items: Sequence[str], count: int, rng: random.Random) -> List[str]:
    """Draw ``count`` items at random; everything if the pool is smaller."""
    if count <= 0:
        return []
    if len(items) <= count:
        return list(items)
    return rng.sample(list(items), count)


def _shuffled(items: Sequence[str], rng: random.Random) -> List[str]:
    out = list(items)
    rng.shuffle(out)
    return out


def _single_answer_question(
    raw: RawQuestion,
    qid: PairedQuestionId,
    correct: str,
    distractors: Sequence[str],
    rng: random.Random,
) -> PairedQuestion:
    picked = _draw(distractors, distractor_count(1), rng)
    answers = _shuffled([correct, *picked], rng)
    return PairedQuestion(
        id=qid,
        question_number=raw.question_number,
        question=raw.question,
        answers=tuple(answers),
        correct=answers.index(correct),
        correct_answer_text=correct,
        expected_answers=raw.expected_answers,
        theme=raw.theme,
        section=raw.section,
    )


def _unified_question(
    raw: RawQuestion,
    correct: Sequence[str],
    distractors: Sequence[str],
    expected: int,
    rng: random.Random,
) -> PairedQuestion:
    # More valid answers than required (e.g. 22 cabinet posts): show only `expected`.
    chosen = _draw(correct, expected, rng)
    picked = _draw(distractors, distractor_count(expected), rng)
    answers = _shuffled([*chosen, *picked], rng)
    return PairedQuestion(
        id=PairedQuestionId.unified(raw.question_number),
        question_number=raw.question_number,
        question=raw.question,
        answers=tuple(answers),
        correct=frozenset(answers.index(c) for c in chosen),
        correct_answer_text=", ".join(chosen),
        # Fewer valid answers than asked for: only ask for the ones we have.
        expected_answers=len(chosen),
        theme=raw.theme,
        section=raw.section,
    )


def transform_question(
    raw: RawQuestion,
    distractors: Sequence[str],
    user_state: str,
    user_district: Optional[str] = None,
    *,
    rng: random.Random,
) -> List[PairedQuestion]:
    """Build the paired questions for one raw question.

    Returns an empty list when no correct answer applies to the learner
    (e.g. a representative question for a district with no data).
    """
    # Ids number the raw applicable list; a repeated choice keeps its first index.
    numbered: Dict[str, int] = {}
    for i, answer in enumerate(raw.applicable_answers(user_state, user_district)):
        numbered.setdefault(answer, i)
    correct = list(numbered)
    if not correct:
        xtrace("question_dropped", {"question": raw.question_number, "state": user_state, "district": user_district})
        return []

    correct_set = set(correct)
    pool = [d for d in dict.fromkeys(distractors) if d not in correct_set]
    expected = raw.expected_answers or 1

    if expected > 1:
        return [_unified_question(raw, correct, pool, expected, rng)]

    return [
        _single_answer_question(raw, PairedQuestionId.paired(raw.question_number, i), answer, pool, rng)
        for answer, i in numbered.items()
    ]


def _pool_index(pools: DistractorSource) -> Dict[int, Sequence[str]]:
    if isinstance(pools, Mapping):
        return {int(k): list(v) for k, v in pools.items()}
    index: Dict[int, List[str]] = {}
    for pool in pools:
        index.setdefault(pool.question_number, []).extend(pool.distractors)
    return dict(index)


def load_questions(
    raw_questions: Iterable[RawQuestion],
    distractor_pools: DistractorSource,
    user_state: str,
    user_district: Optional[str] = None,
    question_numbers: Optional[Iterable[int]] = None,
    *,
    rng: random.Random,
) -> List[PairedQuestion]:
    """Transform a whole bank, optionally restricted to ``question_numbers``."""
    wanted = set(question_numbers or ())
    pools = _pool_index(distractor_pools)
    out: List[PairedQuestion] = []
    considered = 0
    for raw in raw_questions:
        if wanted and raw.question_number not in wanted:
            continue
        considered += 1
        out.extend(
            transform_question(raw, pools.get(raw.question_number, ()), user_state, user_district, rng=rng)
        )
    xtrace("questions_loaded", {"raw": considered, "paired": len(out), "state": user_state})
    return out


def paired_ids(questions: Iterable[PairedQuestion]) -> List[PairedQuestionId]:
    return [q.id for q in questions]


def find_question(questions: Iterable[PairedQuestion], qid: PairedQuestionId) -> Optional[PairedQuestion]:
    for q in questions:
        if q.id == qid:
            return q
    return None
