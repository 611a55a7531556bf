from __future__ import annotations

"""History-weighted question selection.

Unseen questions weigh the most. Seen questions weigh between the
``incorrect`` and ``correct`` weights according to accuracy over the
recent window, so a question that keeps being missed comes back often and a
mastered one still shows up now and then.
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..app.explain import trace as xtrace
from ..models import HistoryMap, PairedQuestionId
from .history import recent


@dataclass(frozen=True)
class SelectionWeights:
    unanswered: float = 10.0
    incorrect: float = 5.0
    correct: float = 1.0
    window: int = 5


DEFAULT_WEIGHTS = SelectionWeights()

Weighted = List[Tuple[PairedQuestionId, float]]


def question_weight(
    qid: PairedQuestionId,
    history: Optional[HistoryMap],
    weights: SelectionWeights = DEFAULT_WEIGHTS,
) -> float:
    entries = (history or {}).get(qid) or ()
    if not entries:
        return weights.unanswered
    window = recent(entries, weights.window)
    if not window:
        return weights.unanswered
    avg = sum(1 for e in window if e.correct) / len(window)
    return weights.incorrect + (weights.correct - weights.incorrect) * avg


def weigh(
    available: Sequence[PairedQuestionId],
    history: Optional[HistoryMap],
    weights: SelectionWeights = DEFAULT_WEIGHTS,
) -> Weighted:
    return [(qid, question_weight(qid, history, weights)) for qid in available]


def _choose_weighted(rng: random.Random, weighted: Weighted) -> Optional[PairedQuestionId]:
    total = sum(max(0.0, w) for _, w in weighted)
    if total <= 0:
        return None
    r = rng.random() * total
    acc = 0.0
    for qid, w in weighted:
        acc += max(0.0, w)
        if r < acc:
            return qid
    return None


def select_question(
    available: Sequence[PairedQuestionId],
    history: Optional[HistoryMap],
    *,
    rng: random.Random,
    weights: SelectionWeights = DEFAULT_WEIGHTS,
) -> Optional[PairedQuestionId]:
    """Pick one id from ``available``; ``None`` only when it is empty.

    The caller removes the returned id before drawing again. If the weights
    cannot resolve a draw (all zero, or float tail), the first id wins.
    """
    ids = list(available)
    if not ids:
        return None
    weighted = weigh(ids, history, weights)
    chosen = _choose_weighted(rng, weighted)
    if chosen is None:
        chosen = ids[0]
    xtrace("question_selected", {"id": str(chosen), "pool": len(ids)})
    return chosen
