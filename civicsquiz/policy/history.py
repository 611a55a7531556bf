from __future__ import annotations

"""Append-only answer history helpers. Every function returns a new map."""

from datetime import datetime
from typing import Dict, Optional

from ..models import AnswerHistory, HistoryEntry, HistoryMap, PairedQuestionId


def record_answer(
    history: Optional[HistoryMap],
    qid: PairedQuestionId,
    correct: bool,
    ts: datetime,
) -> Dict[PairedQuestionId, AnswerHistory]:
    updated = dict(history or {})
    updated[qid] = (*updated.get(qid, ()), HistoryEntry(ts=ts, correct=bool(correct)))
    return updated


def recent(entries: AnswerHistory, window: int = 5) -> AnswerHistory:
    """Last ``window`` entries, oldest first."""
    if window <= 0:
        return ()
    return tuple(entries[-window:])


def merge(base: Optional[HistoryMap], extra: Optional[HistoryMap]) -> Dict[PairedQuestionId, AnswerHistory]:
    """Combine two maps, ordering each id's entries by timestamp."""
    out: Dict[PairedQuestionId, AnswerHistory] = dict(base or {})
    for qid, entries in (extra or {}).items():
        combined = list(out.get(qid, ())) + list(entries)
        combined.sort(key=lambda e: e.ts)
        out[qid] = tuple(combined)
    return out
