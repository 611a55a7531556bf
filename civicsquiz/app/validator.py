from __future__ import annotations

"""Answer validation for single and multi-answer questions."""

from typing import Any, FrozenSet, Optional


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _as_indices(value: Any) -> Optional[FrozenSet[int]]:
    if _is_index(value):
        return frozenset({value})
    if isinstance(value, (str, bytes)):
        return None
    try:
        items = list(value)
    except TypeError:
        return None
    if not all(_is_index(i) for i in items):
        return None
    return frozenset(items)


def validate_selection(selected: Any, correct: Any, expected_answers: Optional[int] = None) -> bool:
    """True when ``selected`` answers a question whose answer is ``correct``.

    Multi-answer questions only ask for ``expected_answers`` picks, which may
    be fewer than the full correct set: {0, 2} against {0, 2, 5} with two
    expected is right, {0, 2, 5} is not. Malformed input is simply wrong.
    """
    if _is_index(selected) and _is_index(correct):
        return selected == correct

    chosen = _as_indices(selected)
    truth = _as_indices(correct)
    if chosen is None or truth is None or not chosen:
        return False
    if expected_answers is not None and len(chosen) != expected_answers:
        return False
    return chosen <= truth
