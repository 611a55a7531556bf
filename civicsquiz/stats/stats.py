from __future__ import annotations

"""Practice statistics over answer history, as pandas tables."""

from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..models import AnswerHistory, GameResult, HistoryMap, PairedQuestion
from ..policy.selector import DEFAULT_WEIGHTS, SelectionWeights, question_weight

MASTERY_STREAK = 3
NEEDS_PRACTICE_ACCURACY = 0.6

FILTERS = ("all", "mastered", "needs_practice", "never_asked")
SORT_FIELDS = {
    "question_number": "question_number",
    "times_asked": "times_asked",
    "accuracy": "accuracy",
    "probability": "selection_probability",
}

DTYPES = {
    "paired_id": "string",
    "question_number": "int64",
    "question": "string",
    "correct_answer_text": "string",
    "times_asked": "int64",
    "times_correct": "int64",
    "times_incorrect": "int64",
    "accuracy": "float64",
    "weight": "float64",
    "selection_probability": "float64",
    "mastered": "bool",
}
COLUMNS = list(DTYPES.keys()) + ["last_asked"]


def is_mastered(entries: AnswerHistory) -> bool:
    """Mastered means the last three answers were all correct."""
    if len(entries) < MASTERY_STREAK:
        return False
    return all(e.correct for e in entries[-MASTERY_STREAK:])


def _accuracy(entries: AnswerHistory) -> float:
    if not entries:
        return 0.0
    return sum(1 for e in entries if e.correct) / len(entries)


def question_stats(
    questions: Iterable[PairedQuestion],
    history: Optional[HistoryMap],
    weights: SelectionWeights = DEFAULT_WEIGHTS,
) -> pd.DataFrame:
    """One row per paired question with counts, accuracy and selection odds."""
    history = history or {}
    qs = list(questions)
    qweights = np.array([question_weight(q.id, history, weights) for q in qs], dtype="float64")
    total_weight = float(qweights.sum())
    probs = qweights / total_weight * 100.0 if total_weight > 0 else np.zeros_like(qweights)

    rows: List[Dict[str, Any]] = []
    for q, w, prob in zip(qs, qweights, probs):
        entries = history.get(q.id, ())
        asked = len(entries)
        corr = sum(1 for e in entries if e.correct)
        rows.append(
            {
                "paired_id": str(q.id),
                "question_number": q.question_number,
                "question": q.question,
                "correct_answer_text": q.correct_answer_text,
                "times_asked": asked,
                "times_correct": corr,
                "times_incorrect": asked - corr,
                "accuracy": _accuracy(entries),
                "weight": float(w),
                "selection_probability": float(prob),
                "mastered": is_mastered(entries),
                "last_asked": entries[-1].ts if entries else None,
            }
        )
    df = pd.DataFrame(rows, columns=COLUMNS)
    return df.astype(DTYPES)


def filter_stats(df: pd.DataFrame, which: str = "all") -> pd.DataFrame:
    if which not in FILTERS:
        raise ValueError(f"Unknown filter: {which}")
    if which == "mastered":
        out = df[df["mastered"]]
    elif which == "needs_practice":
        out = df[(df["times_asked"] > 0) & (df["accuracy"] < NEEDS_PRACTICE_ACCURACY) & ~df["mastered"]]
    elif which == "never_asked":
        out = df[df["times_asked"] == 0]
    else:
        out = df
    return out.reset_index(drop=True)


def sort_stats(df: pd.DataFrame, field: str = "question_number", ascending: bool = True) -> pd.DataFrame:
    if field not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field: {field}")
    return df.sort_values(SORT_FIELDS[field], ascending=ascending, kind="stable").reset_index(drop=True)


def summary_stats(questions: Iterable[PairedQuestion], history: Optional[HistoryMap]) -> Dict[str, int]:
    df = question_stats(questions, history)
    return {
        "total_questions": int(len(df)),
        "questions_attempted": int((df["times_asked"] > 0).sum()),
        "questions_mastered": int(df["mastered"].sum()),
        "questions_needing_practice": int(len(filter_stats(df, "needs_practice"))),
    }


def overall_stats(history: Optional[HistoryMap]) -> Dict[str, Any]:
    """Totals across every paired question that has been answered."""
    entries = [e for hist in (history or {}).values() for e in hist]
    total = len(entries)
    correct = sum(1 for e in entries if e.correct)
    return {
        "questions_attempted": sum(1 for hist in (history or {}).values() if hist),
        "total_answered": total,
        "correct_answers": correct,
        "incorrect_answers": total - correct,
        "accuracy": correct / total if total else 0.0,
    }


def results_trend(results: Sequence[GameResult], span: int = 5) -> pd.DataFrame:
    """Finished games oldest first, with an EWMA of the score over game order."""
    df = pd.DataFrame(
        [
            {
                "completed_at": r.completed_at,
                "percentage": r.percentage,
                "outcome": "early_win" if r.is_early_win else ("early_fail" if r.is_early_fail else "completed"),
            }
            for r in results
        ],
        columns=["completed_at", "percentage", "outcome"],
    )
    df = df.sort_values("completed_at", kind="stable").reset_index(drop=True)
    df["game_idx"] = np.arange(1, len(df) + 1)
    df["percentage_smooth"] = df["percentage"].astype("float64").ewm(span=max(1, span)).mean().astype("float32")
    return df


def combined_summary(questions: Iterable[PairedQuestion], history: Optional[HistoryMap]) -> Dict[str, Any]:
    """Answer totals from the whole history, question counts scoped to ``questions``."""
    return {**overall_stats(history), **summary_stats(questions, history)}


def format_summary(summary: Dict[str, Any]) -> str:
    lines = []
    if "total_questions" in summary:
        lines.append(f"Questions available: {summary['total_questions']}")
    if "questions_attempted" in summary:
        lines.append(f"Questions attempted: {summary['questions_attempted']}")
    if "total_answered" in summary:
        lines.append(f"Total answers: {summary['total_answered']}")
        lines.append(f"Correct answers: {summary.get('correct_answers', 0)}")
        lines.append(f"Accuracy: {float(summary.get('accuracy', 0.0)) * 100:.1f}%")
    if "questions_mastered" in summary:
        lines.append(f"Mastered: {summary['questions_mastered']}")
    if "questions_needing_practice" in summary:
        lines.append(f"Needs practice: {summary['questions_needing_practice']}")
    return "\n".join(lines)
