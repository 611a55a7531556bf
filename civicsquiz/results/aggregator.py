from __future__ import annotations

"""Final results and question display records."""

import math

from ..errors import SessionNotCompletedError
from ..models import (
    CompletedNormal,
    EarlyFail,
    EarlyWin,
    GameResult,
    GameSession,
    PairedQuestion,
    QuestionDisplay,
)


def percentage_of(correct: int, total: int) -> int:
    """Whole-number percentage, rounding halves up; 0 when nothing was answered."""
    if total <= 0:
        return 0
    return int(math.floor(correct / total * 100 + 0.5))


def result_of(session: GameSession) -> GameResult:
    """Summarise a finished session. Raises for a session still in progress."""
    if not isinstance(session, (EarlyWin, EarlyFail, CompletedNormal)):
        raise SessionNotCompletedError(f"Session {session.id} is still in progress")
    return GameResult(
        session_id=session.id,
        total_questions=session.total_answered,
        correct_answers=session.correct_answers,
        incorrect_answers=session.incorrect_answers,
        percentage=percentage_of(session.correct_answers, session.total_answered),
        is_early_win=isinstance(session, EarlyWin),
        is_early_fail=isinstance(session, EarlyFail),
        is_completed_normal=isinstance(session, CompletedNormal),
        completed_at=session.completed_at,
    )


def display_of(question: PairedQuestion, position: int, total: int) -> QuestionDisplay:
    return QuestionDisplay(
        id=question.id,
        text=question.question,
        answers=question.answers,
        correct=question.correct,
        position=position,
        total=total,
        expected_answers=question.expected_answers,
    )
