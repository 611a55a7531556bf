"""civicsquiz package initialization.

Re-exports the session core so callers can simply ``import civicsquiz``.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import (  # noqa: E402
    EmptyQuestionPoolError,
    InvalidSettingsError,
    QuizError,
    SessionCompletedError,
    SessionNotCompletedError,
    UnknownQuestionError,
)
from .models import (  # noqa: E402
    CompletedNormal,
    EarlyFail,
    EarlyWin,
    GameResult,
    GameSession,
    GameSettings,
    HistoryEntry,
    InProgress,
    PairedQuestion,
    PairedQuestionId,
    QuestionDisplay,
    SubmittedAnswer,
    TerminalSession,
)
from .app.session_machine import create_session, submit_answer  # noqa: E402
from .app.validator import validate_selection  # noqa: E402
from .policy.selector import select_question  # noqa: E402
from .questions.transformer import load_questions, transform_question  # noqa: E402
from .results.aggregator import display_of, result_of  # noqa: E402

__all__ = [
    "__version__",
    "QuizError",
    "InvalidSettingsError",
    "EmptyQuestionPoolError",
    "SessionCompletedError",
    "SessionNotCompletedError",
    "UnknownQuestionError",
    "PairedQuestionId",
    "PairedQuestion",
    "HistoryEntry",
    "GameSettings",
    "SubmittedAnswer",
    "GameSession",
    "InProgress",
    "EarlyWin",
    "EarlyFail",
    "CompletedNormal",
    "TerminalSession",
    "GameResult",
    "QuestionDisplay",
    "transform_question",
    "load_questions",
    "select_question",
    "create_session",
    "submit_answer",
    "validate_selection",
    "result_of",
    "display_of",
]
