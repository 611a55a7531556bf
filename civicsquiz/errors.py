from __future__ import annotations

"""Exceptions raised at the session seams."""


class QuizError(ValueError):
    """Base for caller-facing quiz errors."""


class InvalidSettingsError(QuizError):
    pass


class EmptyQuestionPoolError(QuizError):
    pass


class SessionCompletedError(QuizError):
    """Raised when an answer is submitted to a session that already ended."""


class SessionNotCompletedError(QuizError):
    pass


class UnknownQuestionError(QuizError):
    """Raised when an answer names a question the session never served."""
