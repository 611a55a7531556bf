from __future__ import annotations

"""Schema constants and Pydantic models for the persisted quiz state."""

from datetime import datetime, timezone
from typing import List, Optional

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

from ..models import GameResult, GameSettings, PairedQuestionId
from ..questions.schema import STATE_ABBREVIATIONS

# --- Constants ---

HISTORY_DTYPES = {
    "paired_id": "string",
    # timezone-aware UTC timestamps
    "ts": pd.DatetimeTZDtype(tz="UTC"),
    "correct": "boolean",
}

RESULT_DTYPES = {
    "session_id": "string",
    "total_questions": "UInt16",
    "correct_answers": "UInt16",
    "incorrect_answers": "UInt16",
    "percentage": "UInt8",
    "is_early_win": "boolean",
    "is_early_fail": "boolean",
    "is_completed_normal": "boolean",
    "completed_at": pd.DatetimeTZDtype(tz="UTC"),
}


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


# --- Pydantic models ---


class HistoryRow(BaseModel):
    paired_id: str
    ts: datetime
    correct: bool

    @field_validator("paired_id")
    @classmethod
    def _valid_id(cls, v: str) -> str:
        return str(PairedQuestionId.parse(v))

    @field_validator("ts")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class GameResultRow(BaseModel):
    session_id: str = Field(min_length=1)
    total_questions: int = Field(ge=0, le=65535)
    correct_answers: int = Field(ge=0, le=65535)
    incorrect_answers: int = Field(ge=0, le=65535)
    percentage: int = Field(ge=0, le=100)
    is_early_win: bool = False
    is_early_fail: bool = False
    is_completed_normal: bool = False
    completed_at: datetime

    @field_validator("completed_at")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def _counts_add_up(self) -> "GameResultRow":
        if self.correct_answers + self.incorrect_answers != self.total_questions:
            raise ValueError("correct_answers + incorrect_answers must equal total_questions")
        if sum((self.is_early_win, self.is_early_fail, self.is_completed_normal)) > 1:
            raise ValueError("a result has at most one outcome flag")
        return self

    @classmethod
    def from_result(cls, result: GameResult) -> "GameResultRow":
        return cls.model_validate(result.to_json())

    def to_result(self) -> GameResult:
        return GameResult.from_json(self.model_dump())


class SettingsRecord(BaseModel):
    max_questions: int = Field(20, ge=1)
    win_threshold: int = Field(12, ge=1)
    user_state: str = "CA"
    user_district: Optional[str] = None
    question_numbers: Optional[List[int]] = None

    @field_validator("user_state")
    @classmethod
    def _known_state(cls, v: str) -> str:
        s = str(v).strip().upper()
        if s not in STATE_ABBREVIATIONS:
            raise ValueError(f"unknown state abbreviation: {v}")
        return s

    @field_validator("user_district", mode="before")
    @classmethod
    def _district_as_text(cls, v):
        return None if v is None else str(v)

    @classmethod
    def from_settings(cls, settings: GameSettings) -> "SettingsRecord":
        return cls.model_validate(settings.to_json())

    def to_settings(self) -> GameSettings:
        return GameSettings.from_json(self.model_dump())
