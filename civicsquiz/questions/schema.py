from __future__ import annotations

"""Pydantic models for the raw question bank and distractor pools.

The bank arrives as JSON from the data-provisioning side. Each question's
``answers`` block is tagged by ``_type``: ``text`` carries plain strings,
the other tags carry records keyed by state (and district for House
representatives).
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

STATE_ABBREVIATIONS = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
        "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
        "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
        "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
        "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
        "DC", "AS", "GU", "MP", "PR", "VI",
    }
)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class SenatorChoice(_Record):
    senator: str
    state: str


class RepresentativeChoice(_Record):
    representative: str
    state: str
    district: Optional[str] = None

    @field_validator("district", mode="before")
    @classmethod
    def _district_as_text(cls, v):
        return None if v is None else str(v)


class GovernorChoice(_Record):
    governor: str
    state: str


class CapitalChoice(_Record):
    capital: str
    state: str


class TextAnswers(_Record):
    answer_type: Literal["text"] = Field(alias="_type")
    choices: List[str]

    def applicable(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        return list(self.choices)


class SenatorAnswers(_Record):
    answer_type: Literal["senator"] = Field(alias="_type")
    choices: List[SenatorChoice]

    def applicable(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        return [c.senator for c in self.choices if c.state == user_state]


class RepresentativeAnswers(_Record):
    answer_type: Literal["representative"] = Field(alias="_type")
    choices: List[RepresentativeChoice]

    def applicable(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        return [
            c.representative
            for c in self.choices
            if c.state == user_state and (user_district is None or c.district == str(user_district))
        ]


class GovernorAnswers(_Record):
    answer_type: Literal["governor"] = Field(alias="_type")
    choices: List[GovernorChoice]

    def applicable(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        return [c.governor for c in self.choices if c.state == user_state]


class CapitalAnswers(_Record):
    answer_type: Literal["capital"] = Field(alias="_type")
    choices: List[CapitalChoice]

    def applicable(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        return [c.capital for c in self.choices if c.state == user_state]


AnswerChoices = Union[TextAnswers, SenatorAnswers, RepresentativeAnswers, GovernorAnswers, CapitalAnswers]


class RawQuestion(_Record):
    theme: str = ""
    section: str = ""
    question: str
    question_number: int = Field(alias="questionNumber", ge=1)
    expected_answers: Optional[int] = Field(default=None, alias="expectedAnswers", ge=1)
    answers: AnswerChoices

    @property
    def answer_type(self) -> str:
        return self.answers.answer_type

    def applicable_answers(self, user_state: str, user_district: Optional[str] = None) -> List[str]:
        """Correct answers that apply to a learner in ``user_state``/``user_district``."""
        return self.answers.applicable(user_state, user_district)


class DistractorPool(_Record):
    question_number: int = Field(alias="questionNumber", ge=1)
    distractors: List[str] = Field(default_factory=list)
