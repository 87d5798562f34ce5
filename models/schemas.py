"""Data models for the child-health chat engine"""
from datetime import date
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TurnRole(str, Enum):
    """Speaker of a single dialogue turn"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class DialogueSituation(str, Enum):
    """What the assistant still needs to learn about the child"""
    NEED_NAME = "need_name"
    NEED_AGE = "need_age"
    NEED_GENDER = "need_gender"
    READY = "ready"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Turn(BaseModel):
    """One utterance in a conversation. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    role: TurnRole
    content: str

    def as_message(self) -> Dict[str, str]:
        """Chat-completions message shape"""
        return {"role": self.role.value, "content": self.content}


class ChildProfile(BaseModel):
    """The durable child record owned by the profile store"""
    name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    free_text_notes: Optional[str] = None

    FIELDS: ClassVar[Tuple[str, ...]] = ("name", "date_of_birth", "gender", "free_text_notes")

    @field_validator("name", "free_text_notes", mode="before")
    @classmethod
    def strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def field_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in self.FIELDS}

    def is_empty(self) -> bool:
        return all(value is None for value in self.field_values().values())


class ExtractionCandidate(BaseModel):
    """Best-effort profile facts found in the dialogue; never persisted directly"""
    name: Optional[str] = None
    raw_temporal_text: Optional[str] = None
    explicit_date: Optional[date] = None
    gender: Optional[Gender] = None

    @field_validator("name", "raw_temporal_text", mode="before")
    @classmethod
    def strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def has_any(self) -> bool:
        return any(
            value is not None
            for value in (self.name, self.raw_temporal_text, self.explicit_date, self.gender)
        )


class NormalizedAge(BaseModel):
    """Exact calendar age, always derived from the canonical date of birth"""
    years: int = Field(ge=0)
    months: int = Field(ge=0, le=11)
    days: int = Field(ge=0)
    date_of_birth: date

    def describe(self) -> str:
        # Abbreviated units keep assistant text from being re-read as a new age phrase
        if self.years:
            return f"{self.years} yrs {self.months} mos"
        if self.months:
            return f"{self.months} mos {self.days} d"
        return f"{self.days} d"


class Doctor(BaseModel):
    """A doctor the assistant may recommend"""
    name: str
    specialty: Optional[str] = None
    location: Optional[str] = None


class ChatResult(BaseModel):
    """What one orchestration run returns to the application layer"""
    reply: str
    extracted: Optional[ExtractionCandidate] = None
