"""Pydantic models for extracted slides, speaker guides and decks."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentKind(str, Enum):
    PDF = "pdf"
    PPTX = "pptx"


class Energy(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: Any) -> Optional["Energy"]:
        """Case-insensitive lookup; None for anything unrecognized."""
        if not isinstance(value, str):
            return None
        key = value.strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        return None


class _WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python; either is accepted on input.
    model_config = ConfigDict(populate_by_name=True)


class SlideText(_WireModel):
    index: int = Field(ge=1)
    raw_text: str = Field(default="", alias="rawText")


class SpeakerReminder(_WireModel):
    timing: str = ""
    energy: str = ""

    @field_validator("timing", mode="before")
    @classmethod
    def _timing_to_str(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("energy", mode="before")
    @classmethod
    def _normalize_energy(cls, v: Any) -> str:
        # Recognized values become canonical; anything else passes through untouched.
        level = Energy.parse(v)
        if level is not None:
            return level.value
        if v is None:
            return ""
        return str(v)

    @property
    def energy_level(self) -> Optional[Energy]:
        return Energy.parse(self.energy)


def _string_list(v: Any, strict: bool = True) -> List[str]:
    # strict: wrong shapes are errors. Otherwise they are dropped.
    if v is None:
        return []
    if isinstance(v, (str, int, float)):
        v = [v]
    if not isinstance(v, (list, tuple)):
        if strict:
            raise ValueError("expected a list of strings")
        return []
    out: List[str] = []
    for item in v:
        if isinstance(item, bool) or item is None:
            continue
        if isinstance(item, (int, float)):
            item = str(item)
        if not isinstance(item, str):
            if strict:
                raise ValueError("expected a list of strings")
            continue
        item = item.strip()
        if item:
            out.append(item)
    return out


class SlideGuide(_WireModel):
    slide_number: int = Field(ge=1, alias="slideNumber")
    title: str
    key_talking_points: List[str] = Field(alias="keyTalkingPoints", min_length=1)
    transition_statement: str = Field(alias="transitionStatement")
    emphasis_topic: str = Field(alias="emphasisTopic")
    keywords: List[str] = Field(default_factory=list)
    stats: List[str] = Field(default_factory=list)
    speaker_reminder: SpeakerReminder = Field(default_factory=SpeakerReminder, alias="speakerReminder")

    @field_validator("slide_number", mode="before")
    @classmethod
    def _reject_bool_number(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("slideNumber must be an integer")
        return v

    @field_validator("key_talking_points", mode="before")
    @classmethod
    def _coerce_points(cls, v: Any) -> List[str]:
        return _string_list(v)

    @field_validator("keywords", "stats", mode="before")
    @classmethod
    def _coerce_optional_lists(cls, v: Any) -> List[str]:
        return _string_list(v, strict=False)

    @field_validator("speaker_reminder", mode="before")
    @classmethod
    def _default_reminder(cls, v: Any) -> Any:
        return {} if v is None else v

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class Deck(_WireModel):
    id: str
    title: str
    slide_count: int = Field(alias="slideCount")
    created_at: datetime = Field(alias="createdAt")
    guides: List[SlideGuide] = Field(default_factory=list)

    @classmethod
    def create(cls, title: str, guides: List[SlideGuide]) -> "Deck":
        return cls(
            id=uuid.uuid4().hex,
            title=title,
            slide_count=len(guides),
            created_at=datetime.now(timezone.utc),
            guides=list(guides),
        )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
