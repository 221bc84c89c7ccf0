"""Voiceover content model and its status state machine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_TITLE = "Untitled Voiceover"
DEFAULT_VOICE = "Charon"


class VoiceoverStatus(str, Enum):
    """Generation state of a voiceover.

    Flow: drafting -> generating_audio -> ready | failed, and back into
    generating_audio for regeneration or retry.
    """

    DRAFTING = "drafting"
    GENERATING_AUDIO = "generating_audio"
    READY = "ready"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    def can_transition_to(self, target: "VoiceoverStatus") -> bool:
        """Whether ``target`` is reachable from this status in the transition table."""
        return target in STATUS_TRANSITIONS[self]

    def can_rollback_to(self, target: "VoiceoverStatus") -> bool:
        """Whether an aborted enqueue may restore ``target`` from this status."""
        return self is VoiceoverStatus.GENERATING_AUDIO and target in ALLOWED_GENERATION_STATUSES


# Statuses a generation request may start from
GENERATION_ENTRY_STATUSES = frozenset(
    {VoiceoverStatus.DRAFTING, VoiceoverStatus.READY, VoiceoverStatus.FAILED}
)

# Statuses the synchronous pipeline accepts; generating_audio is the worker re-entry case
ALLOWED_GENERATION_STATUSES = GENERATION_ENTRY_STATUSES | {VoiceoverStatus.GENERATING_AUDIO}

STATUS_TRANSITIONS: dict[VoiceoverStatus, frozenset[VoiceoverStatus]] = {
    VoiceoverStatus.DRAFTING: frozenset({VoiceoverStatus.GENERATING_AUDIO}),
    VoiceoverStatus.READY: frozenset({VoiceoverStatus.GENERATING_AUDIO}),
    VoiceoverStatus.FAILED: frozenset({VoiceoverStatus.GENERATING_AUDIO}),
    VoiceoverStatus.GENERATING_AUDIO: frozenset(
        {
            VoiceoverStatus.GENERATING_AUDIO,
            VoiceoverStatus.READY,
            VoiceoverStatus.FAILED,
        }
    ),
}


class Voiceover(BaseModel):
    """A piece of text being turned into narrated audio."""

    id: str = Field(min_length=1)
    title: str = Field(default=DEFAULT_TITLE, min_length=1, max_length=255)
    text: str = ""
    voice: str = Field(default=DEFAULT_VOICE, min_length=1, max_length=100)
    voice_name: Optional[str] = Field(default=None, max_length=100)
    audio_url: Optional[str] = None
    duration: Optional[int] = None  # seconds
    status: VoiceoverStatus = VoiceoverStatus.DRAFTING
    error_message: Optional[str] = None
    owner_has_approved: bool = False
    created_by: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("title")
    @classmethod
    def title_not_whitespace(cls, v: str) -> str:
        """Validate that title is not only whitespace."""
        if not v.strip():
            raise ValueError("title cannot be only whitespace")
        return v

    @property
    def has_placeholder_title(self) -> bool:
        return self.title == DEFAULT_TITLE


class VoiceoverUpdate(BaseModel):
    """Plain field edits with no lifecycle side effects."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    text: Optional[str] = None
    voice: Optional[str] = Field(default=None, min_length=1, max_length=100)
    voice_name: Optional[str] = Field(default=None, max_length=100)
