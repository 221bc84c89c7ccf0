"""Pydantic data models for Voiceover Studio."""

from voiceover.models.collaborator import (
    Collaborator,
    CollaboratorWithUser,
    UserInfo,
    normalize_email,
)
from voiceover.models.content import (
    DEFAULT_TITLE,
    DEFAULT_VOICE,
    Voiceover,
    VoiceoverStatus,
    VoiceoverUpdate,
)
from voiceover.models.job import GenerateVoiceoverPayload, GenerateVoiceoverResult, Job
from voiceover.models.synthesis import (
    PreprocessResult,
    SpeakerTurn,
    SynthesisResult,
    VoiceConfig,
)

__all__ = [
    "Collaborator",
    "CollaboratorWithUser",
    "UserInfo",
    "normalize_email",
    "DEFAULT_TITLE",
    "DEFAULT_VOICE",
    "Voiceover",
    "VoiceoverStatus",
    "VoiceoverUpdate",
    "GenerateVoiceoverPayload",
    "GenerateVoiceoverResult",
    "Job",
    "PreprocessResult",
    "SpeakerTurn",
    "SynthesisResult",
    "VoiceConfig",
]
