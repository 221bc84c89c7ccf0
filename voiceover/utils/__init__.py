"""Utility modules for Voiceover Studio."""

from voiceover.utils.errors import (
    CannotAddOwner,
    CollaboratorAlreadyExists,
    CollaboratorNotFound,
    DatabaseError,
    ElevenLabsAPIError,
    ExternalServiceError,
    ForbiddenError,
    InvalidGeneration,
    InvalidStatusTransition,
    JobAlreadyOpen,
    JobNotFound,
    JobProcessingError,
    LLMError,
    NotCollaborator,
    NotFoundError,
    NotVoiceoverOwner,
    QueueError,
    StorageError,
    TTSError,
    VoiceoverNotFound,
    VoiceoverStudioError,
)
from voiceover.utils.retry import with_retry

__all__ = [
    "VoiceoverStudioError",
    "DatabaseError",
    "NotFoundError",
    "VoiceoverNotFound",
    "JobNotFound",
    "CollaboratorNotFound",
    "ForbiddenError",
    "NotVoiceoverOwner",
    "NotCollaborator",
    "InvalidGeneration",
    "InvalidStatusTransition",
    "CollaboratorAlreadyExists",
    "CannotAddOwner",
    "ExternalServiceError",
    "TTSError",
    "ElevenLabsAPIError",
    "StorageError",
    "LLMError",
    "QueueError",
    "JobAlreadyOpen",
    "JobProcessingError",
    "with_retry",
]
