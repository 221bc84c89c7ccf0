"""Custom exception classes for Voiceover Studio."""

from typing import Optional


class VoiceoverStudioError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500


class DatabaseError(VoiceoverStudioError):
    """Persistence layer failed."""

    pass


# ==================== Lookup ====================


class NotFoundError(VoiceoverStudioError):
    """Requested entity does not exist."""

    status_code = 404


class VoiceoverNotFound(NotFoundError):
    """No voiceover with the given id."""

    def __init__(self, voiceover_id: str) -> None:
        self.voiceover_id = voiceover_id
        super().__init__(f"Voiceover not found: {voiceover_id}")


class JobNotFound(NotFoundError):
    """No job with the given id."""

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class CollaboratorNotFound(NotFoundError):
    """No collaborator with the given id."""

    def __init__(self, collaborator_id: str) -> None:
        self.collaborator_id = collaborator_id
        super().__init__(f"Collaborator not found: {collaborator_id}")


# ==================== Authorization ====================


class ForbiddenError(VoiceoverStudioError):
    """Caller lacks rights for this action."""

    status_code = 403


class NotVoiceoverOwner(ForbiddenError):
    """Caller is not the owner of the voiceover."""

    def __init__(self, voiceover_id: str, user_id: str) -> None:
        self.voiceover_id = voiceover_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not the owner of voiceover {voiceover_id}")


class NotCollaborator(ForbiddenError):
    """Caller is neither the owner nor a bound collaborator."""

    def __init__(self, voiceover_id: str, user_id: str) -> None:
        self.voiceover_id = voiceover_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is not a collaborator on voiceover {voiceover_id}")


# ==================== Preconditions ====================


class InvalidGeneration(VoiceoverStudioError):
    """Preconditions for audio generation are not met."""

    status_code = 400

    def __init__(self, voiceover_id: str, reason: str) -> None:
        self.voiceover_id = voiceover_id
        self.reason = reason
        super().__init__(reason)


class InvalidStatusTransition(VoiceoverStudioError):
    """A status change is not allowed by the transition table."""

    status_code = 409

    def __init__(self, voiceover_id: str, current: str, target: str) -> None:
        self.voiceover_id = voiceover_id
        self.current = current
        self.target = target
        super().__init__(
            f"Voiceover {voiceover_id} cannot move from '{current}' to '{target}'"
        )


class ConflictError(VoiceoverStudioError):
    """Write conflicts with existing state."""

    status_code = 409


class CollaboratorAlreadyExists(ConflictError):
    """Email was already invited to this voiceover."""

    def __init__(self, voiceover_id: str, email: str) -> None:
        self.voiceover_id = voiceover_id
        self.email = email
        super().__init__(f"{email} is already a collaborator on voiceover {voiceover_id}")


class CannotAddOwner(VoiceoverStudioError):
    """Owner tried to invite themselves."""

    status_code = 400

    def __init__(self, voiceover_id: str, email: str) -> None:
        self.voiceover_id = voiceover_id
        self.email = email
        super().__init__(f"Cannot add the owner ({email}) as a collaborator")


# ==================== External services ====================


class ExternalServiceError(VoiceoverStudioError):
    """An external collaborator (TTS, storage, LLM) failed."""

    status_code = 502


class TTSError(ExternalServiceError):
    """Text-to-speech synthesis failed."""

    pass


class ElevenLabsAPIError(TTSError):
    """ElevenLabs API returned an error."""

    def __init__(self, status_code: int, message: str) -> None:
        self.api_status_code = status_code
        super().__init__(f"ElevenLabs error {status_code}: {message}")


class StorageError(ExternalServiceError):
    """Object storage upload or URL lookup failed."""

    pass


class LLMError(ExternalServiceError):
    """Language model call failed or returned unusable output."""

    pass


# ==================== Queue ====================


class QueueError(VoiceoverStudioError):
    """Job queue is unreachable or rejected the write."""

    status_code = 503


class JobAlreadyOpen(ConflictError):
    """A pending or processing job already exists for this voiceover."""

    def __init__(self, voiceover_id: str, job_id: Optional[str] = None) -> None:
        self.voiceover_id = voiceover_id
        self.job_id = job_id
        super().__init__(f"Voiceover {voiceover_id} already has an open generation job")


class JobProcessingError(VoiceoverStudioError):
    """A worker failed to process a job."""

    def __init__(self, job_id: str, message: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job {job_id} failed: {message}")
