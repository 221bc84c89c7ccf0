"""Generation job models."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

JobType = Literal["generate-voiceover"]
JobState = Literal["pending", "processing", "completed", "failed"]

OPEN_JOB_STATUSES: tuple[str, ...] = ("pending", "processing")


class GenerateVoiceoverPayload(BaseModel):
    """What a worker needs to re-enter the synchronous generation path."""

    voiceover_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class GenerateVoiceoverResult(BaseModel):
    """Outcome stored on a completed job."""

    voiceover_id: str
    audio_url: str
    duration: int


class Job(BaseModel):
    """One queued generation attempt."""

    id: str = Field(min_length=1)
    type: JobType = "generate-voiceover"
    status: JobState = "pending"
    payload: GenerateVoiceoverPayload
    result: Optional[GenerateVoiceoverResult] = None
    error: Optional[str] = None
    created_by: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_JOB_STATUSES
