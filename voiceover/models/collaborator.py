"""Collaborator models: invited reviewers of a voiceover."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


def normalize_email(email: str) -> str:
    """Canonical form used for every stored and looked-up email."""
    return email.strip().lower()


class Collaborator(BaseModel):
    """An invite to review a voiceover, optionally bound to a user account."""

    id: str = Field(min_length=1)
    voiceover_id: str = Field(min_length=1)
    email: str = Field(min_length=3, max_length=320)
    user_id: Optional[str] = None
    has_approved: bool = False
    approved_at: Optional[datetime] = None
    added_by: str = Field(min_length=1)
    added_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email")
    @classmethod
    def email_normalized(cls, v: str) -> str:
        """Store emails stripped and lower-cased."""
        v = normalize_email(v)
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v

    @property
    def is_pending(self) -> bool:
        """True while no user account has claimed this invite."""
        return self.user_id is None


class CollaboratorWithUser(Collaborator):
    """Collaborator joined with display info from the user directory."""

    user_name: Optional[str] = None
    user_image: Optional[str] = None


class UserInfo(BaseModel):
    """Registered user as seen by the collaborator registry."""

    id: str
    email: str
    name: str = ""
    image: Optional[str] = None
