"""Approval tracking for voiceovers: owner flag plus per-collaborator flags."""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, computed_field

from voiceover.services.database import CollaboratorRepository, VoiceoverRepository
from voiceover.utils.errors import NotCollaborator

logger = logging.getLogger(__name__)


class ApprovalResult(BaseModel):
    """Outcome of an approve/revoke call."""

    voiceover_id: str
    user_id: str
    is_owner: bool
    approved: bool


class CollaboratorApproval(BaseModel):
    collaborator_id: str
    email: str
    user_id: Optional[str] = None
    has_approved: bool = False
    approved_at: Optional[datetime] = None


class ApprovalStatus(BaseModel):
    """Snapshot of every approval flag on a voiceover.

    ``fully_approved`` is computed from the flags, never stored.
    """

    voiceover_id: str
    owner_has_approved: bool
    collaborators: List[CollaboratorApproval]

    @computed_field
    @property
    def fully_approved(self) -> bool:
        return self.owner_has_approved and all(c.has_approved for c in self.collaborators)


class ApprovalTracker:
    """Sets, revokes and invalidates approvals.

    Approvals are per user: each collaborator is tracked independently and
    there is no quorum logic here.
    """

    def __init__(
        self,
        voiceovers: VoiceoverRepository,
        collaborators: CollaboratorRepository,
    ) -> None:
        self.voiceovers = voiceovers
        self.collaborators = collaborators

    async def approve(self, voiceover_id: str, user_id: str) -> ApprovalResult:
        """
        Record ``user_id``'s approval. Idempotent.

        Raises:
            VoiceoverNotFound: If the voiceover does not exist
            NotCollaborator: If the user is neither owner nor a bound collaborator
        """
        return await self._set(voiceover_id, user_id, approved=True)

    async def revoke(self, voiceover_id: str, user_id: str) -> ApprovalResult:
        """Withdraw ``user_id``'s approval. Idempotent."""
        return await self._set(voiceover_id, user_id, approved=False)

    async def clear_all(self, voiceover_id: str) -> int:
        """
        Invalidate the owner's and every collaborator's approval.

        Only the generation orchestrator calls this, in the same step that
        moves the voiceover into ``generating_audio``.

        Returns:
            Number of collaborator rows reset
        """
        await self.voiceovers.set_owner_approval(voiceover_id, False)
        cleared = await self.collaborators.clear_all_approvals(voiceover_id)
        logger.info(f"Cleared approvals on voiceover {voiceover_id} ({cleared} collaborators)")
        return cleared

    async def get_status(self, voiceover_id: str) -> ApprovalStatus:
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        rows = await self.collaborators.find_by_voiceover(voiceover_id)
        return ApprovalStatus(
            voiceover_id=voiceover_id,
            owner_has_approved=voiceover.owner_has_approved,
            collaborators=[
                CollaboratorApproval(
                    collaborator_id=row.id,
                    email=row.email,
                    user_id=row.user_id,
                    has_approved=row.has_approved,
                    approved_at=row.approved_at,
                )
                for row in rows
            ],
        )

    async def _set(self, voiceover_id: str, user_id: str, approved: bool) -> ApprovalResult:
        voiceover = await self.voiceovers.find_by_id(voiceover_id)

        if voiceover.created_by == user_id:
            if voiceover.owner_has_approved != approved:
                await self.voiceovers.set_owner_approval(voiceover_id, approved)
            is_owner = True
        else:
            # Pending invites have no user_id, so they never match here
            collaborator = await self.collaborators.find_by_voiceover_and_user(voiceover_id, user_id)
            if collaborator is None:
                raise NotCollaborator(voiceover_id, user_id)
            if collaborator.has_approved != approved:
                await self.collaborators.set_approval(voiceover_id, user_id, approved)
            is_owner = False

        action = "approved" if approved else "revoked approval of"
        logger.info(f"User {user_id} {action} voiceover {voiceover_id}")
        return ApprovalResult(
            voiceover_id=voiceover_id, user_id=user_id, is_owner=is_owner, approved=approved
        )
