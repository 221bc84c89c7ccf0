"""Voiceover CRUD: field edits with no lifecycle side effects."""

import logging
from typing import List, Optional

from voiceover.models.content import DEFAULT_TITLE, Voiceover, VoiceoverUpdate
from voiceover.services.database import CollaboratorRepository, VoiceoverRepository, new_id
from voiceover.services.policy import require_owner_of
from voiceover.utils.errors import NotCollaborator

logger = logging.getLogger(__name__)


class VoiceoverService:
    """Create, read, edit and delete voiceovers."""

    def __init__(
        self,
        voiceovers: VoiceoverRepository,
        collaborators: CollaboratorRepository,
    ) -> None:
        self.voiceovers = voiceovers
        self.collaborators = collaborators

    async def create(self, caller_id: str, title: Optional[str] = None) -> Voiceover:
        """New voiceover in ``drafting`` with empty text and the default voice."""
        voiceover = Voiceover(
            id=new_id("voc"),
            title=title.strip() if title and title.strip() else DEFAULT_TITLE,
            created_by=caller_id,
        )
        return await self.voiceovers.insert(voiceover)

    async def get(self, voiceover_id: str, caller_id: str) -> Voiceover:
        """
        Readable by the owner and by collaborators bound to an account.

        Raises:
            VoiceoverNotFound: If the voiceover does not exist
            NotCollaborator: If the caller has no relationship to it
        """
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        if voiceover.created_by == caller_id:
            return voiceover

        collaborator = await self.collaborators.find_by_voiceover_and_user(voiceover_id, caller_id)
        if collaborator is None:
            raise NotCollaborator(voiceover_id, caller_id)
        return voiceover

    async def list(self, caller_id: str, limit: int = 50, offset: int = 0) -> List[Voiceover]:
        return await self.voiceovers.list(created_by=caller_id, limit=limit, offset=offset)

    async def update(self, voiceover_id: str, caller_id: str, data: VoiceoverUpdate) -> Voiceover:
        """
        Apply owner edits to title, text or voice.

        Raises:
            NotVoiceoverOwner: If the caller is not the owner (nothing is written)
        """
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        require_owner_of(voiceover, caller_id)

        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return voiceover
        return await self.voiceovers.update(voiceover_id, changes)

    async def delete(self, voiceover_id: str, caller_id: str) -> None:
        """
        Delete a voiceover and its collaborator rows.

        Raises:
            NotVoiceoverOwner: If the caller is not the owner (nothing is written)
        """
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        require_owner_of(voiceover, caller_id)

        await self.collaborators.remove_by_voiceover(voiceover_id)
        await self.voiceovers.delete(voiceover_id)
        logger.info(f"Deleted voiceover {voiceover_id}")
