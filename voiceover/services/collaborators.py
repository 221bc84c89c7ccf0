"""Collaborator registry: invites, identity claims and removal."""

import logging
from typing import List

from voiceover.models.collaborator import Collaborator, CollaboratorWithUser, normalize_email
from voiceover.services.database import (
    CollaboratorRepository,
    UserDirectory,
    VoiceoverRepository,
)
from voiceover.services.policy import require_owner_of
from voiceover.utils.errors import CannotAddOwner, CollaboratorAlreadyExists

logger = logging.getLogger(__name__)


class CollaboratorRegistry:
    """
    Tracks who has been invited to review a voiceover.

    An invite is keyed by email. When the email belongs to a registered user
    the row is bound to that user immediately; otherwise it stays pending
    until ``claim_pending_invites`` runs for that email.
    """

    def __init__(
        self,
        voiceovers: VoiceoverRepository,
        collaborators: CollaboratorRepository,
        users: UserDirectory,
    ) -> None:
        self.voiceovers = voiceovers
        self.collaborators = collaborators
        self.users = users

    async def add(self, voiceover_id: str, email: str, caller_id: str) -> CollaboratorWithUser:
        """
        Invite ``email`` to review a voiceover.

        Args:
            voiceover_id: Voiceover to share
            email: Invitee email (normalized before lookup and storage)
            caller_id: Must be the voiceover owner

        Returns:
            The new collaborator, with user info when the email is registered

        Raises:
            VoiceoverNotFound: If the voiceover does not exist
            NotVoiceoverOwner: If the caller is not the owner
            CannotAddOwner: If the email belongs to the owner
            CollaboratorAlreadyExists: If the email was already invited
        """
        email = normalize_email(email)
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        require_owner_of(voiceover, caller_id)

        user = await self.users.find_by_email(email)
        if user is not None and user.id == voiceover.created_by:
            raise CannotAddOwner(voiceover_id, email)

        if await self.collaborators.find_by_voiceover_and_email(voiceover_id, email):
            raise CollaboratorAlreadyExists(voiceover_id, email)

        collaborator = await self.collaborators.add(
            voiceover_id=voiceover_id,
            email=email,
            added_by=caller_id,
            user_id=user.id if user else None,
        )

        state = f"bound to user {user.id}" if user else "pending"
        logger.info(f"Invited {email} to voiceover {voiceover_id} ({state})")
        return CollaboratorWithUser(
            **collaborator.model_dump(),
            user_name=user.name if user else None,
            user_image=user.image if user else None,
        )

    async def remove(self, collaborator_id: str, caller_id: str) -> None:
        """
        Remove a collaborator.

        Authorization takes two hops: the collaborator row names its voiceover,
        and the voiceover names its owner.

        Raises:
            CollaboratorNotFound: If the collaborator does not exist
            NotVoiceoverOwner: If the caller does not own the voiceover
        """
        collaborator = await self.collaborators.find_by_id(collaborator_id)
        voiceover = await self.voiceovers.find_by_id(collaborator.voiceover_id)
        require_owner_of(voiceover, caller_id)

        await self.collaborators.remove(collaborator_id)
        logger.info(f"Removed collaborator {collaborator_id} from voiceover {voiceover.id}")

    async def list(self, voiceover_id: str) -> List[CollaboratorWithUser]:
        """Collaborators of a voiceover in invite order, joined with user info."""
        await self.voiceovers.find_by_id(voiceover_id)
        rows = await self.collaborators.find_by_voiceover(voiceover_id)
        users = await self.users.get_many([row.user_id for row in rows if row.user_id])

        result: List[CollaboratorWithUser] = []
        for row in rows:
            user = users.get(row.user_id) if row.user_id else None
            result.append(
                CollaboratorWithUser(
                    **row.model_dump(),
                    user_name=user.name if user else None,
                    user_image=user.image if user else None,
                )
            )
        return result

    async def claim_pending_invites(self, email: str, user_id: str) -> int:
        """
        Bind every pending invite for ``email`` to ``user_id``.

        Called when an identity becomes known for an email (registration or
        login). Rows already bound to a user are never touched, so a second
        claim affects nothing.

        Returns:
            Number of invites claimed
        """
        claimed = await self.collaborators.claim_by_email(email, user_id)
        if claimed:
            logger.info(f"User {user_id} claimed {claimed} pending invite(s) for {normalize_email(email)}")
        return claimed

    async def claim_invites_for(self, user_id: str) -> int:
        """
        Claim pending invites for the email registered to ``user_id``.

        The email is taken from the user directory, never from the caller, so
        a user can only claim invites addressed to their own account.

        Returns:
            Number of invites claimed; 0 for users not in the directory
        """
        user = await self.users.get(user_id)
        if user is None:
            logger.debug(f"No registered email for user {user_id}; nothing to claim")
            return 0
        return await self.claim_pending_invites(user.email, user_id)

    async def is_collaborator(self, voiceover_id: str, user_id: str) -> bool:
        collaborator: Collaborator | None = await self.collaborators.find_by_voiceover_and_user(
            voiceover_id, user_id
        )
        return collaborator is not None
