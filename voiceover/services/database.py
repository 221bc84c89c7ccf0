"""Database service for Supabase operations on voiceovers and collaborators."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from voiceover.models.collaborator import Collaborator, UserInfo, normalize_email
from voiceover.models.content import Voiceover, VoiceoverStatus
from voiceover.utils.errors import (
    CollaboratorAlreadyExists,
    CollaboratorNotFound,
    DatabaseError,
    InvalidStatusTransition,
    VoiceoverNotFound,
)

logger = logging.getLogger(__name__)

VOICEOVERS_TABLE = "voiceovers"
COLLABORATORS_TABLE = "voiceover_collaborators"
USERS_TABLE = "users"

# Postgres unique_violation, raised by the unique indexes on collaborators and open jobs
UNIQUE_VIOLATION = "23505"


def new_id(prefix: str) -> str:
    """Short prefixed identifier, e.g. ``voc-1a2b3c4d5e6f``."""
    return f"{prefix}-{uuid4().hex[:12]}"


def _now() -> str:
    return datetime.utcnow().isoformat()


class VoiceoverRepository:
    """Persistence boundary for voiceover rows. No business logic beyond field mapping
    and enforcing the status transition table on writes."""

    def __init__(self, supabase_client: Any) -> None:
        """
        Initialize the VoiceoverRepository.

        Args:
            supabase_client: Supabase client instance
        """
        self.supabase = supabase_client

    def _table(self) -> Any:
        return self.supabase.table(VOICEOVERS_TABLE)

    # ==================== VOICEOVERS CRUD ====================

    async def insert(self, voiceover: Voiceover) -> Voiceover:
        """
        Create a new voiceover row.

        Raises:
            DatabaseError: If creation fails
        """
        try:
            result = self._table().insert(voiceover.model_dump(mode="json")).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to create voiceover: {e}")

        if not result.data:
            raise DatabaseError("Failed to insert voiceover into database")

        logger.info(f"Created voiceover {voiceover.id} for user {voiceover.created_by}")
        return Voiceover.model_validate(result.data[0])

    async def find_by_id(self, voiceover_id: str) -> Voiceover:
        """
        Retrieve a voiceover by ID.

        Raises:
            VoiceoverNotFound: If no row matches
            DatabaseError: If the query fails
        """
        try:
            result = self._table().select("*").eq("id", voiceover_id).limit(1).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get voiceover {voiceover_id}: {e}")

        if not result.data:
            raise VoiceoverNotFound(voiceover_id)
        return Voiceover.model_validate(result.data[0])

    async def list(self, created_by: str, limit: int = 50, offset: int = 0) -> List[Voiceover]:
        """List voiceovers owned by a user, newest first."""
        try:
            result = (
                self._table()
                .select("*")
                .eq("created_by", created_by)
                .order("created_at", desc=True)
                .range(offset, offset + limit - 1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list voiceovers for {created_by}: {e}")

        return [Voiceover.model_validate(row) for row in result.data or []]

    async def update(self, voiceover_id: str, data: Dict[str, Any]) -> Voiceover:
        """Apply plain field updates and bump ``updated_at``."""
        return await self._update(voiceover_id, dict(data))

    async def delete(self, voiceover_id: str) -> bool:
        """Delete a voiceover row. Returns True if a row was removed."""
        try:
            result = self._table().delete().eq("id", voiceover_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to delete voiceover {voiceover_id}: {e}")
        return bool(result.data)

    # ==================== LIFECYCLE FIELDS ====================

    async def update_status(
        self,
        voiceover_id: str,
        status: VoiceoverStatus,
        error_message: Optional[str] = None,
    ) -> Voiceover:
        """
        Move a voiceover to ``status`` if the transition table allows it.

        ``error_message`` is stored only for ``failed`` and cleared otherwise.

        Raises:
            InvalidStatusTransition: If the move is not in the table
            VoiceoverNotFound: If no row matches
        """
        current = await self.find_by_id(voiceover_id)
        if not current.status.can_transition_to(status):
            raise InvalidStatusTransition(voiceover_id, current.status.value, status.value)
        return await self._compare_and_set_status(voiceover_id, current.status, status, error_message)

    async def restore_status(self, snapshot: Voiceover) -> Voiceover:
        """Undo a flip into ``generating_audio`` whose job could not be enqueued.

        ``snapshot`` is the row as loaded before the flip; its status and error
        message are written back.
        """
        current = await self.find_by_id(snapshot.id)
        if not current.status.can_rollback_to(snapshot.status):
            raise InvalidStatusTransition(snapshot.id, current.status.value, snapshot.status.value)
        return await self._compare_and_set_status(
            snapshot.id, current.status, snapshot.status, snapshot.error_message
        )

    async def update_audio(self, voiceover_id: str, audio_url: str, duration: int) -> Voiceover:
        """Store the result of a successful synthesis."""
        return await self._update(voiceover_id, {"audio_url": audio_url, "duration": duration})

    async def set_owner_approval(self, voiceover_id: str, approved: bool) -> Voiceover:
        """Set or clear the owner's approval flag."""
        return await self._update(voiceover_id, {"owner_has_approved": approved})

    # ==================== INTERNALS ====================

    async def _compare_and_set_status(
        self,
        voiceover_id: str,
        expected: VoiceoverStatus,
        status: VoiceoverStatus,
        error_message: Optional[str],
    ) -> Voiceover:
        update_data = {
            "status": status.value,
            "error_message": error_message if status is VoiceoverStatus.FAILED else None,
            "updated_at": _now(),
        }
        try:
            result = (
                self._table()
                .update(update_data)
                .eq("id", voiceover_id)
                .eq("status", expected.value)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update status of voiceover {voiceover_id}: {e}")

        if not result.data:
            # Row moved underneath us; report what it moved to
            latest = await self.find_by_id(voiceover_id)
            raise InvalidStatusTransition(voiceover_id, latest.status.value, status.value)

        logger.info(f"Voiceover {voiceover_id}: {expected.value} -> {status.value}")
        return Voiceover.model_validate(result.data[0])

    async def _update(self, voiceover_id: str, update_data: Dict[str, Any]) -> Voiceover:
        update_data["updated_at"] = _now()
        try:
            result = self._table().update(update_data).eq("id", voiceover_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to update voiceover {voiceover_id}: {e}")

        if not result.data:
            raise VoiceoverNotFound(voiceover_id)
        return Voiceover.model_validate(result.data[0])


class CollaboratorRepository:
    """Persistence for collaborator rows."""

    def __init__(self, supabase_client: Any) -> None:
        self.supabase = supabase_client

    def _table(self) -> Any:
        return self.supabase.table(COLLABORATORS_TABLE)

    async def find_by_id(self, collaborator_id: str) -> Collaborator:
        """
        Retrieve a collaborator by ID.

        Raises:
            CollaboratorNotFound: If no row matches
        """
        try:
            result = self._table().select("*").eq("id", collaborator_id).limit(1).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to get collaborator {collaborator_id}: {e}")

        if not result.data:
            raise CollaboratorNotFound(collaborator_id)
        return Collaborator.model_validate(result.data[0])

    async def find_by_voiceover(self, voiceover_id: str) -> List[Collaborator]:
        """All collaborators of a voiceover in invite order."""
        try:
            result = (
                self._table()
                .select("*")
                .eq("voiceover_id", voiceover_id)
                .order("added_at")
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to list collaborators of {voiceover_id}: {e}")
        return [Collaborator.model_validate(row) for row in result.data or []]

    async def find_pending_by_email(self, email: str) -> List[Collaborator]:
        """Unclaimed invites for an email across all voiceovers."""
        try:
            result = (
                self._table()
                .select("*")
                .eq("email", normalize_email(email))
                .is_("user_id", "null")
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to find pending invites: {e}")
        return [Collaborator.model_validate(row) for row in result.data or []]

    async def find_by_voiceover_and_user(
        self, voiceover_id: str, user_id: str
    ) -> Optional[Collaborator]:
        """The collaborator bound to ``user_id`` on this voiceover, if any."""
        try:
            result = (
                self._table()
                .select("*")
                .eq("voiceover_id", voiceover_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to look up collaborator: {e}")
        return Collaborator.model_validate(result.data[0]) if result.data else None

    async def find_by_voiceover_and_email(
        self, voiceover_id: str, email: str
    ) -> Optional[Collaborator]:
        try:
            result = (
                self._table()
                .select("*")
                .eq("voiceover_id", voiceover_id)
                .eq("email", normalize_email(email))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to look up collaborator: {e}")
        return Collaborator.model_validate(result.data[0]) if result.data else None

    async def add(
        self,
        voiceover_id: str,
        email: str,
        added_by: str,
        user_id: Optional[str] = None,
    ) -> Collaborator:
        """Insert a collaborator; ``user_id=None`` records a pending invite.

        Raises:
            CollaboratorAlreadyExists: If the unique (voiceover, email) index rejects the row
            DatabaseError: If the insert fails for any other reason
        """
        collaborator = Collaborator(
            id=new_id("vcol"),
            voiceover_id=voiceover_id,
            email=email,
            user_id=user_id,
            added_by=added_by,
        )
        try:
            result = self._table().insert(collaborator.model_dump(mode="json")).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                raise CollaboratorAlreadyExists(voiceover_id, collaborator.email) from e
            raise DatabaseError(f"Failed to add collaborator: {e}")

        if not result.data:
            raise DatabaseError("Failed to insert collaborator into database")
        return Collaborator.model_validate(result.data[0])

    async def remove(self, collaborator_id: str) -> bool:
        try:
            result = self._table().delete().eq("id", collaborator_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to remove collaborator {collaborator_id}: {e}")
        return bool(result.data)

    async def remove_by_voiceover(self, voiceover_id: str) -> int:
        try:
            result = self._table().delete().eq("voiceover_id", voiceover_id).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to remove collaborators of {voiceover_id}: {e}")
        return len(result.data or [])

    async def set_approval(
        self, voiceover_id: str, user_id: str, approved: bool
    ) -> Optional[Collaborator]:
        """Set ``has_approved`` for the collaborator bound to ``user_id``."""
        update_data = {
            "has_approved": approved,
            "approved_at": _now() if approved else None,
        }
        try:
            result = (
                self._table()
                .update(update_data)
                .eq("voiceover_id", voiceover_id)
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update approval: {e}")
        return Collaborator.model_validate(result.data[0]) if result.data else None

    async def clear_all_approvals(self, voiceover_id: str) -> int:
        """Reset every collaborator's approval. Returns rows touched."""
        try:
            result = (
                self._table()
                .update({"has_approved": False, "approved_at": None})
                .eq("voiceover_id", voiceover_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to clear approvals of {voiceover_id}: {e}")
        return len(result.data or [])

    async def claim_by_email(self, email: str, user_id: str) -> int:
        """Bind every unclaimed invite for ``email`` to ``user_id``. Returns rows bound."""
        try:
            result = (
                self._table()
                .update({"user_id": user_id})
                .eq("email", normalize_email(email))
                .is_("user_id", "null")
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to claim invites: {e}")
        return len(result.data or [])


class UserDirectory:
    """Read-only lookups against registered users."""

    def __init__(self, supabase_client: Any) -> None:
        self.supabase = supabase_client

    async def find_by_email(self, email: str) -> Optional[UserInfo]:
        try:
            result = (
                self.supabase.table(USERS_TABLE)
                .select("id, email, name, image")
                .eq("email", normalize_email(email))
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to look up user by email: {e}")
        return UserInfo.model_validate(result.data[0]) if result.data else None

    async def get(self, user_id: str) -> Optional[UserInfo]:
        try:
            result = (
                self.supabase.table(USERS_TABLE)
                .select("id, email, name, image")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to look up user {user_id}: {e}")
        return UserInfo.model_validate(result.data[0]) if result.data else None

    async def get_many(self, user_ids: List[str]) -> Dict[str, UserInfo]:
        if not user_ids:
            return {}
        try:
            result = (
                self.supabase.table(USERS_TABLE)
                .select("id, email, name, image")
                .in_("id", user_ids)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to load users: {e}")
        users = [UserInfo.model_validate(row) for row in result.data or []]
        return {user.id: user for user in users}


# Factory function for creating the Supabase client with settings
def create_supabase_client() -> Any:
    """
    Create a Supabase client using application settings.

    Returns:
        Configured Supabase client
    """
    from supabase import create_client

    from voiceover.config import get_settings

    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)
