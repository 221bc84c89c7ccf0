"""Ownership checks. Callers are identified explicitly by ``caller_id``."""

from voiceover.models.content import Voiceover
from voiceover.utils.errors import NotVoiceoverOwner


def require_ownership(owner_id: str, caller_id: str, voiceover_id: str) -> None:
    """
    Fail the current operation unless ``caller_id`` is ``owner_id``.

    Raises:
        NotVoiceoverOwner: If the caller is someone else
    """
    if owner_id != caller_id:
        raise NotVoiceoverOwner(voiceover_id, caller_id)


def require_owner_of(voiceover: Voiceover, caller_id: str) -> None:
    """Shorthand for ``require_ownership`` on a loaded voiceover."""
    require_ownership(voiceover.created_by, caller_id, voiceover.id)
