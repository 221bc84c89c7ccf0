"""FastAPI dependencies for the Voiceover Studio API."""

from functools import lru_cache
from typing import Any

from fastapi import Header

from voiceover.services.approvals import ApprovalTracker
from voiceover.services.collaborators import CollaboratorRegistry
from voiceover.services.database import (
    CollaboratorRepository,
    UserDirectory,
    VoiceoverRepository,
    create_supabase_client,
)
from voiceover.services.generation import GenerationOrchestrator, create_generation_orchestrator
from voiceover.services.voiceovers import VoiceoverService


def get_caller_id(x_user_id: str = Header(..., min_length=1)) -> str:
    """Authenticated caller, as asserted by the upstream auth layer."""
    return x_user_id


@lru_cache
def get_supabase_client() -> Any:
    return create_supabase_client()


def get_voiceover_service() -> VoiceoverService:
    """Dependency for voiceover CRUD."""
    client = get_supabase_client()
    return VoiceoverService(VoiceoverRepository(client), CollaboratorRepository(client))


def get_collaborator_registry() -> CollaboratorRegistry:
    """Dependency for collaborator management."""
    client = get_supabase_client()
    return CollaboratorRegistry(
        VoiceoverRepository(client), CollaboratorRepository(client), UserDirectory(client)
    )


def get_approval_tracker() -> ApprovalTracker:
    """Dependency for approvals."""
    client = get_supabase_client()
    return ApprovalTracker(VoiceoverRepository(client), CollaboratorRepository(client))


@lru_cache
def get_generation_orchestrator() -> GenerationOrchestrator:
    """Process-wide orchestrator so every request shares one lock registry."""
    return create_generation_orchestrator(get_supabase_client())
