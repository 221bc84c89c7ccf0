"""Service layer for Voiceover Studio."""

from voiceover.services.approvals import ApprovalStatus, ApprovalTracker
from voiceover.services.collaborators import CollaboratorRegistry
from voiceover.services.database import (
    CollaboratorRepository,
    UserDirectory,
    VoiceoverRepository,
    create_supabase_client,
)
from voiceover.services.generation import (
    GenerationOrchestrator,
    GenerationResult,
    StartGenerationResult,
    create_generation_orchestrator,
)
from voiceover.services.llm import AgentLanguageModel, create_language_model
from voiceover.services.queue import JobDispatcher
from voiceover.services.storage import SupabaseStorage, create_storage
from voiceover.services.tts import ElevenLabsTTS, create_tts_service
from voiceover.services.voiceovers import VoiceoverService

__all__ = [
    "ApprovalStatus",
    "ApprovalTracker",
    "CollaboratorRegistry",
    "CollaboratorRepository",
    "UserDirectory",
    "VoiceoverRepository",
    "create_supabase_client",
    "GenerationOrchestrator",
    "GenerationResult",
    "StartGenerationResult",
    "create_generation_orchestrator",
    "AgentLanguageModel",
    "create_language_model",
    "JobDispatcher",
    "SupabaseStorage",
    "create_storage",
    "ElevenLabsTTS",
    "create_tts_service",
    "VoiceoverService",
]
