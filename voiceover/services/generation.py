"""Generation orchestrator: drives a voiceover from text to finished audio."""

import asyncio
import hashlib
import logging
import weakref
from typing import Any, Optional

from pydantic import BaseModel

from voiceover.agents.annotator import (
    ANNOTATION_TEMPERATURE,
    ANNOTATOR_SYSTEM_PROMPT,
    annotation_max_tokens,
    build_annotator_prompt,
)
from voiceover.models.content import ALLOWED_GENERATION_STATUSES, Voiceover, VoiceoverStatus
from voiceover.models.job import GenerateVoiceoverPayload, Job
from voiceover.models.synthesis import NARRATOR, PreprocessResult, SpeakerTurn, VoiceConfig
from voiceover.services.approvals import ApprovalTracker
from voiceover.services.database import VoiceoverRepository
from voiceover.services.llm import LanguageModel
from voiceover.services.policy import require_owner_of, require_ownership
from voiceover.services.queue import JobDispatcher
from voiceover.services.storage import ObjectStorage
from voiceover.services.tts import TextToSpeech
from voiceover.utils.errors import InvalidGeneration, JobAlreadyOpen

logger = logging.getLogger(__name__)

GENERATE_VOICEOVER_JOB = "generate-voiceover"


class GenerationResult(BaseModel):
    """Outcome of the synchronous generation path."""

    voiceover: Voiceover
    audio_url: str
    duration: int


class StartGenerationResult(BaseModel):
    """Handle returned by the asynchronous start path."""

    job_id: str
    status: str


class GenerationOrchestrator:
    """
    Runs the voiceover status state machine around TTS synthesis.

    Two entry points give the same guarantees:

    - ``generate_audio`` runs preprocessing, synthesis, upload and
      finalization in one call. Workers call it with the voiceover already in
      ``generating_audio``.
    - ``start_generation`` validates, flips the status, clears approvals and
      enqueues a job, returning the job handle. Repeated calls while a job is
      open return the same handle.

    Entering ``generating_audio`` always clears every approval in the same
    step. Pipeline failures move the voiceover to ``failed`` with the error
    message before the error is re-raised.
    """

    def __init__(
        self,
        voiceovers: VoiceoverRepository,
        approvals: ApprovalTracker,
        dispatcher: JobDispatcher,
        tts: TextToSpeech,
        llm: LanguageModel,
        storage: ObjectStorage,
        audio_bytes_per_second: int = 48000,
    ) -> None:
        self.voiceovers = voiceovers
        self.approvals = approvals
        self.dispatcher = dispatcher
        self.tts = tts
        self.llm = llm
        self.storage = storage
        self.audio_bytes_per_second = audio_bytes_per_second
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    # ==================== ENTRY POINTS ====================

    async def generate_audio(self, voiceover_id: str, caller_id: str) -> GenerationResult:
        """
        Synchronously generate audio for a voiceover.

        Args:
            voiceover_id: Voiceover to generate
            caller_id: Must be the owner

        Returns:
            GenerationResult with the finalized voiceover

        Raises:
            VoiceoverNotFound, NotVoiceoverOwner, InvalidGeneration: before any write
            TTSError, StorageError, DatabaseError: after the voiceover was moved to ``failed``
        """
        voiceover = await self._load_owned(voiceover_id, caller_id)
        self._validate(voiceover)
        await self._enter_generating(voiceover)

        try:
            await self.approvals.clear_all(voiceover_id)
            audio_url, duration = await self._run_pipeline(voiceover)
        except Exception as e:
            await self._compensate(voiceover_id, e)
            raise

        finished = await self.voiceovers.update_status(voiceover_id, VoiceoverStatus.READY)
        logger.info(f"Voiceover {voiceover_id} ready: {duration}s at {audio_url}")
        return GenerationResult(voiceover=finished, audio_url=audio_url, duration=duration)

    async def start_generation(self, voiceover_id: str, caller_id: str) -> StartGenerationResult:
        """
        Validate, flip to ``generating_audio`` and enqueue a generation job.

        If a job is already pending or processing for this voiceover its
        handle is returned and nothing else happens. If clearing approvals or
        enqueueing fails the voiceover is restored to its prior status.

        Raises:
            VoiceoverNotFound, NotVoiceoverOwner, InvalidGeneration: before any write
            QueueError, DatabaseError: after the status flip was rolled back
        """
        await self._load_owned(voiceover_id, caller_id)

        async with self._lock_for(voiceover_id):
            existing = await self.dispatcher.find_pending_job(voiceover_id)
            if existing is not None:
                logger.info(f"Voiceover {voiceover_id} already has open job {existing.id}")
                return StartGenerationResult(job_id=existing.id, status=existing.status)

            # Reload under the lock; the row may have moved since the ownership check
            voiceover = await self.voiceovers.find_by_id(voiceover_id)
            self._validate(voiceover)
            await self._enter_generating(voiceover)

            payload = GenerateVoiceoverPayload(voiceover_id=voiceover_id, user_id=caller_id)
            try:
                await self.approvals.clear_all(voiceover_id)
                job = await self.dispatcher.enqueue(GENERATE_VOICEOVER_JOB, payload, caller_id)
            except JobAlreadyOpen:
                # Another process enqueued first; its status flip stands
                open_job = await self.dispatcher.find_pending_job(voiceover_id)
                if open_job is None:
                    await self._rollback(voiceover)
                    raise
                return StartGenerationResult(job_id=open_job.id, status=open_job.status)
            except Exception:
                await self._rollback(voiceover)
                raise

        return StartGenerationResult(job_id=job.id, status=job.status)

    async def get_job(self, job_id: str, caller_id: str) -> Job:
        """
        Look up a generation job requested by the caller.

        Raises:
            JobNotFound: If the job does not exist
            NotVoiceoverOwner: If the caller did not create the job
        """
        job = await self.dispatcher.get_job(job_id)
        require_ownership(job.created_by, caller_id, job.payload.voiceover_id)
        return job

    # ==================== STEPS ====================

    async def _load_owned(self, voiceover_id: str, caller_id: str) -> Voiceover:
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        require_owner_of(voiceover, caller_id)
        return voiceover

    @staticmethod
    def _validate(voiceover: Voiceover) -> None:
        if voiceover.status not in ALLOWED_GENERATION_STATUSES:
            raise InvalidGeneration(
                voiceover.id,
                f"Cannot generate audio from bad status '{voiceover.status.value}'. "
                "Voiceover must be in 'drafting', 'ready', 'failed', or 'generating_audio' status.",
            )
        if not voiceover.text.strip():
            raise InvalidGeneration(voiceover.id, "Voiceover has no text to generate audio from.")

    async def _enter_generating(self, voiceover: Voiceover) -> None:
        """Flip to ``generating_audio``. Callers clear approvals next, under their undo path."""
        await self.voiceovers.update_status(voiceover.id, VoiceoverStatus.GENERATING_AUDIO)

    async def _run_pipeline(self, voiceover: Voiceover) -> tuple[str, int]:
        text = voiceover.text.strip()
        annotated_text, title = await self._preprocess(text, voiceover.title, voiceover.has_placeholder_title)

        synthesis = await self.tts.synthesize(
            turns=[SpeakerTurn(speaker=NARRATOR, text=annotated_text)],
            voice_configs=[VoiceConfig(speaker_alias=NARRATOR, voice_id=voiceover.voice)],
        )

        audio_key = self.audio_key(voiceover.id, synthesis.audio_content)
        await self.storage.upload(audio_key, synthesis.audio_content, synthesis.mime_type)
        audio_url = await self.storage.get_url(audio_key)

        duration = self.compute_duration(synthesis.audio_content)
        await self.voiceovers.update_audio(voiceover.id, audio_url=audio_url, duration=duration)

        # Never overwrite a title the user chose
        if voiceover.has_placeholder_title and title != voiceover.title:
            await self.voiceovers.update(voiceover.id, {"title": title})

        return audio_url, duration

    async def _preprocess(self, text: str, current_title: str, needs_title: bool) -> tuple[str, str]:
        """Annotate text for narration. Falls back to the raw text and current title on any error."""
        try:
            result = await self.llm.generate(
                system=ANNOTATOR_SYSTEM_PROMPT,
                prompt=build_annotator_prompt(text, needs_title),
                output_type=PreprocessResult,
                max_tokens=annotation_max_tokens(text),
                temperature=ANNOTATION_TEMPERATURE,
            )
        except Exception as e:
            logger.warning(f"Text preprocessing failed, using raw text: {e}")
            return text, current_title

        annotated_text = result.annotated_text if result.annotated_text.strip() else text
        title = current_title
        if needs_title and result.title and result.title.strip():
            title = result.title.strip()
        return annotated_text, title

    async def _compensate(self, voiceover_id: str, error: Exception) -> None:
        message = str(error) or type(error).__name__
        logger.error(f"Generation failed for voiceover {voiceover_id}: {message}")
        try:
            await self.voiceovers.update_status(voiceover_id, VoiceoverStatus.FAILED, error_message=message)
        except Exception:
            logger.exception(f"Could not mark voiceover {voiceover_id} as failed")

    async def abandon(self, voiceover_id: str, error: Exception) -> None:
        """
        Fail a voiceover left in ``generating_audio`` by a job that could not run.

        No-op for any other status, including one the pipeline already
        compensated to ``failed``.
        """
        voiceover = await self.voiceovers.find_by_id(voiceover_id)
        if voiceover.status is VoiceoverStatus.GENERATING_AUDIO:
            await self._compensate(voiceover_id, error)

    async def _rollback(self, snapshot: Voiceover) -> None:
        logger.warning(f"Enqueue failed for voiceover {snapshot.id}; restoring '{snapshot.status.value}'")
        try:
            await self.voiceovers.restore_status(snapshot)
        except Exception:
            logger.exception(f"Could not restore status of voiceover {snapshot.id}")

    # ==================== HELPERS ====================

    def _lock_for(self, voiceover_id: str) -> asyncio.Lock:
        lock: Optional[asyncio.Lock] = self._locks.get(voiceover_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[voiceover_id] = lock
        return lock

    def compute_duration(self, audio: bytes) -> int:
        """Whole seconds of audio, from payload size and the fixed byte rate."""
        # Half-second boundaries round up
        return (len(audio) + self.audio_bytes_per_second // 2) // self.audio_bytes_per_second

    @staticmethod
    def audio_key(voiceover_id: str, audio: bytes) -> str:
        """Content-addressed storage key scoped to the voiceover."""
        digest = hashlib.sha256(audio).hexdigest()[:16]
        return f"voiceovers/{voiceover_id}/audio-{digest}.wav"


def create_generation_orchestrator(supabase_client: Optional[Any] = None) -> GenerationOrchestrator:
    """
    Create a GenerationOrchestrator wired to Supabase, ElevenLabs and the LLM.

    Args:
        supabase_client: Optional Supabase client; created from settings if omitted
    """
    from voiceover.config import get_settings
    from voiceover.services.database import CollaboratorRepository, create_supabase_client
    from voiceover.services.llm import create_language_model
    from voiceover.services.storage import create_storage
    from voiceover.services.tts import create_tts_service

    settings = get_settings()
    client = supabase_client or create_supabase_client()
    voiceovers = VoiceoverRepository(client)

    return GenerationOrchestrator(
        voiceovers=voiceovers,
        approvals=ApprovalTracker(voiceovers, CollaboratorRepository(client)),
        dispatcher=JobDispatcher(client),
        tts=create_tts_service(),
        llm=create_language_model(),
        storage=create_storage(client),
        audio_bytes_per_second=settings.audio_bytes_per_second,
    )
