"""Background worker that executes queued voiceover generation jobs."""

import asyncio
import logging
from typing import Optional

from voiceover.models.job import GenerateVoiceoverResult, Job
from voiceover.services.generation import GENERATE_VOICEOVER_JOB, GenerationOrchestrator
from voiceover.services.queue import JobDispatcher
from voiceover.utils.errors import JobProcessingError
from voiceover.utils.retry import backoff_delay

logger = logging.getLogger(__name__)


class VoiceoverWorker:
    """
    Polls the queue for ``generate-voiceover`` jobs and runs them through the
    orchestrator's synchronous path.

    A failed generation is a normal outcome (the job is marked failed and the
    voiceover is already in ``failed``). Only infrastructure errors, such as an
    unreachable queue, count toward ``max_consecutive_errors``.
    """

    def __init__(
        self,
        dispatcher: JobDispatcher,
        orchestrator: GenerationOrchestrator,
        poll_interval: float = 5.0,
        backoff_cap: float = 60.0,
        max_consecutive_errors: int = 5,
    ) -> None:
        self.dispatcher = dispatcher
        self.orchestrator = orchestrator
        self.poll_interval = poll_interval
        self.backoff_cap = backoff_cap
        self.max_consecutive_errors = max_consecutive_errors
        self._stopped = asyncio.Event()

    async def process_job(self, job: Job) -> Job:
        """Run one claimed job to a terminal status."""
        payload = job.payload
        logger.info(f"Processing {job.type} job {job.id} for voiceover {payload.voiceover_id}")

        try:
            outcome = await self.orchestrator.generate_audio(payload.voiceover_id, payload.user_id)
        except Exception as e:
            message = str(e) or type(e).__name__
            logger.error(str(JobProcessingError(job.id, message)))
            # Precondition failures happen before the pipeline can compensate
            try:
                await self.orchestrator.abandon(payload.voiceover_id, e)
            except Exception:
                logger.exception(f"Could not fail voiceover {payload.voiceover_id} for job {job.id}")
            return await self.dispatcher.fail_job(job.id, message)

        return await self.dispatcher.complete_job(
            job.id,
            GenerateVoiceoverResult(
                voiceover_id=payload.voiceover_id,
                audio_url=outcome.audio_url,
                duration=outcome.duration,
            ),
        )

    async def poll_once(self) -> Optional[Job]:
        """Claim and process the next pending job, if there is one."""
        job = await self.dispatcher.claim_next_job(GENERATE_VOICEOVER_JOB)
        if job is None:
            logger.debug("No pending voiceover jobs found")
            return None

        finished = await self.process_job(job)
        logger.info(f"Finished {finished.type} job {finished.id}, status: {finished.status}")
        return finished

    async def process_job_by_id(self, job_id: str) -> Job:
        """Run a specific job regardless of queue order (tests and operations)."""
        job = await self.dispatcher.get_job(job_id)
        if job.status != "processing":
            raise JobProcessingError(job_id, f"job is '{job.status}', expected 'processing'")
        return await self.process_job(job)

    def stop(self) -> None:
        self._stopped.set()

    async def run_forever(self) -> None:
        """
        Poll until stopped, backing off exponentially on infrastructure errors.

        Raises:
            Exception: The last error once ``max_consecutive_errors`` is reached
        """
        logger.info(f"Starting voiceover worker, polling every {self.poll_interval}s")
        consecutive_errors = 0

        while not self._stopped.is_set():
            try:
                await self.poll_once()
                consecutive_errors = 0
                delay = self.poll_interval
            except Exception as e:
                consecutive_errors += 1
                if consecutive_errors >= self.max_consecutive_errors:
                    logger.error(
                        f"Too many consecutive errors ({consecutive_errors}), shutting down: {e}"
                    )
                    raise
                delay = backoff_delay(consecutive_errors - 1, self.poll_interval, self.backoff_cap)
                logger.warning(f"Voiceover worker error, retrying in {delay}s: {e}")

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass

        logger.info("Voiceover worker stopped")


def create_voiceover_worker() -> VoiceoverWorker:
    """
    Create a VoiceoverWorker using application settings.

    Returns:
        Configured VoiceoverWorker instance
    """
    from voiceover.config import get_settings
    from voiceover.services.database import create_supabase_client
    from voiceover.services.generation import create_generation_orchestrator

    settings = get_settings()
    client = create_supabase_client()
    return VoiceoverWorker(
        dispatcher=JobDispatcher(client),
        orchestrator=create_generation_orchestrator(client),
        poll_interval=settings.worker_poll_interval_seconds,
        backoff_cap=settings.worker_backoff_cap_seconds,
        max_consecutive_errors=settings.worker_max_consecutive_errors,
    )


def main() -> None:
    from voiceover.utils.logging import configure_logging

    configure_logging()
    asyncio.run(create_voiceover_worker().run_forever())


if __name__ == "__main__":
    main()
