"""Job dispatcher: the queue boundary for voiceover generation jobs."""

import logging
from datetime import datetime
from typing import Any, List, Optional

from voiceover.models.job import (
    OPEN_JOB_STATUSES,
    GenerateVoiceoverPayload,
    GenerateVoiceoverResult,
    Job,
    JobType,
)
from voiceover.services.database import UNIQUE_VIOLATION, new_id
from voiceover.utils.errors import JobAlreadyOpen, JobNotFound, QueueError

logger = logging.getLogger(__name__)

JOBS_TABLE = "jobs"


class JobDispatcher:
    """
    Durable job queue backed by the ``jobs`` table.

    The dispatcher does not lock. Callers check ``find_pending_job`` before
    ``enqueue``; a partial unique index on ``jobs (voiceover_id) WHERE status
    IN ('pending', 'processing')`` turns a lost race into ``JobAlreadyOpen``.
    """

    def __init__(self, supabase_client: Any) -> None:
        """
        Initialize the JobDispatcher.

        Args:
            supabase_client: Supabase client instance
        """
        self.supabase = supabase_client

    def _table(self) -> Any:
        return self.supabase.table(JOBS_TABLE)

    @staticmethod
    def _to_row(job: Job) -> dict[str, Any]:
        row = job.model_dump(mode="json")
        # Denormalized for the open-job lookup and its unique index
        row["voiceover_id"] = job.payload.voiceover_id
        return row

    async def find_pending_job(self, voiceover_id: str) -> Optional[Job]:
        """
        Return the open (pending or processing) job for a voiceover, if any.

        Raises:
            QueueError: If the queue cannot be read
        """
        try:
            result = (
                self._table()
                .select("*")
                .eq("voiceover_id", voiceover_id)
                .in_("status", list(OPEN_JOB_STATUSES))
                .order("created_at", desc=True)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise QueueError(f"Failed to look up open job for {voiceover_id}: {e}")

        return Job.model_validate(result.data[0]) if result.data else None

    async def enqueue(
        self,
        job_type: JobType,
        payload: GenerateVoiceoverPayload,
        owner_id: str,
    ) -> Job:
        """
        Create a new job in ``pending`` status.

        Raises:
            JobAlreadyOpen: If another open job for the voiceover won the insert
            QueueError: If the queue rejects the write
        """
        job = Job(id=new_id("job"), type=job_type, payload=payload, created_by=owner_id)

        try:
            result = self._table().insert(self._to_row(job)).execute()
        except Exception as e:
            if getattr(e, "code", None) == UNIQUE_VIOLATION:
                existing = await self.find_pending_job(payload.voiceover_id)
                raise JobAlreadyOpen(
                    payload.voiceover_id, existing.id if existing else None
                ) from e
            raise QueueError(f"Failed to enqueue {job_type} job: {e}")

        if not result.data:
            raise QueueError(f"Queue did not accept {job_type} job")

        logger.info(f"Enqueued {job_type} job {job.id} for voiceover {payload.voiceover_id}")
        return Job.model_validate(result.data[0])

    async def get_job(self, job_id: str) -> Job:
        """
        Retrieve a job by ID.

        Raises:
            JobNotFound: If no job matches
            QueueError: If the queue cannot be read
        """
        try:
            result = self._table().select("*").eq("id", job_id).limit(1).execute()
        except Exception as e:
            raise QueueError(f"Failed to get job {job_id}: {e}")

        if not result.data:
            raise JobNotFound(job_id)
        return Job.model_validate(result.data[0])

    async def list_jobs(self, voiceover_id: str) -> List[Job]:
        """All jobs ever created for a voiceover, newest first."""
        try:
            result = (
                self._table()
                .select("*")
                .eq("voiceover_id", voiceover_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise QueueError(f"Failed to list jobs for {voiceover_id}: {e}")
        return [Job.model_validate(row) for row in result.data or []]

    # ==================== WORKER SIDE ====================

    async def claim_next_job(self, job_type: JobType) -> Optional[Job]:
        """
        Move the oldest pending job of ``job_type`` to ``processing``.

        The update is conditioned on the job still being pending, so two
        workers racing for the same row cannot both claim it.
        """
        try:
            result = (
                self._table()
                .select("*")
                .eq("type", job_type)
                .eq("status", "pending")
                .order("created_at")
                .limit(1)
                .execute()
            )
            if not result.data:
                return None

            job_id = result.data[0]["id"]
            claimed = (
                self._table()
                .update({"status": "processing", "started_at": datetime.utcnow().isoformat()})
                .eq("id", job_id)
                .eq("status", "pending")
                .execute()
            )
        except Exception as e:
            raise QueueError(f"Failed to claim next {job_type} job: {e}")

        if not claimed.data:
            logger.debug(f"Job {job_id} was claimed by another worker")
            return None
        return Job.model_validate(claimed.data[0])

    async def complete_job(self, job_id: str, result: GenerateVoiceoverResult) -> Job:
        """Mark a processing job ``completed`` with its result."""
        return await self._finish(
            job_id,
            {"status": "completed", "result": result.model_dump(mode="json"), "error": None},
        )

    async def fail_job(self, job_id: str, error: str) -> Job:
        """Mark a processing job ``failed`` with an error message."""
        return await self._finish(job_id, {"status": "failed", "error": error})

    async def _finish(self, job_id: str, update_data: dict[str, Any]) -> Job:
        update_data["completed_at"] = datetime.utcnow().isoformat()
        try:
            result = (
                self._table()
                .update(update_data)
                .eq("id", job_id)
                .eq("status", "processing")
                .execute()
            )
        except Exception as e:
            raise QueueError(f"Failed to finish job {job_id}: {e}")

        if not result.data:
            # Either missing or not processing; distinguish for the caller
            job = await self.get_job(job_id)
            raise QueueError(f"Job {job_id} is '{job.status}', expected 'processing'")

        logger.info(f"Job {job_id} finished with status {update_data['status']}")
        return Job.model_validate(result.data[0])
