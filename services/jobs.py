"""Durable job queue backed by the jobs table.

Jobs are delivered at least once: a job whose handler raises is put back on
the queue until it has been attempted max_attempts times, then discarded. A
claim is a lease; a job left running past it (the worker died) is claimed
again by the next worker.
"""

import json
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

from db.manager import parse_timestamp, translate_errors, utc_now
from logger import get_logger
from models.job import (
    STATUS_AVAILABLE,
    STATUS_COMPLETED,
    STATUS_DISCARDED,
    STATUS_RUNNING,
    Job,
)

logger = get_logger()

_JOB_SELECT_FIELDS = (
    "id, job_type, payload, status, attempts, max_attempts, last_error, "
    "inserted_at, updated_at, claimed_at"
)


class JobService:
    """Service for enqueueing and running background jobs."""

    def __init__(self, db_manager, lease_seconds: int = 300):
        """Initialize the job service.

        Args:
            db_manager: Database manager instance for database operations.
            lease_seconds: How long a claimed job may run before another
                           worker may claim it again.
        """
        self.db_manager = db_manager
        self.lease = timedelta(seconds=lease_seconds)

    def enqueue(self, job_type: str, payload: Dict[str, Any], max_attempts: int = 3) -> Job:
        """Add a job to the queue.

        Args:
            job_type: Name of the handler that will run the job.
            payload: JSON-serializable arguments for the handler.
            max_attempts: How many times the job may be tried in total.

        Returns:
            The queued Job.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        now = utc_now()
        with translate_errors():
            with self.db_manager.transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO jobs (job_type, payload, status, max_attempts,
                                      inserted_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        job_type,
                        json.dumps(payload),
                        STATUS_AVAILABLE,
                        max_attempts,
                        now.isoformat(),
                        now.isoformat(),
                    ),
                )
                job_id = cursor.lastrowid

        logger.info(f"Enqueued {job_type} job {job_id}")
        return Job(
            id=job_id,
            job_type=job_type,
            payload=payload,
            max_attempts=max_attempts,
            inserted_at=now,
            updated_at=now,
        )

    def find(self, job_id: int) -> Optional[Job]:
        """Get a single job by ID."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_JOB_SELECT_FIELDS} FROM jobs WHERE id = ?", (job_id,)
            ).fetchone()
            return self._row_to_job(row) if row else None

    def find_all(self, status: Optional[str] = None) -> List[Job]:
        """Get jobs in queue order, optionally filtered by status."""
        query = f"SELECT {_JOB_SELECT_FIELDS} FROM jobs"
        params: list = []
        if status is not None:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY id"

        with self.db_manager.connect() as conn:
            return [self._row_to_job(row) for row in conn.execute(query, params)]

    def claim_next(self) -> Optional[Job]:
        """Atomically take the oldest claimable job and mark it running.

        A job is claimable when it is available, or when it is running but
        its lease has expired. An expired job that has used up its attempts
        is discarded instead of being claimed.

        Returns:
            The claimed Job (attempts already incremented), or None if the
            queue is empty.
        """
        with translate_errors():
            with self.db_manager.transaction() as conn:
                now = utc_now()
                cutoff = _stamp(now - self.lease)
                while True:
                    row = conn.execute(
                        f"""
                        SELECT {_JOB_SELECT_FIELDS} FROM jobs
                        WHERE status = ?
                           OR (status = ? AND (claimed_at IS NULL OR claimed_at < ?))
                        ORDER BY id
                        LIMIT 1
                        """,
                        (STATUS_AVAILABLE, STATUS_RUNNING, cutoff),
                    ).fetchone()
                    if row is None:
                        return None

                    job = self._row_to_job(row)
                    if job.status == STATUS_RUNNING:
                        logger.warning(
                            f"{job.job_type} job {job.id} lease expired during "
                            f"attempt {job.attempts}/{job.max_attempts}"
                        )
                        if job.exhausted:
                            job.status = STATUS_DISCARDED
                            job.last_error = "Lease expired before the job finished"
                            job.claimed_at = None
                            job.updated_at = now
                            self._write_status(conn, job)
                            logger.error(
                                f"Discarding {job.job_type} job {job.id} after "
                                f"{job.attempts} attempt(s): {job.last_error}"
                            )
                            continue

                    job.status = STATUS_RUNNING
                    job.attempts += 1
                    job.claimed_at = now
                    job.updated_at = now
                    self._write_status(conn, job)
                    return job

    def complete(self, job: Job) -> Job:
        """Mark a claimed job as done."""
        job.status = STATUS_COMPLETED
        job.last_error = None
        return self._save_status(job)

    def fail(self, job: Job, error: str) -> Job:
        """Record a failed attempt.

        The job is made available again unless it has used up its attempts,
        in which case it is discarded.
        """
        job.last_error = error
        job.status = STATUS_DISCARDED if job.exhausted else STATUS_AVAILABLE
        if job.status == STATUS_DISCARDED:
            logger.error(
                f"Discarding {job.job_type} job {job.id} after {job.attempts} attempt(s): {error}"
            )
        else:
            logger.warning(
                f"{job.job_type} job {job.id} failed (attempt {job.attempts}/"
                f"{job.max_attempts}), will retry: {error}"
            )
        return self._save_status(job)

    def run_next(self, handlers: Dict[str, Callable[[dict], Any]]) -> Optional[Job]:
        """Claim one job and run its handler.

        Args:
            handlers: Map of job_type to a callable taking the payload.

        Returns:
            The job after it ran, or None if the queue was empty.
        """
        job = self.claim_next()
        if job is None:
            return None

        handler = handlers.get(job.job_type)
        if handler is None:
            job.attempts = job.max_attempts
            return self.fail(job, f"No handler for job type '{job.job_type}'")

        logger.info(f"Running {job.job_type} job {job.id} (attempt {job.attempts})")
        try:
            handler(job.payload)
        except Exception as e:
            return self.fail(job, str(e) or e.__class__.__name__)
        return self.complete(job)

    def run_pending(
        self, handlers: Dict[str, Callable[[dict], Any]], limit: Optional[int] = None
    ) -> int:
        """Run jobs until the queue is empty or limit jobs have run.

        Returns:
            Number of jobs run (successful or not).
        """
        count = 0
        while limit is None or count < limit:
            if self.run_next(handlers) is None:
                break
            count += 1
        return count

    def _save_status(self, job: Job) -> Job:
        job.updated_at = utc_now()
        if job.status != STATUS_RUNNING:
            job.claimed_at = None
        with translate_errors():
            with self.db_manager.transaction() as conn:
                self._write_status(conn, job)
        return job

    def _write_status(self, conn, job: Job) -> None:
        conn.execute(
            """
            UPDATE jobs
            SET status = ?, attempts = ?, last_error = ?, updated_at = ?,
                claimed_at = ?
            WHERE id = ?
            """,
            (
                job.status,
                job.attempts,
                job.last_error,
                _stamp(job.updated_at),
                _stamp(job.claimed_at) if job.claimed_at else None,
                job.id,
            ),
        )

    def _row_to_job(self, row: tuple) -> Job:
        """Convert a database row to a Job object."""
        return Job(
            id=row[0],
            job_type=row[1],
            payload=json.loads(row[2]),
            status=row[3],
            attempts=row[4],
            max_attempts=row[5],
            last_error=row[6],
            inserted_at=parse_timestamp(row[7]),
            updated_at=parse_timestamp(row[8]),
            claimed_at=parse_timestamp(row[9]),
        )


def _stamp(moment) -> str:
    # Fixed width so stored timestamps compare correctly as text
    return moment.isoformat(timespec="microseconds")
