"""Job model for the durable background job queue."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

STATUS_AVAILABLE = "available"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_DISCARDED = "discarded"


@dataclass
class Job:
    id: int
    job_type: str  # handler name, e.g. "process_receipt"
    payload: dict = field(default_factory=dict)
    status: str = STATUS_AVAILABLE
    attempts: int = 0  # incremented when a worker claims the job
    max_attempts: int = 3
    last_error: Optional[str] = None
    inserted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None  # set while running

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts
