from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from src.nftper.domain.value_objects import JobParameters


@dataclass(frozen=True)
class Job:
    subject: str
    parameters: JobParameters
    job_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def accepted(self, job_id: str) -> "Job":
        """Копия задачи с queueId, выданным бэкендом."""
        return replace(self, job_id=job_id, created_at=datetime.now(timezone.utc))
