from dataclasses import dataclass
from typing import Any, Mapping, Optional

from src.nftper.domain.entities.job import Job
from src.nftper.domain.enums import LifecyclePhase
from src.nftper.domain.value_objects import ErrorInfo


@dataclass(frozen=True)
class LifecycleState:
    """
    Снимок состояния контроллера.
    Для любой фазы кроме IDLE ровно одна задача в `job`.
    """
    phase: LifecyclePhase
    job: Optional[Job] = None
    position: Optional[int] = None
    result: Optional[Mapping[str, Any]] = None
    error: Optional[ErrorInfo] = None

    def __post_init__(self):
        if self.phase == LifecyclePhase.IDLE and self.job is not None:
            raise ValueError("Idle state must not carry a job")
        if self.phase != LifecyclePhase.IDLE and self.job is None:
            raise ValueError(f"{self.phase} state requires a job")
        if self.position is not None and self.position < 0:
            raise ValueError("Queue position must be >= 0")

    @property
    def is_idle(self) -> bool:
        return self.phase == LifecyclePhase.IDLE

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    @property
    def job_id(self) -> Optional[str]:
        return self.job.job_id if self.job else None

    @classmethod
    def idle(cls) -> "LifecycleState":
        return cls(LifecyclePhase.IDLE)

    @classmethod
    def submitting(cls, job: Job) -> "LifecycleState":
        return cls(LifecyclePhase.SUBMITTING, job=job)

    @classmethod
    def queued(cls, job: Job, position: int) -> "LifecycleState":
        return cls(LifecyclePhase.QUEUED, job=job, position=max(0, int(position)))

    @classmethod
    def processing(cls, job: Job) -> "LifecycleState":
        return cls(LifecyclePhase.PROCESSING, job=job, position=0)

    @classmethod
    def completed(cls, job: Job, result: Optional[Mapping[str, Any]]) -> "LifecycleState":
        return cls(LifecyclePhase.COMPLETED, job=job, result=result)

    @classmethod
    def failed(cls, job: Job, error: ErrorInfo) -> "LifecycleState":
        return cls(LifecyclePhase.FAILED, job=job, error=error)
