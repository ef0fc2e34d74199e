"""
События жизненного цикла задачи.

Контроллер публикует их в EventBus; презентер и NavigationStateSync
подписываются и реагируют. Все события неизменяемые.
"""
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from src.nftper.domain.entities.job import Job
from src.nftper.domain.entities.lifecycle_state import LifecycleState
from src.nftper.domain.enums import CancelReason, LifecyclePhase
from src.nftper.domain.exceptions import ProcessingError
from src.nftper.domain.value_objects import ErrorInfo


@dataclass(frozen=True)
class LifecycleEvent:
    timestamp: float = field(default_factory=time.time, kw_only=True)


@dataclass(frozen=True)
class StatusChanged(LifecycleEvent):
    """Позиция в очереди изменилась или задача перешла в обработку."""
    state: LifecycleState

    @property
    def job(self) -> Job:
        return self.state.job


@dataclass(frozen=True)
class JobCompleted(LifecycleEvent):
    job: Job
    result: Optional[Mapping[str, Any]]


@dataclass(frozen=True)
class JobFailed(LifecycleEvent):
    job: Job
    error: ErrorInfo
    exception: Optional[ProcessingError] = None


@dataclass(frozen=True)
class SubmissionFailed(LifecycleEvent):
    subject: str
    message: str


@dataclass(frozen=True)
class JobCancelled(LifecycleEvent):
    job: Job
    previous_phase: LifecyclePhase
    reason: CancelReason


@dataclass(frozen=True)
class InputRequested(LifecycleEvent):
    """Навигация вернула пользователя к форме ввода."""
    url: str = ""
