from enum import StrEnum


class JobStatus(StrEnum):
    """Статусы, которые отдаёт бэкенд на /api/status."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class LifecyclePhase(StrEnum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecyclePhase.COMPLETED, LifecyclePhase.FAILED)


class CancelReason(StrEnum):
    USER = "user"
    SUPERSEDED = "superseded"
    NAVIGATION = "navigation"
    SHUTDOWN = "shutdown"


class Timeframe(StrEnum):
    ONE_WEEK = "1w"
    ONE_MONTH = "1m"
    THREE_MONTHS = "3m"
    SIX_MONTHS = "6m"
    ONE_YEAR = "1y"
    ALL = "all"


class Chain(StrEnum):
    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    BASE = "base"
    ARBITRUM = "arbitrum"
    HYPEREVM = "hyperevm"
