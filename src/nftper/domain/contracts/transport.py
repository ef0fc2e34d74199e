from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Sequence


@dataclass(frozen=True)
class SubmitReceipt:
    job_id: str
    position: int


@dataclass(frozen=True)
class PollResponse:
    status: str
    position: Optional[int] = None
    data: Optional[Mapping[str, Any]] = None
    message: Optional[str] = None


class TransportClient(Protocol):
    """
    Сетевые операции, нужные контроллеру.

    submit -> SubmissionError при неуспешном ответе;
    poll -> TransientPollError при сетевом/протокольном сбое
            (статус "error" это нормальный ответ, не исключение);
    remove -> CancellationError, вызывающий код её только логирует;
    remove_on_unload -> fire-and-forget, никогда не бросает.
    """

    async def submit(self, subject: str, timeframe: str, chains: Sequence[str]) -> SubmitReceipt: ...
    async def poll(self, job_id: str) -> PollResponse: ...
    async def remove(self, job_id: str) -> bool: ...
    def remove_on_unload(self, job_id: str) -> None: ...
