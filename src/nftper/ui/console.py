import asyncio
import sys
from typing import Optional, TextIO

from src.nftper.domain.events import (
    InputRequested,
    JobCancelled,
    JobCompleted,
    JobFailed,
    StatusChanged,
    SubmissionFailed,
)
from src.nftper.domain.enums import CancelReason
from src.nftper.domain.exceptions import ProcessingError
from src.nftper.infra.event_bus import EventBus
from src.nftper.ui.presenters.status_presenter import present_status, present_summary


class ConsolePresenter:
    """
    Презентер для CLI: печатает статус очереди и итоговую сводку.
    `finished` выставляется на терминальном исходе (или возврате к вводу).
    """

    def __init__(self, bus: EventBus, out: Optional[TextIO] = None):
        self.out = out or sys.stdout
        self.finished = asyncio.Event()
        self.succeeded: Optional[bool] = None
        self.error: Optional[ProcessingError] = None

        bus.subscribe(StatusChanged, self.on_status)
        bus.subscribe(JobCompleted, self.on_completed)
        bus.subscribe(JobFailed, self.on_failed)
        bus.subscribe(SubmissionFailed, self.on_submission_failed)
        bus.subscribe(JobCancelled, self.on_cancelled)
        bus.subscribe(InputRequested, self.on_input_requested)

    def _print(self, line: str) -> None:
        print(line, file=self.out, flush=True)

    def _finish(self, succeeded: bool) -> None:
        self.succeeded = succeeded
        self.finished.set()

    def on_status(self, event: StatusChanged) -> None:
        view = present_status(event.state)
        self._print(f"[{view.phase}] {view.headline}: {view.message}")

    def on_completed(self, event: JobCompleted) -> None:
        s = present_summary(event.result, event.job.subject, event.job.parameters.timeframe)
        self._print(f"Wallet:     {s.wallet_short} ({s.wallet})")
        self._print(f"Period:     {s.timeframe}")
        self._print(f"Total P/L:  {s.total_pnl}  ROI {s.roi}")
        self._print(f"Flips:      {s.flip_count} ({s.winning_count} won / {s.losing_count} lost, win rate {s.win_rate})")
        self._print(f"Spent/Sold: {s.total_spend} / {s.total_sold} ETH")
        self._finish(True)

    def on_failed(self, event: JobFailed) -> None:
        self.error = event.exception
        self._print(f"Error: {event.error.message}")
        self._finish(False)

    def on_submission_failed(self, event: SubmissionFailed) -> None:
        self._print(f"Error: {event.message}")
        self._finish(False)

    def on_cancelled(self, event: JobCancelled) -> None:
        if event.reason == CancelReason.SUPERSEDED:
            return
        self._print("Request cancelled")
        self._finish(False)

    def on_input_requested(self, event: InputRequested) -> None:
        self._print("No wallet in URL. Usage: nftper 0x... or nftper --url /0x...")
        self._finish(False)
