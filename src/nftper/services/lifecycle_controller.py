"""
Контроллер жизненного цикла одной задачи в очереди.

Все изменения состояния выполняются в одной runner-задаче, которая
разбирает inbox: команды пользователя (submit/cancel), итоги submit и
ответы поллинга приходят туда сообщениями и применяются строго по очереди.
Ответ поллинга помечен job_id своего PollHandle и отбрасывается, если
этот handle уже не активен.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Coroutine, Optional

from src.nftper.core.settings import settings
from src.nftper.domain.contracts.transport import PollResponse, SubmitReceipt, TransportClient
from src.nftper.domain.contracts.unload import UnloadHook
from src.nftper.domain.entities.job import Job
from src.nftper.domain.entities.lifecycle_state import LifecycleState
from src.nftper.domain.enums import CancelReason, JobStatus, LifecyclePhase
from src.nftper.domain.events import (
    JobCancelled,
    JobCompleted,
    JobFailed,
    StatusChanged,
    SubmissionFailed,
)
from src.nftper.domain.exceptions import (
    CancellationError,
    ProcessingError,
    SubmissionError,
    TransientPollError,
    ValidationError,
)
from src.nftper.domain.value_objects import ErrorInfo, JobParameters, normalize_wallet_address
from src.nftper.infra.event_bus import EventBus

logger = logging.getLogger(__name__)


class PollHandle:
    """Владение циклом поллинга для конкретного job_id. Остановить его может только контроллер."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        self.ticks = 0
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def attach(self, task: asyncio.Task) -> None:
        self._task = task

    def stop(self) -> bool:
        if self._stopped:
            return False
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def __repr__(self) -> str:
        return f"PollHandle(job_id={self.job_id!r}, ticks={self.ticks}, stopped={self._stopped})"


# Сообщения inbox
@dataclass
class _Submit:
    job: Job
    future: asyncio.Future


@dataclass
class _SubmitOutcome:
    generation: int
    job: Job
    future: asyncio.Future
    receipt: Optional[SubmitReceipt] = None
    error: Optional[SubmissionError] = None


@dataclass
class _PollResult:
    job_id: str
    response: PollResponse


@dataclass
class _Cancel:
    reason: CancelReason
    future: asyncio.Future


_STOP = object()


def _settle(future: asyncio.Future, result: Any = None, error: Optional[BaseException] = None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


class RequestLifecycleController:
    """
    Ведёт ровно одну задачу от submit до терминального исхода.

    Использование::

        async with RequestLifecycleController(transport, bus) as controller:
            job = await controller.submit(wallet, JobParameters.of("1m", ["ethereum"]))
            ...
            await controller.cancel()
    """

    def __init__(
        self,
        transport: TransportClient,
        bus: EventBus,
        *,
        poll_interval: float = settings.poll_interval,
        unload_hook: Optional[UnloadHook] = None,
    ):
        self._transport = transport
        self._bus = bus
        self._poll_interval = poll_interval
        self._unload_hook = unload_hook

        self._state = LifecycleState.idle()
        self._handle: Optional[PollHandle] = None
        # Поколение submit: всё, что пришло от старого поколения, устарело
        self._generation = 0
        self._unload_registered = False

        self._inbox: Optional[asyncio.Queue] = None
        self._runner: Optional[asyncio.Task] = None
        self._background: set[asyncio.Task] = set()

    # Public API
    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def handle(self) -> Optional[PollHandle]:
        return self._handle

    @property
    def is_active(self) -> bool:
        return not self._state.is_idle and not self._state.is_terminal

    async def __aenter__(self) -> "RequestLifecycleController":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def start(self) -> None:
        if self._runner is not None:
            return
        self._inbox = asyncio.Queue()
        self._runner = asyncio.create_task(self._run(), name="nftper-lifecycle")

    async def aclose(self) -> None:
        """Бросает активную задачу (best-effort remove) и останавливает runner."""
        if self._runner is None:
            return

        await self.cancel(CancelReason.SHUTDOWN)
        self._inbox.put_nowait(_STOP)
        await self._runner
        self._runner = None

        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def submit(self, subject: str, parameters: JobParameters) -> Optional[Job]:
        """
        Ставит кошелёк в очередь.

        ValidationError: до любого сетевого вызова, состояние не меняется.
        SubmissionError: бэкенд отклонил запрос, контроллер вернулся в Idle.
        None: запрос был отменён или вытеснен до ответа бэкенда.
        """
        wallet = normalize_wallet_address(subject)
        if not isinstance(parameters, JobParameters):
            raise ValidationError("Job parameters are required")

        self._ensure_running()
        future = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(_Submit(Job(subject=wallet, parameters=parameters), future))
        return await future

    async def cancel(self, reason: CancelReason = CancelReason.USER) -> bool:
        """
        Идемпотентно: без активной задачи no-op без сетевых вызовов.
        Ошибка удаления из очереди только логируется.
        """
        if self._runner is None:
            return False

        future = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(_Cancel(reason, future))
        cancelled, job_id = await future

        if job_id is not None:
            await self._remove_best_effort(job_id)
        return cancelled

    def on_unload(self) -> None:
        """
        Синхронная очистка при закрытии страницы/процесса.
        Ответ не ждём: transport.remove_on_unload это fire-and-forget.
        """
        self._unregister_unload()
        self._generation += 1

        handle, self._handle = self._handle, None
        self._state = LifecycleState.idle()
        if handle is None:
            return

        handle.stop()
        logger.info("unload: removing job %s from queue", handle.job_id)
        self._transport.remove_on_unload(handle.job_id)

    # Runner
    def _ensure_running(self) -> None:
        if self._runner is None:
            raise RuntimeError("Controller is not started; use `async with` or await start()")

    def _post(self, message: Any) -> None:
        if self._inbox is not None and self._runner is not None:
            self._inbox.put_nowait(message)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _run(self) -> None:
        while True:
            message = await self._inbox.get()
            if message is _STOP:
                return
            try:
                self._dispatch(message)
            except Exception as e:
                logger.exception("lifecycle: failed to handle %s", type(message).__name__)
                future = getattr(message, "future", None)
                if future is not None:
                    _settle(future, error=e)

    def _dispatch(self, message: Any) -> None:
        if isinstance(message, _PollResult):
            self._handle_poll_result(message)
        elif isinstance(message, _Submit):
            self._handle_submit(message)
        elif isinstance(message, _SubmitOutcome):
            self._handle_submit_outcome(message)
        elif isinstance(message, _Cancel):
            self._handle_cancel(message)
        else:
            logger.warning("lifecycle: unexpected message %r", message)

    # Submit
    def _handle_submit(self, msg: _Submit) -> None:
        if not self._state.is_idle:
            job_id = self._abandon(CancelReason.SUPERSEDED)
            if job_id is not None:
                # старую задачу удаляем в фоне, новый submit не ждёт
                self._spawn(self._remove_best_effort(job_id))

        self._generation += 1
        self._state = LifecycleState.submitting(msg.job)
        logger.info(
            "submit: wallet=%s timeframe=%s chains=%s",
            msg.job.subject,
            msg.job.parameters.timeframe,
            ",".join(msg.job.parameters.chains),
        )
        self._spawn(self._submit_remote(self._generation, msg.job, msg.future))

    async def _submit_remote(self, generation: int, job: Job, future: asyncio.Future) -> None:
        params = job.parameters
        try:
            receipt = await self._transport.submit(job.subject, params.timeframe, params.chains)
        except SubmissionError as e:
            outcome = _SubmitOutcome(generation, job, future, error=e)
        except Exception as e:
            logger.exception("submit: transport failed for wallet=%s", job.subject)
            outcome = _SubmitOutcome(generation, job, future, error=SubmissionError(str(e) or "Failed to submit request"))
        else:
            outcome = _SubmitOutcome(generation, job, future, receipt=receipt)

        if generation != self._generation or self._runner is None:
            # задачу уже бросили (или runner остановлен): ответ доводим сами, без inbox
            _settle(future, None)
            if outcome.receipt is not None:
                logger.info("submit: job %s accepted after it was abandoned, removing", outcome.receipt.job_id)
                await self._remove_best_effort(outcome.receipt.job_id)
            return
        self._post(outcome)

    def _handle_submit_outcome(self, msg: _SubmitOutcome) -> None:
        if msg.generation != self._generation:
            if msg.receipt is not None:
                logger.info("submit: job %s accepted after it was abandoned, removing", msg.receipt.job_id)
                self._spawn(self._remove_best_effort(msg.receipt.job_id))
            _settle(msg.future, None)
            return

        if msg.error is not None:
            logger.warning("submit: rejected wallet=%s: %s", msg.job.subject, msg.error.message)
            self._state = LifecycleState.failed(msg.job, ErrorInfo.from_error(msg.error))
            self._bus.publish(SubmissionFailed(subject=msg.job.subject, message=msg.error.message))
            self._state = LifecycleState.idle()
            _settle(msg.future, error=msg.error)
            return

        job = msg.job.accepted(msg.receipt.job_id)
        self._state = LifecycleState.queued(job, msg.receipt.position)
        self._handle = self._start_polling(job.job_id)
        self._register_unload()
        logger.info("submit: job %s queued at position %s", job.job_id, msg.receipt.position)
        self._bus.publish(StatusChanged(self._state))
        _settle(msg.future, job)

    # Polling
    def _start_polling(self, job_id: str) -> PollHandle:
        handle = PollHandle(job_id)
        handle.attach(asyncio.create_task(self._poll_loop(handle), name=f"nftper-poll-{job_id}"))
        return handle

    async def _poll_loop(self, handle: PollHandle) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        while not handle.stopped:
            handle.ticks += 1
            try:
                response = await self._transport.poll(handle.job_id)
            except TransientPollError as e:
                # сетевые сбои не прерывают здоровую задачу
                logger.warning("poll: job %s tick %s failed: %s", handle.job_id, handle.ticks, e)
            except Exception:
                logger.exception("poll: job %s tick %s failed", handle.job_id, handle.ticks)
            else:
                if not handle.stopped:
                    self._post(_PollResult(handle.job_id, response))

            now = loop.time()
            next_tick = max(next_tick + self._poll_interval, now)
            await asyncio.sleep(next_tick - now)

    def _handle_poll_result(self, msg: _PollResult) -> None:
        handle = self._handle
        if handle is None or handle.stopped or handle.job_id != msg.job_id:
            logger.debug("poll: discarding stale response for job %s", msg.job_id)
            return

        job = self._state.job
        response = msg.response

        if response.status == JobStatus.QUEUED:
            if self._state.phase == LifecyclePhase.PROCESSING:
                logger.warning("poll: job %s reported queued after processing, ignoring", job.job_id)
                return
            position = response.position if response.position is not None else (self._state.position or 0)
            self._transition(LifecycleState.queued(job, position))

        elif response.status == JobStatus.PROCESSING:
            self._transition(LifecycleState.processing(job))

        elif response.status == JobStatus.COMPLETED:
            self._finish(LifecycleState.completed(job, response.data))
            logger.info("poll: job %s completed", job.job_id)
            self._bus.publish(JobCompleted(job=job, result=response.data))

        elif response.status == JobStatus.ERROR:
            exc = ProcessingError(response.message, job_id=job.job_id)
            error = ErrorInfo.from_error(exc)
            self._finish(LifecycleState.failed(job, error))
            logger.warning("poll: job %s failed: %s", job.job_id, error.message)
            self._bus.publish(JobFailed(job=job, error=error, exception=exc))

        else:
            logger.warning("poll: unknown status %r for job %s", response.status, job.job_id)

    def _transition(self, state: LifecycleState) -> None:
        if state == self._state:
            return
        self._state = state
        self._bus.publish(StatusChanged(state))

    def _finish(self, state: LifecycleState) -> None:
        if self._handle is not None:
            self._handle.stop()
            self._handle = None
        self._unregister_unload()
        self._state = state

    # Cancel
    def _handle_cancel(self, msg: _Cancel) -> None:
        if self._state.is_idle:
            _settle(msg.future, (False, None))
            return
        job_id = self._abandon(msg.reason)
        _settle(msg.future, (True, job_id))

    def _abandon(self, reason: CancelReason) -> Optional[str]:
        """Останавливает цикл, переводит в Idle. Возвращает job_id, который надо удалить из очереди."""
        previous = self._state
        self._generation += 1

        job_id = None
        if self._handle is not None:
            self._handle.stop()
            job_id = self._handle.job_id
            self._handle = None
        self._unregister_unload()

        self._state = LifecycleState.idle()
        if previous.is_terminal:
            # терминальное событие остаётся последним для задачи
            logger.debug("cancel: job %s already %s, back to idle", previous.job_id, previous.phase)
            return job_id

        logger.info("cancel: job %s (%s) abandoned: %s", previous.job_id, previous.phase, reason)
        self._bus.publish(JobCancelled(job=previous.job, previous_phase=previous.phase, reason=reason))
        return job_id

    async def _remove_best_effort(self, job_id: str) -> None:
        try:
            removed = await self._transport.remove(job_id)
        except CancellationError as e:
            logger.warning("cancel: failed to remove job %s from queue: %s", job_id, e)
        except Exception:
            logger.exception("cancel: failed to remove job %s from queue", job_id)
        else:
            logger.info("cancel: job %s removed from queue (success=%s)", job_id, removed)

    # Unload
    def _register_unload(self) -> None:
        if self._unload_hook is None or self._unload_registered:
            return
        self._unload_hook.register(self.on_unload)
        self._unload_registered = True

    def _unregister_unload(self) -> None:
        if self._unload_hook is None or not self._unload_registered:
            return
        self._unload_hook.unregister(self.on_unload)
        self._unload_registered = False
