import logging
import re
from typing import Any, Callable, Mapping, Optional, Sequence
from urllib.parse import parse_qs, urlsplit

from src.nftper.core.settings import settings
from src.nftper.domain.contracts.history import History
from src.nftper.domain.enums import CancelReason
from src.nftper.domain.events import InputRequested, JobCancelled, JobCompleted
from src.nftper.domain.exceptions import NftperError
from src.nftper.domain.value_objects import (
    WALLET_PATTERN,
    JobParameters,
    NavigationRecord,
    is_valid_wallet_address,
)
from src.nftper.infra.event_bus import EventBus
from src.nftper.services.lifecycle_controller import RequestLifecycleController

logger = logging.getLogger(__name__)

ROOT_PATH = "/"
_PATH_WALLET_RE = re.compile(rf"^/({WALLET_PATTERN})", re.IGNORECASE)


def wallet_from_url(url: Optional[str]) -> Optional[str]:
    """
    Достаёт кошелёк из адреса.
    Поддерживается /0x... (путь) и ?wallet=0x... (query), результат в нижнем регистре.
    """
    parts = urlsplit(url or "")

    m = _PATH_WALLET_RE.match(parts.path or "")
    if m:
        return m.group(1).lower()

    wallet = (parse_qs(parts.query).get("wallet") or [None])[0]
    if wallet and is_valid_wallet_address(wallet):
        return wallet.lower()

    return None


def wallet_path(wallet: str) -> str:
    return f"/{wallet.lower()}"


class NavigationStateSync:
    """
    Связывает жизненный цикл задачи с адресной строкой и историей.

    Источником правды о задаче не является: back/forward на адрес с
    кошельком всегда запускает новый запрос, а не восстанавливает данные.
    """

    def __init__(
        self,
        controller: RequestLifecycleController,
        history: History,
        bus: EventBus,
        *,
        default_timeframe: str = settings.DEFAULT_TIMEFRAME,
        chains_provider: Optional[Callable[[], Sequence[str]]] = None,
    ):
        self.controller = controller
        self.history = history
        self.bus = bus
        self.default_timeframe = default_timeframe
        self.chains_provider = chains_provider or (lambda: list(settings.DEFAULT_CHAINS))

        bus.subscribe(JobCompleted, self._on_completed)
        bus.subscribe(JobCancelled, self._on_cancelled)
        history.add_popstate_listener(self.on_popstate)

    async def start(self) -> bool:
        """Deep link при старте: валидный кошелёк в адресе -> auto-submit."""
        wallet = wallet_from_url(self.history.location)
        if wallet is None:
            self.bus.publish(InputRequested(url=self.history.location))
            return False

        logger.info("navigation: deep link for wallet=%s", wallet)
        return await self._resubmit(wallet)

    async def on_popstate(self, url: str, state: Optional[Mapping[str, Any]] = None) -> None:
        wallet = wallet_from_url(url)
        if wallet is not None:
            logger.info("navigation: popstate to wallet=%s, submitting fresh request", wallet)
            await self._resubmit(wallet)
            return

        await self.controller.cancel(CancelReason.NAVIGATION)
        self.bus.publish(InputRequested(url=url))

    async def _resubmit(self, wallet: str) -> bool:
        try:
            params = JobParameters.of(self.default_timeframe, self.chains_provider())
            job = await self.controller.submit(wallet, params)
        except NftperError as e:
            # презентер уже получил SubmissionFailed; ValidationError тут только от конфигурации
            logger.warning("navigation: submit for wallet=%s failed: %s", wallet, e)
            return False
        return job is not None

    # Реакция на события контроллера
    def _on_completed(self, event: JobCompleted) -> None:
        record = NavigationRecord(subject=event.job.subject, path=wallet_path(event.job.subject))

        # адрес уже показывает этот кошелёк (deep link / back-forward), не дублируем запись
        if wallet_from_url(self.history.location) == record.subject:
            self.history.replace_state(record.to_state(), record.path)
        else:
            self.history.push_state(record.to_state(), record.path)

    def _on_cancelled(self, event: JobCancelled) -> None:
        if event.reason != CancelReason.USER:
            return
        self.history.replace_state({}, ROOT_PATH)
