"""
Синхронная pub-sub шина событий жизненного цикла.

Обработчики вызываются в порядке регистрации (сначала глобальные, потом
по типу). Упавший обработчик логируется и пропускается, остальные
всё равно получают событие.
"""
import logging
from collections import defaultdict
from typing import Callable

from src.nftper.domain.events import LifecycleEvent

logger = logging.getLogger(__name__)

Handler = Callable[[LifecycleEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[type[LifecycleEvent], list[Handler]] = defaultdict(list)
        self._global_handlers: list[Handler] = []

    def subscribe(self, event_type: type[LifecycleEvent], handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def subscribe_all(self, handler: Handler) -> None:
        self._global_handlers.append(handler)

    def publish(self, event: LifecycleEvent) -> None:
        for handler in list(self._global_handlers):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in global event handler %r", handler)

        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler %r for %s", handler, type(event).__name__)
