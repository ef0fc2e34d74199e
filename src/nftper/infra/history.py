import logging
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from src.nftper.domain.contracts.history import PopStateListener

logger = logging.getLogger(__name__)


def _relative(url: str) -> str:
    """Оставляем только path + query: origin в стеке истории не меняется."""
    parts = urlsplit(url or "/")
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


class MemoryHistory:
    """
    In-memory стек истории с семантикой History API:
    push обрезает forward-ветку, replace меняет текущую запись,
    back/forward оповещают слушателей popstate.
    """

    def __init__(self, initial_url: str = "/"):
        self._entries: list[tuple[Optional[Mapping[str, Any]], str]] = [(None, _relative(initial_url))]
        self._index = 0
        self._listeners: list[PopStateListener] = []

    @property
    def location(self) -> str:
        return self._entries[self._index][1]

    @property
    def state(self) -> Optional[Mapping[str, Any]]:
        return self._entries[self._index][0]

    @property
    def entries(self) -> list[str]:
        return [url for _, url in self._entries]

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._entries)

    def push_state(self, state: Mapping[str, Any], url: str) -> None:
        del self._entries[self._index + 1:]
        self._entries.append((dict(state), _relative(url)))
        self._index += 1

    def replace_state(self, state: Mapping[str, Any], url: str) -> None:
        self._entries[self._index] = (dict(state), _relative(url))

    def add_popstate_listener(self, listener: PopStateListener) -> None:
        self._listeners.append(listener)

    async def back(self) -> bool:
        return await self.go(-1)

    async def forward(self) -> bool:
        return await self.go(1)

    async def go(self, delta: int) -> bool:
        target = self._index + delta
        if delta == 0 or not (0 <= target < len(self._entries)):
            return False

        self._index = target
        for listener in list(self._listeners):
            try:
                await listener(self.location, self.state)
            except Exception:
                logger.exception("Error in popstate listener %r", listener)
        return True
