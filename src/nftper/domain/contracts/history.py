from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

PopStateListener = Callable[[str, Optional[Mapping[str, Any]]], Awaitable[None]]


class History(Protocol):
    """Стек истории браузера: адрес + push/replace без перезагрузки."""

    @property
    def location(self) -> str: ...

    def push_state(self, state: Mapping[str, Any], url: str) -> None: ...
    def replace_state(self, state: Mapping[str, Any], url: str) -> None: ...
    def add_popstate_listener(self, listener: PopStateListener) -> None: ...
