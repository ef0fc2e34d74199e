from typing import Callable, Protocol


class UnloadHook(Protocol):
    """Сигнал закрытия страницы/процесса."""

    def register(self, callback: Callable[[], None]) -> None: ...
    def unregister(self, callback: Callable[[], None]) -> None: ...
