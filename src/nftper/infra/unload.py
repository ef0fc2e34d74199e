import atexit
from typing import Callable


class AtexitUnloadHook:
    """
    Завершение процесса как аналог закрытия вкладки.
    Один и тот же callback регистрируется не более одного раза.
    """

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], None]] = []

    def register(self, callback: Callable[[], None]) -> None:
        if callback in self._callbacks:
            return
        self._callbacks.append(callback)
        atexit.register(callback)

    def unregister(self, callback: Callable[[], None]) -> None:
        if callback not in self._callbacks:
            return
        self._callbacks.remove(callback)
        atexit.unregister(callback)
