"""
Иерархия ошибок клиента очереди.

Пользователю показываются только ValidationError, SubmissionError и
ProcessingError. TransientPollError и CancellationError остаются внутри
контроллера и только логируются.
"""
from typing import Any


class NftperError(Exception):
    """Базовая ошибка клиента."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = details or {}


class ValidationError(NftperError, ValueError):
    """Некорректный адрес кошелька или пустой набор параметров. Сеть не трогаем."""


class SubmissionError(NftperError):
    """Бэкенд отклонил постановку в очередь."""


class TransientPollError(NftperError):
    """Сетевой/протокольный сбой на тике поллинга. Цикл продолжает работу."""

    def __init__(self, message: str = "Failed to get status", job_id: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.job_id = job_id


class ProcessingError(NftperError):
    """
    Бэкенд явно вернул статус "error" для задачи.
    Не бросается: приходит пользователю в JobFailed.exception.
    """

    def __init__(self, message: str | None = None, job_id: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message or "Processing failed", details)
        self.job_id = job_id


class CancellationError(NftperError):
    """Не удалось удалить задачу из очереди. Не повторяем, не показываем."""

    def __init__(self, message: str = "Failed to remove from queue", job_id: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.job_id = job_id
