import logging
from typing import Optional, Sequence

import httpx

from src.nftper.api.schemas import (
    BeaconRemoveRequest,
    CheckWalletRequest,
    CheckWalletResponse,
    ErrorResponse,
    RemoveResponse,
    StatusResponse,
    poll_from_response,
    receipt_from_response,
)
from src.nftper.core.settings import settings
from src.nftper.domain.contracts.transport import PollResponse, SubmitReceipt
from src.nftper.domain.exceptions import CancellationError, SubmissionError, TransientPollError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, default: str) -> str:
    """Бэкенд кладёт текст ошибки в поле message; если тело не JSON, дефолт."""
    try:
        payload = ErrorResponse.model_validate(response.json())
    except ValueError:
        return default
    return payload.message or default


class HttpTransportClient:
    """
    HTTP-клиент очереди поверх httpx.

    submit/poll/remove идут через общий AsyncClient;
    remove_on_unload: синхронный запрос с коротким таймаутом,
    чтобы успеть до завершения процесса (аналог sendBeacon).
    """

    def __init__(
        self,
        base_url: str = settings.API_URL,
        timeout: float = settings.REQUEST_TIMEOUT_SECONDS,
        unload_timeout: float = settings.UNLOAD_TIMEOUT_SECONDS,
        *,
        client: Optional[httpx.AsyncClient] = None,
        unload_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Content-Type": "application/json"},
        )
        self._unload_timeout = unload_timeout
        self._unload_transport = unload_transport

    async def __aenter__(self) -> "HttpTransportClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def submit(self, subject: str, timeframe: str, chains: Sequence[str]) -> SubmitReceipt:
        body = CheckWalletRequest(wallet=subject, timeframe=str(timeframe), chains=[str(c) for c in chains])

        try:
            response = await self._client.post("/api/check", json=body.model_dump())
        except httpx.HTTPError as e:
            raise SubmissionError(f"Failed to submit wallet: {e}") from e

        if response.is_error:
            raise SubmissionError(
                _error_message(response, "Failed to submit wallet"),
                details={"status_code": response.status_code},
            )

        try:
            payload = CheckWalletResponse.model_validate(response.json())
        except ValueError as e:
            raise SubmissionError("Unexpected response from queue") from e

        return receipt_from_response(payload)

    async def poll(self, job_id: str) -> PollResponse:
        try:
            response = await self._client.get(f"/api/status/{job_id}")
        except httpx.HTTPError as e:
            raise TransientPollError(f"Failed to get status: {e}", job_id=job_id) from e

        if response.is_error:
            raise TransientPollError(
                _error_message(response, "Failed to get status"),
                job_id=job_id,
                details={"status_code": response.status_code},
            )

        try:
            payload = StatusResponse.model_validate(response.json())
        except ValueError as e:
            raise TransientPollError("Malformed status response", job_id=job_id) from e

        return poll_from_response(payload)

    async def remove(self, job_id: str) -> bool:
        try:
            response = await self._client.delete(f"/api/queue/{job_id}")
        except httpx.HTTPError as e:
            raise CancellationError(f"Failed to remove from queue: {e}", job_id=job_id) from e

        if response.is_error:
            raise CancellationError(
                _error_message(response, "Failed to remove from queue"),
                job_id=job_id,
                details={"status_code": response.status_code},
            )

        try:
            return RemoveResponse.model_validate(response.json()).success
        except ValueError:
            # DELETE уже прошёл, тело нам не важно
            return True

    def remove_on_unload(self, job_id: str) -> None:
        url = f"{self.base_url}/api/queue/{job_id}"
        try:
            with httpx.Client(timeout=self._unload_timeout, transport=self._unload_transport) as client:
                client.post(url, json=BeaconRemoveRequest().model_dump())
        except httpx.HTTPError as e:
            logger.warning("unload: remove beacon for job %s not delivered: %s", job_id, e)
