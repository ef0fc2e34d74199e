from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.nftper.domain.contracts.transport import PollResponse, SubmitReceipt


# Check
class CheckWalletRequest(BaseModel):
    wallet: str
    timeframe: str
    chains: list[str] = Field(default_factory=list)


class CheckWalletResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True, extra="ignore")

    queue_id: str = Field(..., alias="queueId")
    position: int = 0


# Status
class StatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str
    position: Optional[int] = None
    data: Optional[dict[str, Any]] = None
    message: Optional[str] = None


# Queue
class RemoveResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    success: bool = False


class BeaconRemoveRequest(BaseModel):
    action: str = "remove"


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None


# Мапперы API DTO -> домен
def receipt_from_response(resp: CheckWalletResponse) -> SubmitReceipt:
    return SubmitReceipt(job_id=resp.queue_id, position=max(0, resp.position))


def poll_from_response(resp: StatusResponse) -> PollResponse:
    return PollResponse(
        status=resp.status,
        position=resp.position,
        data=resp.data,
        message=resp.message,
    )
