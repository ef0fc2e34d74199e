import re
from dataclasses import dataclass
from typing import Iterable, Optional

from src.nftper.domain.enums import Chain, Timeframe
from src.nftper.domain.exceptions import NftperError, ValidationError


WALLET_PATTERN = r"0x[a-f0-9]{40}"
_WALLET_RE = re.compile(rf"^{WALLET_PATTERN}$", re.IGNORECASE)


def is_valid_wallet_address(address: Optional[str]) -> bool:
    return bool(address) and _WALLET_RE.match(address) is not None


def normalize_wallet_address(address: Optional[str]) -> str:
    """
    Проверяет формат адреса (0x + 40 hex, регистр не важен)
    и приводит его к нижнему регистру.
    """
    value = (address or "").strip()
    if not is_valid_wallet_address(value):
        raise ValidationError("Please enter a valid wallet address (0x...)", details={"wallet": address})
    return value.lower()


@dataclass(frozen=True)
class JobParameters:
    timeframe: Timeframe
    chains: tuple[Chain, ...]

    def __post_init__(self):
        try:
            timeframe = Timeframe(self.timeframe)
        except ValueError:
            raise ValidationError(f"Unknown timeframe: {self.timeframe}") from None

        chains: list[Chain] = []
        for raw in self.chains or ():
            try:
                chain = Chain(raw)
            except ValueError:
                raise ValidationError(f"Unknown chain: {raw}") from None
            if chain not in chains:
                chains.append(chain)

        if not chains:
            raise ValidationError("Please select at least one chain")

        # frozen dataclass: нормализуем через object.__setattr__
        object.__setattr__(self, "timeframe", timeframe)
        object.__setattr__(self, "chains", tuple(chains))

    @classmethod
    def of(cls, timeframe: str, chains: Iterable[str]) -> "JobParameters":
        return cls(timeframe=timeframe, chains=tuple(chains))


@dataclass(frozen=True)
class ErrorInfo:
    message: str
    job_id: Optional[str] = None

    @classmethod
    def from_error(cls, error: NftperError) -> "ErrorInfo":
        return cls(message=error.message, job_id=getattr(error, "job_id", None) or None)


@dataclass(frozen=True)
class NavigationRecord:
    """Состояние записи истории: только для сопоставления back/forward с кошельком."""
    subject: str
    path: str

    def to_state(self) -> dict[str, str]:
        return {"wallet": self.subject, "path": self.path}
