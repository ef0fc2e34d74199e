from dataclasses import dataclass
from typing import Any, Mapping, Optional

from src.nftper.domain.entities.lifecycle_state import LifecycleState
from src.nftper.domain.enums import LifecyclePhase


TIMEFRAMES = {
    "1w": "1 Week",
    "1m": "1 Month",
    "3m": "3 Months",
    "6m": "6 Months",
    "1y": "1 Year",
    "all": "All Time",
}


def _safe_float(x: Any, default: float = 0.0) -> float:
    try:
        return float(x)
    except Exception:
        return default


def _safe_int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except Exception:
        return default


def timeframe_display(code: str) -> str:
    return TIMEFRAMES.get(str(code), str(code))


def truncate_address(address: Optional[str]) -> str:
    if not address or len(address) < 10:
        return address or ""
    return f"{address[:6]}...{address[-4:]}"


def format_number(value: float, decimals: int = 4) -> str:
    return f"{value:.{decimals}f}"


def format_pnl(value: float) -> str:
    prefix = "+" if value >= 0 else ""
    return f"{prefix}{format_number(value, 4)} ETH"


@dataclass(frozen=True)
class StatusView:
    phase: str
    headline: str
    message: str
    position: Optional[int] = None


def present_status(state: LifecycleState) -> StatusView:
    phase = state.phase

    if phase == LifecyclePhase.SUBMITTING:
        return StatusView(phase=phase, headline="Checking...", message="Submitting your request...")

    if phase == LifecyclePhase.QUEUED:
        position = state.position or 0
        return StatusView(
            phase=phase,
            headline=f"You are #{position} in queue",
            message="Please wait while we process your request...",
            position=position,
        )

    if phase == LifecyclePhase.PROCESSING:
        return StatusView(phase=phase, headline="Processing...", message="Processing your request...", position=0)

    if phase == LifecyclePhase.COMPLETED:
        return StatusView(phase=phase, headline="Done", message="Your results are ready")

    if phase == LifecyclePhase.FAILED:
        message = state.error.message if state.error else "An error occurred while processing"
        return StatusView(phase=phase, headline="Error", message=message)

    return StatusView(phase=phase, headline="Check Profit", message="Enter a wallet address to start")


@dataclass(frozen=True)
class SummaryView:
    wallet: str
    wallet_short: str
    timeframe: str

    flip_count: int
    winning_count: int
    losing_count: int
    win_rate: str

    total_spend: str
    total_sold: str
    total_pnl: str
    roi: str
    is_profit: bool


def present_summary(result: Optional[Mapping[str, Any]], wallet: str, timeframe: str) -> SummaryView:
    """Сводка по результату анализа; структура result опциональна, всё читаем мягко."""
    summary: Mapping[str, Any] = (result or {}).get("summary") or {}

    pnl = _safe_float(summary.get("totalProfitLoss", 0.0))
    flip_count = _safe_int(summary.get("flipCount", 0))
    win_rate = _safe_float(summary.get("winRate", 0.0))

    total_spend = _safe_float(summary.get("totalSpend") or summary.get("totalVolume") or 0.0)
    total_sold = _safe_float(summary.get("totalSold") or (total_spend + pnl))
    winning_count = _safe_int(summary.get("winningCount") or round(flip_count * (win_rate / 100)))
    losing_count = flip_count - winning_count

    roi = (pnl / total_spend) * 100 if total_spend > 0 else 0.0

    return SummaryView(
        wallet=wallet,
        wallet_short=truncate_address(wallet),
        timeframe=timeframe_display(timeframe),
        flip_count=flip_count,
        winning_count=winning_count,
        losing_count=losing_count,
        win_rate=f"{round(win_rate)}%",
        total_spend=format_number(total_spend, 2),
        total_sold=format_number(total_sold, 2),
        total_pnl=format_pnl(pnl),
        roi=f"{'+' if roi >= 0 else ''}{roi:.1f}%",
        is_profit=pnl >= 0,
    )
