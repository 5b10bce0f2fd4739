"""
quantgrid -- Simulation data models.

Immutable dataclasses shared by the generator, strategies, engine,
metrics and optimizer.  Only the engine's running state
(:class:`quantgrid.engine.SimulationState`) is mutable, and it never
leaves a single backtest run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any, Sequence, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class InvalidArgumentError(ValueError):
    """Raised when a caller passes a malformed argument at the boundary.

    Attributes:
        parameter: Name of the offending argument (e.g. ``"period"``).
    """

    def __init__(self, parameter: str, message: str) -> None:
        super().__init__(f"Invalid argument '{parameter}': {message}")
        self.parameter = parameter


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Position(Enum):
    """Direction of the single open position (or lack of one).

    The value doubles as the position multiplier used for
    mark-to-market and P&L: +1 long, -1 short, 0 flat.
    """
    FLAT = 0
    LONG = 1
    SHORT = -1

    @property
    def sign(self) -> int:
        return self.value


class Action(Enum):
    """Decision returned by a strategy's ``signal`` for one bar."""
    HOLD = "hold"
    LONG = "long"
    SHORT = "short"
    EXIT = "exit"


# ---------------------------------------------------------------------------
# Market data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Bar:
    """A single OHLC price bar.

    Attributes:
        index: Position of the bar in its sequence (0-based).
        open: Opening price.
        high: High price.
        low: Low price.
        close: Closing price.
    """
    index: int
    open: float
    high: float
    low: float
    close: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def bars_from_dicts(records: Sequence[Dict[str, Any]]) -> List[Bar]:
    """Build :class:`Bar` objects from a list of dicts (useful for tests).

    Each dict needs ``open``, ``high``, ``low`` and ``close``.  The
    ``index`` key is optional; when absent the list position is used.
    Bars are returned ordered by index.
    """
    bars: List[Bar] = []
    for pos, rec in enumerate(records):
        bars.append(Bar(
            index=int(rec.get("index", pos)),
            open=float(rec["open"]),
            high=float(rec["high"]),
            low=float(rec["low"]),
            close=float(rec["close"]),
        ))
    bars.sort(key=lambda b: b.index)
    return bars


def bars_from_closes(closes: Sequence[float]) -> List[Bar]:
    """Build flat bars (open = high = low = close) from a close series."""
    return [
        Bar(index=i, open=float(c), high=float(c), low=float(c), close=float(c))
        for i, c in enumerate(closes)
    ]


# ---------------------------------------------------------------------------
# Strategy contract
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StrategyContext:
    """Read-only view handed to a strategy on every bar.

    Strategies may look backward through ``bars`` but never past
    ``index``.  ``entry_price`` is only meaningful when the context is
    passed to ``stops`` right after an entry.
    """
    index: int
    bar: Bar
    bars: Sequence[Bar]
    position: Position
    equity: float
    entry_price: float = 0.0


@dataclass(frozen=True)
class StopLevels:
    """Stop-loss and take-profit prices fixed at entry (``None`` = unset)."""
    stop: Optional[float] = None
    take: Optional[float] = None


@runtime_checkable
class Strategy(Protocol):
    """What the engine needs from a strategy: one action per bar.

    Strategies that place protective orders also define
    ``stops(ctx) -> StopLevels``; the engine looks it up with
    ``getattr`` and skips it when absent.
    """

    def signal(self, ctx: StrategyContext) -> Action:
        ...


@runtime_checkable
class StrategyParams(Protocol):
    """A grid cell: frozen, hashable, and able to name its agent."""

    def label(self) -> str:
        ...


# ---------------------------------------------------------------------------
# Trades & equity
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Trade:
    """A closed round-trip trade.

    Attributes:
        entry_price: Close of the entry bar.
        exit_price: Close of the exit bar, or the breached stop/take level.
        exit_index: Index of the bar on which the position closed.
        side: Direction of the closed position (LONG or SHORT).
        pnl: Realised fractional return net of the exit fee.
        entry_index: Index of the bar on which the position opened.
        exit_reason: ``"stop"``, ``"take"``, ``"exit"`` or ``"reverse"``.
    """
    entry_price: float
    exit_price: float
    exit_index: int
    side: Position
    pnl: float
    entry_index: int = 0
    exit_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "entry_index": self.entry_index,
            "exit_index": self.exit_index,
            "side": self.side.name,
            "pnl": self.pnl,
            "exit_reason": self.exit_reason,
        }


@dataclass(frozen=True)
class EquityPoint:
    """Equity value recorded after processing bar ``index``."""
    index: int
    value: float

    def to_dict(self) -> Dict[str, float]:
        return {"index": self.index, "value": self.value}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Metrics:
    """Summary statistics for one completed run.

    ``score`` is left at zero by :func:`quantgrid.metrics.compute_metrics`
    and filled in by the optimizer.
    """
    total_return: float = 0.0
    max_drawdown: float = 0.0
    cagr: float = 0.0
    sharpe: float = 0.0
    num_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    score: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = asdict(self)
        # JSON has no infinity / NaN literals
        for key, value in data.items():
            if isinstance(value, float) and not math.isfinite(value):
                data[key] = str(value)
        return data


@dataclass(frozen=True)
class BacktestResult:
    """Output of :meth:`quantgrid.engine.Engine.run`.

    ``final_position`` is the position still open after the last bar;
    open positions are not force-closed and produce no trade.
    """
    equity_curve: List[EquityPoint] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    final_position: Position = Position.FLAT
    bars_processed: int = 0


@dataclass(frozen=True)
class Agent:
    """One scored grid cell: a strategy instance and its backtest outcome."""
    name: str
    family: str
    params: Dict[str, Any]
    equity: List[EquityPoint]
    trades: List[Trade]
    metrics: Metrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "family": self.family,
            "params": dict(self.params),
            "equity": [p.to_dict() for p in self.equity],
            "trades": [t.to_dict() for t in self.trades],
            "metrics": self.metrics.to_dict(),
        }
