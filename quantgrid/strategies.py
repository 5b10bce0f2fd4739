"""
quantgrid -- Strategy definitions.

A strategy is anything with a ``signal(ctx) -> Action`` method and,
optionally, a ``stops(ctx) -> StopLevels`` method that the engine calls
once right after an entry to fix the stop-loss and take-profit prices
for the life of that position.

Each strategy precomputes its indicator series from the full bar
sequence at construction time and only reads positions ``<= ctx.index``
while the backtest runs.  Parameters live in small frozen dataclasses
so that a grid cell's configuration can be logged and serialised as-is.

Families:
  - ``crossover``   -- fast/slow SMA crossover with percentage stops
  - ``oscillator``  -- RSI mean reversion, signal-driven exits only
  - ``breakout``    -- channel breakout with ATR-scaled stops

Add new families by extending :data:`STRATEGY_REGISTRY`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Sequence, Type

from quantgrid.indicators import sma, rsi, atr, rolling_max, rolling_min
from quantgrid.models import (
    Action,
    Bar,
    Position,
    StopLevels,
    Strategy,
    StrategyContext,
    StrategyParams,
)


class UnknownStrategyError(Exception):
    """Raised when a strategy family name is not in the registry."""


def _defined(*values: float) -> bool:
    return not any(math.isnan(v) for v in values)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CrossoverParams:
    """Moving-average crossover settings (percentages as fractions)."""
    fast: int = 10
    slow: int = 40
    stop_pct: float = 0.01
    take_pct: float = 0.02

    def label(self) -> str:
        return f"SMA({self.fast}/{self.slow})"


@dataclass(frozen=True)
class OscillatorParams:
    """RSI reversion settings."""
    period: int = 14
    overbought: float = 70.0
    oversold: float = 30.0
    midline: float = 50.0
    exit_tolerance: float = 2.0

    def label(self) -> str:
        return f"RSI({self.period}/{self.oversold:g}-{self.overbought:g})"


@dataclass(frozen=True)
class BreakoutParams:
    """Channel breakout settings."""
    lookback: int = 50
    atr_period: int = 14
    atr_mult: float = 2.0

    def label(self) -> str:
        return f"BRK({self.lookback})-ATR({self.atr_period}x{self.atr_mult:g})"


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class CrossoverStrategy:
    """Trend following: go long when the fast SMA crosses above the slow.

    The short side mirrors the long side.  Stops are fixed percentages
    of the entry price.
    """

    family = "crossover"
    params_type = CrossoverParams

    def __init__(self, bars: Sequence[Bar], params: CrossoverParams = CrossoverParams()) -> None:
        self.params = params
        closes = [b.close for b in bars]
        self.fast = sma(closes, params.fast)
        self.slow = sma(closes, params.slow)

    def signal(self, ctx: StrategyContext) -> Action:
        i = ctx.index
        if i == 0:
            return Action.HOLD
        fast, slow = self.fast[i], self.slow[i]
        prev_fast, prev_slow = self.fast[i - 1], self.slow[i - 1]
        if not _defined(fast, slow, prev_fast, prev_slow):
            return Action.HOLD
        if ctx.position is not Position.LONG and fast > slow and prev_fast <= prev_slow:
            return Action.LONG
        if ctx.position is not Position.SHORT and fast < slow and prev_fast >= prev_slow:
            return Action.SHORT
        return Action.HOLD

    def stops(self, ctx: StrategyContext) -> StopLevels:
        entry = ctx.entry_price
        p = self.params
        if ctx.position is Position.LONG:
            return StopLevels(stop=entry * (1 - p.stop_pct), take=entry * (1 + p.take_pct))
        if ctx.position is Position.SHORT:
            return StopLevels(stop=entry * (1 + p.stop_pct), take=entry * (1 - p.take_pct))
        return StopLevels()


class OscillatorReversionStrategy:
    """Mean reversion on RSI extremes.

    Buys oversold, sells overbought, and flattens once RSI comes back
    within ``exit_tolerance`` points of the midline.  No stops.
    """

    family = "oscillator"
    params_type = OscillatorParams

    def __init__(self, bars: Sequence[Bar], params: OscillatorParams = OscillatorParams()) -> None:
        self.params = params
        self.rsi = rsi([b.close for b in bars], params.period)

    def signal(self, ctx: StrategyContext) -> Action:
        i = ctx.index
        if i == 0 or math.isnan(self.rsi[i]):
            return Action.HOLD
        value = self.rsi[i]
        p = self.params
        if ctx.position is not Position.LONG and value < p.oversold:
            return Action.LONG
        if ctx.position is not Position.SHORT and value > p.overbought:
            return Action.SHORT
        if ctx.position is not Position.FLAT and abs(value - p.midline) < p.exit_tolerance:
            return Action.EXIT
        return Action.HOLD


class BreakoutStrategy:
    """Donchian-style breakout of the prior bar's high/low channel.

    Stop distance is ``atr_mult`` ATRs and the take-profit sits three
    times further out.  The ATR is read at index ``atr_period`` (clamped
    to the series), not at the entry bar.
    """

    family = "breakout"
    params_type = BreakoutParams

    def __init__(self, bars: Sequence[Bar], params: BreakoutParams = BreakoutParams()) -> None:
        self.params = params
        self.upper = rolling_max([b.high for b in bars], params.lookback)
        self.lower = rolling_min([b.low for b in bars], params.lookback)
        self.atr = atr(bars, params.atr_period)

    def signal(self, ctx: StrategyContext) -> Action:
        i = ctx.index
        if i == 0:
            return Action.HOLD
        upper, lower = self.upper[i - 1], self.lower[i - 1]
        if not _defined(self.upper[i], self.lower[i], upper, lower):
            return Action.HOLD
        close = ctx.bar.close
        if ctx.position is not Position.LONG and close > upper:
            return Action.LONG
        if ctx.position is not Position.SHORT and close < lower:
            return Action.SHORT
        return Action.HOLD

    def _risk(self) -> float:
        if not self.atr:
            return 0.0
        value = self.atr[min(len(self.atr) - 1, max(0, self.params.atr_period))]
        return 0.0 if math.isnan(value) else value

    def stops(self, ctx: StrategyContext) -> StopLevels:
        entry = ctx.entry_price
        distance = self.params.atr_mult * self._risk()
        if ctx.position is Position.LONG:
            return StopLevels(stop=entry - distance, take=entry + 3 * distance)
        if ctx.position is Position.SHORT:
            return StopLevels(stop=entry + distance, take=entry - 3 * distance)
        return StopLevels()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

STRATEGY_REGISTRY: Dict[str, Type[Any]] = {
    CrossoverStrategy.family: CrossoverStrategy,
    OscillatorReversionStrategy.family: OscillatorReversionStrategy,
    BreakoutStrategy.family: BreakoutStrategy,
}


def get_strategy_class(family: str) -> Type[Any]:
    """Look up a strategy class by family name.

    Raises:
        UnknownStrategyError: If the family is not registered.
    """
    cls = STRATEGY_REGISTRY.get(family)
    if cls is None:
        known = ", ".join(sorted(STRATEGY_REGISTRY.keys()))
        raise UnknownStrategyError(
            f"Unknown strategy '{family}'. Registered strategies: {known}"
        )
    return cls


def build_strategy(family: str, bars: Sequence[Bar], **params: Any) -> Strategy:
    """Instantiate a registered strategy with keyword parameters."""
    cls = get_strategy_class(family)
    return cls(bars, cls.params_type(**params))


def params_dict(params: StrategyParams) -> Dict[str, Any]:
    """Plain-dict view of a parameter dataclass."""
    return asdict(params)


def strategy_families() -> List[str]:
    return sorted(STRATEGY_REGISTRY.keys())
