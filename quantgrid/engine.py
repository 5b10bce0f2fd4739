"""
quantgrid -- Backtesting engine.

Replays a bar sequence through one strategy instance and produces the
equity curve and trade log.

Usage::

    from quantgrid import Engine, CrossoverStrategy, generate_price_series

    bars = generate_price_series(2000, 1 / 24)
    result = Engine().run(bars, CrossoverStrategy(bars))

Per bar ``i >= 1`` the engine:
  1. Marks any open position to market at the close.
  2. Checks the stop-loss, then the take-profit.  A breach closes the
     position at the breached level, records the equity point and skips
     the strategy for this bar.
  3. Asks the strategy for a signal.  EXIT flattens; LONG / SHORT close
     an opposing position at the close and open the new one, fixing its
     stops via ``strategy.stops``.
  4. Records the equity point for the bar.

Bar 0 only seeds the curve with equity 1.0.  A position still open
after the last bar is reported in ``final_position`` and left open.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from quantgrid.models import (
    Action,
    Bar,
    BacktestResult,
    EquityPoint,
    InvalidArgumentError,
    Position,
    StopLevels,
    Strategy,
    StrategyContext,
    Trade,
)
from quantgrid.utils import get_logger

logger = get_logger(__name__)

# One-way cost charged once per closing trade
DEFAULT_FEE = 0.0001
INITIAL_EQUITY = 1.0


@dataclass
class SimulationState:
    """Mutable running state of a single backtest."""
    position: Position = Position.FLAT
    entry_price: float = 0.0
    entry_index: int = 0
    stop: Optional[float] = None
    take: Optional[float] = None
    equity: float = INITIAL_EQUITY

    def reset_position(self) -> None:
        self.position = Position.FLAT
        self.entry_price = 0.0
        self.entry_index = 0
        self.stop = None
        self.take = None


def _level(value: Optional[float]) -> Optional[float]:
    if value is None or math.isnan(value):
        return None
    return value


class Engine:
    """Bar-by-bar backtesting engine.

    Args:
        fee: Fractional transaction cost deducted once per closing trade.
    """

    def __init__(self, fee: float = DEFAULT_FEE) -> None:
        self.fee = fee

    def run(self, bars: Sequence[Bar], strategy: Strategy) -> BacktestResult:
        """Execute the backtest.

        Args:
            bars: Bar sequence with indices increasing from 0.
            strategy: Object exposing ``signal(ctx)`` and optionally
                ``stops(ctx)``.

        Returns:
            A :class:`BacktestResult` with one equity point per bar.

        Raises:
            InvalidArgumentError: If ``bars`` is empty.
        """
        if not bars:
            raise InvalidArgumentError("bars", "bar sequence is empty")

        state = SimulationState()
        equity_curve: List[EquityPoint] = [EquityPoint(index=bars[0].index, value=state.equity)]
        trades: List[Trade] = []

        for i in range(1, len(bars)):
            bar = bars[i]
            prev = bars[i - 1]

            # 1. Mark-to-market
            if state.position is not Position.FLAT:
                state.equity *= 1 + state.position.sign * (bar.close - prev.close) / prev.close

            # 2. Stop / take-profit take precedence over new signals
            if state.position is not Position.FLAT:
                breach = self._check_stops(state, bar)
                if breach is not None:
                    price, reason = breach
                    state.equity *= (
                        1 + state.position.sign * (price - bar.close) / state.entry_price - self.fee
                    )
                    trades.append(self._close(state, i, price, reason))
                    equity_curve.append(EquityPoint(index=bar.index, value=state.equity))
                    continue

            # 3. Strategy signal
            ctx = StrategyContext(
                index=i, bar=bar, bars=bars,
                position=state.position, equity=state.equity,
            )
            action = strategy.signal(ctx)

            if action is Action.EXIT:
                if state.position is not Position.FLAT:
                    trades.append(self._close(state, i, bar.close, "exit"))
            elif action is Action.LONG:
                self._enter(state, strategy, bars, i, Position.LONG, trades)
            elif action is Action.SHORT:
                self._enter(state, strategy, bars, i, Position.SHORT, trades)

            # 4. Record equity at bar close
            equity_curve.append(EquityPoint(index=bar.index, value=state.equity))

        return BacktestResult(
            equity_curve=equity_curve,
            trades=trades,
            final_position=state.position,
            bars_processed=len(bars),
        )

    # ------------------------------------------------------------------
    # Position handling
    # ------------------------------------------------------------------

    @staticmethod
    def _check_stops(state: SimulationState, bar: Bar) -> Optional[Tuple[float, str]]:
        """Return the breached ``(level, reason)``, stop checked first."""
        if state.stop is not None:
            if state.position is Position.LONG and bar.low <= state.stop:
                return state.stop, "stop"
            if state.position is Position.SHORT and bar.high >= state.stop:
                return state.stop, "stop"
        if state.take is not None:
            if state.position is Position.LONG and bar.high >= state.take:
                return state.take, "take"
            if state.position is Position.SHORT and bar.low <= state.take:
                return state.take, "take"
        return None

    def _close(self, state: SimulationState, index: int, price: float, reason: str) -> Trade:
        """Book a trade for the open position and go flat."""
        side = state.position
        pnl = side.sign * (price - state.entry_price) / state.entry_price - self.fee
        trade = Trade(
            entry_price=state.entry_price,
            exit_price=price,
            exit_index=index,
            side=side,
            pnl=pnl,
            entry_index=state.entry_index,
            exit_reason=reason,
        )
        logger.debug(
            "Trade closed: %s %d->%d entry=%.5f exit=%.5f pnl=%.5f (%s)",
            side.name, state.entry_index, index, state.entry_price, price, pnl, reason,
        )
        state.reset_position()
        return trade

    def _enter(
        self,
        state: SimulationState,
        strategy: Strategy,
        bars: Sequence[Bar],
        index: int,
        side: Position,
        trades: List[Trade],
    ) -> None:
        """Open ``side`` at the bar close, reversing any opposing position."""
        if state.position is side:
            return
        bar = bars[index]
        if state.position is not Position.FLAT:
            trades.append(self._close(state, index, bar.close, "reverse"))

        state.position = side
        state.entry_price = bar.close
        state.entry_index = index

        levels = StopLevels()
        stops = getattr(strategy, "stops", None)
        if stops is not None:
            levels = stops(StrategyContext(
                index=index, bar=bar, bars=bars,
                position=side, equity=state.equity,
                entry_price=bar.close,
            ))
        state.stop = _level(levels.stop)
        state.take = _level(levels.take)


def run_backtest(bars: Sequence[Bar], strategy: Strategy, fee: float = DEFAULT_FEE) -> BacktestResult:
    """Convenience wrapper around :meth:`Engine.run`."""
    return Engine(fee=fee).run(bars, strategy)
