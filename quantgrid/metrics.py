"""
quantgrid -- Performance metrics.

Turns an equity curve and trade log into a :class:`Metrics` record:

  - **Total return** of the curve
  - **Maximum drawdown** (fraction of the running peak)
  - **Sharpe ratio** (annualised, no risk-free rate, hourly bars)
  - **CAGR** approximated from the mean per-step return
  - **Win rate** and **profit factor** from closed trades

The CAGR here is ``(1 + mean_step_return) ** STEPS_PER_YEAR - 1``,
not the compounded total return over elapsed time.  Every optimizer
score depends on it, so changing it changes the rankings.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from quantgrid.models import EquityPoint, InvalidArgumentError, Metrics, Trade


# 24 hourly bars x 252 trading days
STEPS_PER_YEAR = 24 * 252


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _step_returns(equity_curve: Sequence[EquityPoint]) -> List[float]:
    """Relative change between consecutive equity points.

    A step starting from non-positive equity has no defined return and
    counts as 0.0.
    """
    returns = []
    for i in range(1, len(equity_curve)):
        prev = equity_curve[i - 1].value
        curr = equity_curve[i].value
        if prev > 0:
            returns.append((curr - prev) / prev)
        else:
            returns.append(0.0)
    return returns


def _max_drawdown(equity_curve: Sequence[EquityPoint]) -> float:
    """Largest fractional decline from a running peak."""
    peak = -math.inf
    max_dd = 0.0
    for point in equity_curve:
        peak = max(peak, point.value)
        dd = (peak - point.value) / peak if peak > 0 else 0.0
        if dd > max_dd:
            max_dd = dd
    return max_dd


def _mean_and_stdev(returns: Sequence[float]):
    """Mean and population standard deviation (0, 0 for no returns)."""
    n = max(1, len(returns))
    mean = sum(returns) / n
    variance = sum((r - mean) ** 2 for r in returns) / n
    return mean, math.sqrt(variance)


def _sharpe_ratio(mean: float, stdev: float) -> float:
    if stdev == 0:
        return 0.0
    return (mean * STEPS_PER_YEAR) / (stdev * math.sqrt(STEPS_PER_YEAR))


def _cagr(mean: float) -> float:
    """Annualise the mean step return; saturates to inf on overflow."""
    try:
        return (1 + mean) ** STEPS_PER_YEAR - 1
    except OverflowError:
        return math.inf


def _profit_factor(gross_profit: float, gross_loss: float) -> float:
    if gross_loss == 0:
        return math.inf if gross_profit > 0 else 0.0
    return gross_profit / gross_loss


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def compute_metrics(equity_curve: Sequence[EquityPoint], trades: Sequence[Trade]) -> Metrics:
    """Compute summary statistics for one run.

    Args:
        equity_curve: At least one :class:`EquityPoint`.
        trades: Closed trades, possibly empty.

    Returns:
        A :class:`Metrics` with ``score`` left at zero.

    Raises:
        InvalidArgumentError: If ``equity_curve`` is empty.
    """
    if not equity_curve:
        raise InvalidArgumentError("equity_curve", "needs at least one point")

    start = equity_curve[0].value
    end = equity_curve[-1].value
    total_return = (end - start) / start if start > 0 else 0.0

    mean, stdev = _mean_and_stdev(_step_returns(equity_curve))

    # Breakeven trades count as wins
    wins = [t.pnl for t in trades if t.pnl >= 0]
    losses = [t.pnl for t in trades if t.pnl < 0]
    gross_profit = sum(wins)
    gross_loss = -sum(losses)
    num_trades = len(trades)

    return Metrics(
        total_return=total_return,
        max_drawdown=_max_drawdown(equity_curve),
        cagr=_cagr(mean),
        sharpe=_sharpe_ratio(mean, stdev),
        num_trades=num_trades,
        win_rate=len(wins) / num_trades if num_trades > 0 else 0.0,
        profit_factor=_profit_factor(gross_profit, gross_loss),
    )
