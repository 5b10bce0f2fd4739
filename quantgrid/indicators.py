"""
quantgrid -- Rolling technical indicators.

Every function returns a list aligned index-for-index with its input.
Positions without enough history hold ``math.nan`` rather than zero so
that strategies can tell "not yet defined" apart from a real value.

Provides:
  - Simple and exponential moving averages
  - Relative strength index (Wilder smoothing)
  - Average true range
  - Rolling max / min (monotonic deque)
"""

from __future__ import annotations

import math
from collections import deque
from typing import Deque, List, Sequence

from quantgrid.models import Bar, InvalidArgumentError


NAN = math.nan

# RS used when the average loss is exactly zero
ZERO_LOSS_RS = 100.0


def _check_period(period: int) -> None:
    if period <= 0:
        raise InvalidArgumentError("period", f"must be positive, got {period}")


def sma(values: Sequence[float], period: int) -> List[float]:
    """Simple moving average, defined from index ``period - 1``.

    Maintains a running sum so each step is O(1).
    """
    _check_period(period)
    out = [NAN] * len(values)
    total = 0.0
    for i, v in enumerate(values):
        total += v
        if i >= period:
            total -= values[i - period]
        if i >= period - 1:
            out[i] = total / period
    return out


def ema(values: Sequence[float], period: int) -> List[float]:
    """Exponential moving average with ``k = 2 / (period + 1)``.

    The recurrence is seeded with ``values[0]`` and runs from the first
    element, but results before index ``period - 1`` are reported as NaN
    since they have not settled yet.
    """
    _check_period(period)
    out = [NAN] * len(values)
    k = 2.0 / (period + 1)
    e = 0.0
    for i, v in enumerate(values):
        e = v if i == 0 else v * k + e * (1 - k)
        if i >= period - 1:
            out[i] = e
    return out


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    rs = ZERO_LOSS_RS if avg_loss == 0 else avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi(values: Sequence[float], period: int) -> List[float]:
    """Relative strength index in [0, 100].

    The first value appears at index ``period``: average gain and loss
    are seeded with the simple mean of the first ``period`` changes and
    then smoothed Wilder-style::

        avg = (avg * (period - 1) + current) / period
    """
    _check_period(period)
    out = [NAN] * len(values)
    avg_gain = 0.0
    avg_loss = 0.0
    for i in range(1, len(values)):
        change = values[i] - values[i - 1]
        gain = max(0.0, change)
        loss = max(0.0, -change)
        if i <= period:
            avg_gain += gain
            avg_loss += loss
            if i == period:
                avg_gain /= period
                avg_loss /= period
                out[i] = _rsi_from_averages(avg_gain, avg_loss)
        else:
            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period
            out[i] = _rsi_from_averages(avg_gain, avg_loss)
    return out


def true_range(bars: Sequence[Bar]) -> List[float]:
    """Per-bar true range; index 0 has no previous close and is NaN."""
    out = [NAN] * len(bars)
    for i in range(1, len(bars)):
        high = bars[i].high
        low = bars[i].low
        prev_close = bars[i - 1].close
        out[i] = max(high - low, abs(high - prev_close), abs(low - prev_close))
    return out


def atr(bars: Sequence[Bar], period: int) -> List[float]:
    """Average true range: :func:`ema` of the true range.

    The undefined true range at index 0 is replaced by zero before
    smoothing.
    """
    _check_period(period)
    tr = [0.0 if math.isnan(x) else x for x in true_range(bars)]
    return ema(tr, period)


def _rolling_extreme(values: Sequence[float], period: int, want_max: bool) -> List[float]:
    _check_period(period)
    out = [NAN] * len(values)
    window: Deque[int] = deque()
    for i, v in enumerate(values):
        # Evict indices that slid out of the window
        while window and window[0] <= i - period:
            window.popleft()
        # Evict entries dominated by the new value
        if want_max:
            while window and values[window[-1]] <= v:
                window.pop()
        else:
            while window and values[window[-1]] >= v:
                window.pop()
        window.append(i)
        if i >= period - 1:
            out[i] = values[window[0]]
    return out


def rolling_max(values: Sequence[float], period: int) -> List[float]:
    """Maximum of the trailing ``period`` values, amortised O(1) per step."""
    return _rolling_extreme(values, period, want_max=True)


def rolling_min(values: Sequence[float], period: int) -> List[float]:
    """Minimum of the trailing ``period`` values, amortised O(1) per step."""
    return _rolling_extreme(values, period, want_max=False)
