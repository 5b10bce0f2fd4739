"""
quantgrid -- Synthetic price generator.

Produces OHLC bars from a regime-switching geometric Brownian motion.
Four (drift, volatility) regimes are cycled through on a random
countdown; each bar's log-return is::

    r = (mu - 0.5 * sigma^2) * dt + sigma * sqrt(dt) * Z

with ``Z`` a standard normal drawn by the Box-Muller transform.

The generator is deliberately unseeded: two calls with the same
arguments return different paths.  Callers that need a reproducible
series pass their own ``numpy.random.Generator``::

    rng = np.random.default_rng(42)
    bars = generate_price_series(500, 1 / 24, rng=rng)
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import numpy as np

from quantgrid.models import Bar, InvalidArgumentError


# (drift, volatility) per regime, annualised
REGIMES: Tuple[Tuple[float, float], ...] = (
    (0.12, 0.08),
    (-0.05, 0.12),
    (0.0, 0.05),
    (0.20, 0.15),
)

INITIAL_PRICE = 1.0
WICK_FACTOR = 0.0005

# Countdown ranges, half-open [low, high)
FIRST_SWITCH_RANGE = (250, 500)
NEXT_SWITCH_RANGE = (200, 600)


def _uniform_nonzero(rng: np.random.Generator) -> float:
    """Draw from uniform(0, 1), rejecting exact zeros."""
    u = 0.0
    while u == 0.0:
        u = float(rng.random())
    return u


def gaussian(rng: np.random.Generator) -> float:
    """Standard normal sample via the Box-Muller transform."""
    u = _uniform_nonzero(rng)
    v = _uniform_nonzero(rng)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def _countdown(rng: np.random.Generator, bounds: Tuple[int, int]) -> int:
    return int(rng.integers(bounds[0], bounds[1]))


def generate_price_series(
    length: int,
    step_years: float,
    rng: Optional[np.random.Generator] = None,
) -> List[Bar]:
    """Generate ``length`` synthetic OHLC bars.

    Args:
        length: Number of bars to produce (must be positive).
        step_years: Bar duration in years, e.g. ``1 / 24`` for the
            hourly default or ``1 / 252`` for daily bars.
        rng: Optional random source.  A fresh, OS-seeded generator is
            used when omitted.

    Returns:
        Bars indexed from 0.  Each bar opens at the previous close (the
        first at 1.0), and high/low wrap both closes with a wick of
        ``0.0005 * |Z|`` so that ``low <= min(open, close)`` and
        ``max(open, close) <= high`` always hold.

    Raises:
        InvalidArgumentError: If ``length`` or ``step_years`` is not
            positive.
    """
    if length <= 0:
        raise InvalidArgumentError("length", f"must be positive, got {length}")
    # Rejects NaN as well
    if not step_years > 0:
        raise InvalidArgumentError("step_years", f"must be positive, got {step_years}")

    if rng is None:
        rng = np.random.default_rng()

    regime = 0
    countdown = _countdown(rng, FIRST_SWITCH_RANGE)
    price = INITIAL_PRICE
    sqrt_dt = math.sqrt(step_years)
    bars: List[Bar] = []

    for i in range(length):
        countdown -= 1
        if countdown <= 0:
            # Advance by 1 or 2 regimes with equal probability
            regime = (regime + 1 + (1 if rng.random() < 0.5 else 0)) % len(REGIMES)
            countdown = _countdown(rng, NEXT_SWITCH_RANGE)

        mu, sigma = REGIMES[regime]
        z = gaussian(rng)
        ret = (mu - 0.5 * sigma * sigma) * step_years + sigma * sqrt_dt * z
        close = price * math.exp(ret)
        wick = WICK_FACTOR * abs(z)

        bars.append(Bar(
            index=i,
            open=price,
            high=max(price, close) * (1 + wick),
            low=min(price, close) * (1 - wick),
            close=close,
        ))
        price = close

    return bars
