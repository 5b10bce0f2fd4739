"""
quantgrid -- Grid-search optimizer.

Runs every strategy family over a fixed Cartesian parameter grid,
scores each run and returns all agents ranked best first::

    score = total_return - DRAWDOWN_PENALTY * max_drawdown + SHARPE_WEIGHT * sharpe

Grid cells share nothing but the read-only bar sequence, so they are
evaluated one after another with a fresh strategy and engine state per
cell.  The whole search is one unit of work: no partial results are
exposed before it finishes.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from quantgrid.config import get_series_length, get_step_years
from quantgrid.engine import Engine
from quantgrid.generator import generate_price_series
from quantgrid.metrics import compute_metrics
from quantgrid.models import Agent, Bar, InvalidArgumentError, Metrics, StrategyParams
from quantgrid.strategies import (
    BreakoutParams,
    CrossoverParams,
    OscillatorParams,
    get_strategy_class,
    params_dict,
)
from quantgrid.utils import generate_run_id, get_logger, log_structured

logger = get_logger(__name__)

DRAWDOWN_PENALTY = 2.0
SHARPE_WEIGHT = 0.1


# ---------------------------------------------------------------------------
# Parameter grids
# ---------------------------------------------------------------------------

CROSSOVER_SLOW = (50, 100, 150)
CROSSOVER_FAST = (5, 10, 20, 30)
CROSSOVER_STOP_PCT = (0.005, 0.01, 0.015)
CROSSOVER_TAKE_PCT = (0.01, 0.02, 0.03)

OSCILLATOR_PERIOD = (7, 14, 21)
OSCILLATOR_OVERBOUGHT = (65, 70, 75)
OSCILLATOR_OVERSOLD = (25, 30, 35)

BREAKOUT_LOOKBACK = (40, 60, 100)
BREAKOUT_ATR_PERIOD = (10, 14, 20)
BREAKOUT_ATR_MULT = (1.5, 2.0, 2.5)


def crossover_grid() -> Iterator[CrossoverParams]:
    for slow, fast, stop_pct, take_pct in itertools.product(
        CROSSOVER_SLOW, CROSSOVER_FAST, CROSSOVER_STOP_PCT, CROSSOVER_TAKE_PCT,
    ):
        if fast >= slow:
            continue
        yield CrossoverParams(fast=fast, slow=slow, stop_pct=stop_pct, take_pct=take_pct)


def oscillator_grid() -> Iterator[OscillatorParams]:
    for period, overbought, oversold in itertools.product(
        OSCILLATOR_PERIOD, OSCILLATOR_OVERBOUGHT, OSCILLATOR_OVERSOLD,
    ):
        yield OscillatorParams(period=period, overbought=overbought, oversold=oversold)


def breakout_grid() -> Iterator[BreakoutParams]:
    for lookback, atr_period, atr_mult in itertools.product(
        BREAKOUT_LOOKBACK, BREAKOUT_ATR_PERIOD, BREAKOUT_ATR_MULT,
    ):
        yield BreakoutParams(lookback=lookback, atr_period=atr_period, atr_mult=atr_mult)


def iter_grid() -> Iterator[Tuple[str, StrategyParams]]:
    """Yield ``(family, params)`` for every grid cell, family by family."""
    for params in crossover_grid():
        yield "crossover", params
    for params in oscillator_grid():
        yield "oscillator", params
    for params in breakout_grid():
        yield "breakout", params


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def score_metrics(metrics: Metrics) -> float:
    """Composite score rewarding return and Sharpe, penalising drawdown."""
    return (
        metrics.total_return
        - DRAWDOWN_PENALTY * metrics.max_drawdown
        + SHARPE_WEIGHT * metrics.sharpe
    )


def evaluate(
    bars: Sequence[Bar],
    family: str,
    params: StrategyParams,
    engine: Optional[Engine] = None,
) -> Agent:
    """Backtest a single grid cell and wrap the outcome in an :class:`Agent`."""
    engine = engine or Engine()
    strategy = get_strategy_class(family)(bars, params)
    result = engine.run(bars, strategy)
    metrics = compute_metrics(result.equity_curve, result.trades)
    metrics = replace(metrics, score=score_metrics(metrics))
    return Agent(
        name=params.label(),
        family=family,
        params=params_dict(params),
        equity=result.equity_curve,
        trades=result.trades,
        metrics=metrics,
    )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OptimizationResult:
    """All agents ranked by score, best first.

    ``top_k`` is carried for display; ``agents`` is never truncated.
    """
    agents: List[Agent] = field(default_factory=list)
    bars: List[Bar] = field(default_factory=list)
    top_k: int = 10
    run_id: str = ""

    @property
    def best(self) -> Optional[Agent]:
        return self.agents[0] if self.agents else None

    def top(self, k: Optional[int] = None) -> List[Agent]:
        return self.agents[: self.top_k if k is None else k]


def optimize(bars: Sequence[Bar], top_k: int = 10, run_id: Optional[str] = None) -> List[Agent]:
    """Score every grid cell on ``bars`` and return all agents ranked.

    Args:
        bars: Non-empty bar sequence shared read-only by every cell.
        top_k: How many agents the caller intends to show.  Validated
            here, but truncation is left to the caller.
        run_id: Optional trace ID for log lines.

    Returns:
        Every agent, sorted by ``metrics.score`` descending.

    Raises:
        InvalidArgumentError: If ``bars`` is empty or ``top_k`` is not
            positive.
    """
    if not bars:
        raise InvalidArgumentError("bars", "bar sequence is empty")
    if top_k <= 0:
        raise InvalidArgumentError("top_k", f"must be positive, got {top_k}")

    run_id = run_id or generate_run_id()
    cells = list(iter_grid())
    log_structured(
        logger, logging.INFO, "Optimizer started", run_id,
        bars=len(bars), cells=len(cells),
    )

    engine = Engine()
    agents: List[Agent] = []
    for family, params in cells:
        agent = evaluate(bars, family, params, engine)
        log_structured(
            logger, logging.DEBUG, "Grid cell done", run_id,
            agent=agent.name, score=f"{agent.metrics.score:.4f}",
            trades=agent.metrics.num_trades,
        )
        agents.append(agent)

    agents.sort(key=lambda a: a.metrics.score, reverse=True)

    log_structured(
        logger, logging.INFO, "Optimizer finished", run_id,
        agents=len(agents), best=agents[0].name,
        best_score=f"{agents[0].metrics.score:.4f}",
    )
    return agents


def optimize_on_synthetic_data(
    bars: Optional[Sequence[Bar]] = None,
    top_k: int = 10,
    rng: Optional[np.random.Generator] = None,
) -> OptimizationResult:
    """Run the optimizer, generating a default series if none is given.

    The default series uses ``QG_SERIES_LENGTH`` bars (2000) of
    ``QG_STEP_YEARS`` (hourly).  ``rng`` only applies to that generated
    series.
    """
    if not bars:
        bars = generate_price_series(get_series_length(), get_step_years(), rng=rng)
    run_id = generate_run_id()
    agents = optimize(bars, top_k=top_k, run_id=run_id)
    return OptimizationResult(agents=agents, bars=list(bars), top_k=top_k, run_id=run_id)
