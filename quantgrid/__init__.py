"""
quantgrid -- Synthetic-data strategy optimizer.

Simulates trading strategies on regime-switching synthetic price
histories and ranks them by a risk-adjusted score.

Supports:
  - Regime-switching geometric Brownian motion OHLC generator
  - Rolling indicators (SMA, EMA, RSI, ATR, rolling max / min)
  - SMA crossover, RSI reversion and ATR breakout strategies
  - Bar-by-bar backtesting with stop-loss / take-profit handling
  - Performance metrics (return, drawdown, Sharpe, CAGR, win rate,
    profit factor)
  - Exhaustive grid search with a composite score
  - Text leaderboard report and a JSON dashboard API

Quick start::

    from quantgrid import generate_price_series, optimize_on_synthetic_data
    from quantgrid import generate_report

    bars = generate_price_series(2000, 1 / 24)
    result = optimize_on_synthetic_data(bars, top_k=10)
    print(generate_report(result.agents, top_k=10))
"""

from quantgrid.models import (
    Action,
    Agent,
    Bar,
    BacktestResult,
    EquityPoint,
    InvalidArgumentError,
    Metrics,
    Position,
    StopLevels,
    Strategy,
    StrategyContext,
    StrategyParams,
    Trade,
    bars_from_dicts,
)
from quantgrid.generator import generate_price_series
from quantgrid.indicators import sma, ema, rsi, atr, rolling_max, rolling_min
from quantgrid.strategies import (
    CrossoverStrategy,
    OscillatorReversionStrategy,
    BreakoutStrategy,
    CrossoverParams,
    OscillatorParams,
    BreakoutParams,
    UnknownStrategyError,
)
from quantgrid.engine import Engine, run_backtest
from quantgrid.metrics import compute_metrics
from quantgrid.optimizer import optimize, optimize_on_synthetic_data, OptimizationResult
from quantgrid.report import generate_report

__all__ = [
    "Action",
    "Agent",
    "Bar",
    "BacktestResult",
    "EquityPoint",
    "InvalidArgumentError",
    "Metrics",
    "Position",
    "StopLevels",
    "Strategy",
    "StrategyContext",
    "StrategyParams",
    "Trade",
    "bars_from_dicts",
    "generate_price_series",
    "sma",
    "ema",
    "rsi",
    "atr",
    "rolling_max",
    "rolling_min",
    "CrossoverStrategy",
    "OscillatorReversionStrategy",
    "BreakoutStrategy",
    "CrossoverParams",
    "OscillatorParams",
    "BreakoutParams",
    "UnknownStrategyError",
    "Engine",
    "run_backtest",
    "compute_metrics",
    "optimize",
    "optimize_on_synthetic_data",
    "OptimizationResult",
    "generate_report",
]
