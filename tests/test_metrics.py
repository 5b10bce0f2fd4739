"""
Tests for performance metrics.
"""

import math

import pytest

from quantgrid.metrics import (
    STEPS_PER_YEAR,
    compute_metrics,
    _max_drawdown,
    _mean_and_stdev,
    _profit_factor,
    _sharpe_ratio,
    _step_returns,
)
from quantgrid.models import EquityPoint, InvalidArgumentError, Position, Trade


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_curve(values):
    return [EquityPoint(index=i, value=v) for i, v in enumerate(values)]


def _make_trade(pnl, side=Position.LONG):
    return Trade(entry_price=100.0, exit_price=100.0 * (1 + pnl), exit_index=1, side=side, pnl=pnl)


# ---------------------------------------------------------------------------
# Step returns
# ---------------------------------------------------------------------------

class TestStepReturns:
    def test_basic(self):
        returns = _step_returns(_make_curve([100, 110, 104.5]))
        assert returns == pytest.approx([0.10, -0.05])

    def test_single_point(self):
        assert _step_returns(_make_curve([1.0])) == []

    def test_step_from_zero_equity(self):
        returns = _step_returns(_make_curve([1.0, 0.0, 0.0, 0.5]))
        assert returns == pytest.approx([-1.0, 0.0, 0.0])


# ---------------------------------------------------------------------------
# Drawdown
# ---------------------------------------------------------------------------

class TestDrawdown:
    def test_no_drawdown(self):
        assert _max_drawdown(_make_curve([1.0, 1.1, 1.2, 1.3])) == 0.0

    def test_simple_drawdown(self):
        # Peak 1.2, trough 0.9 -> 25%
        assert _max_drawdown(_make_curve([1.0, 1.2, 0.9, 1.1])) == pytest.approx(0.25)

    def test_keeps_largest(self):
        curve = _make_curve([1.0, 0.9, 1.5, 1.2, 2.0, 1.9])
        assert _max_drawdown(curve) == pytest.approx(0.2)

    def test_non_positive_peak(self):
        assert _max_drawdown(_make_curve([0.0, 0.0])) == 0.0


# ---------------------------------------------------------------------------
# Ratios
# ---------------------------------------------------------------------------

class TestRatios:
    def test_population_stdev(self):
        mean, stdev = _mean_and_stdev([0.01, -0.01])
        assert mean == pytest.approx(0.0)
        assert stdev == pytest.approx(0.01)

    def test_empty_returns(self):
        assert _mean_and_stdev([]) == (0.0, 0.0)

    def test_sharpe_formula(self):
        expected = (0.001 * STEPS_PER_YEAR) / (0.01 * math.sqrt(STEPS_PER_YEAR))
        assert _sharpe_ratio(0.001, 0.01) == pytest.approx(expected)

    def test_sharpe_zero_stdev(self):
        assert _sharpe_ratio(0.01, 0.0) == 0.0

    def test_profit_factor(self):
        assert _profit_factor(3.0, 1.5) == pytest.approx(2.0)

    def test_profit_factor_no_losses(self):
        assert _profit_factor(0.5, 0.0) == math.inf

    def test_profit_factor_nothing(self):
        assert _profit_factor(0.0, 0.0) == 0.0


# ---------------------------------------------------------------------------
# Full compute_metrics
# ---------------------------------------------------------------------------

class TestComputeMetrics:
    def test_flat_curve(self):
        metrics = compute_metrics(_make_curve([1.0] * 50), [])
        assert metrics.total_return == 0.0
        assert metrics.max_drawdown == 0.0
        assert metrics.sharpe == 0.0
        assert metrics.cagr == 0.0
        assert metrics.num_trades == 0
        assert metrics.win_rate == 0.0
        assert metrics.profit_factor == 0.0
        assert metrics.score == 0.0

    def test_single_point(self):
        metrics = compute_metrics(_make_curve([1.0]), [])
        assert metrics.total_return == 0.0
        assert metrics.sharpe == 0.0

    def test_curve_through_zero(self):
        metrics = compute_metrics(_make_curve([1.0, 0.0, 0.0]), [])
        assert metrics.total_return == pytest.approx(-1.0)
        assert metrics.max_drawdown == pytest.approx(1.0)
        assert math.isfinite(metrics.sharpe)

    def test_zero_start_value(self):
        metrics = compute_metrics(_make_curve([0.0, 0.0]), [])
        assert metrics.total_return == 0.0
        assert metrics.sharpe == 0.0

    def test_empty_curve_rejected(self):
        with pytest.raises(InvalidArgumentError) as exc:
            compute_metrics([], [])
        assert exc.value.parameter == "equity_curve"

    def test_total_return(self):
        metrics = compute_metrics(_make_curve([1.0, 1.1, 1.05, 1.2]), [])
        assert metrics.total_return == pytest.approx(0.2)

    def test_cagr_uses_mean_step_return(self):
        curve = _make_curve([1.0, 1.01, 0.9999])
        returns = _step_returns(curve)
        mean = sum(returns) / len(returns)
        metrics = compute_metrics(curve, [])
        assert metrics.cagr == pytest.approx((1 + mean) ** STEPS_PER_YEAR - 1)

    def test_cagr_overflow_saturates(self):
        metrics = compute_metrics(_make_curve([1.0, 2.0, 4.0]), [])
        assert metrics.cagr == math.inf

    def test_sharpe_sign(self):
        assert compute_metrics(_make_curve([1.0, 1.01, 1.015, 1.03]), []).sharpe > 0
        assert compute_metrics(_make_curve([1.0, 0.99, 0.985, 0.97]), []).sharpe < 0

    def test_trade_statistics(self):
        trades = [_make_trade(0.02), _make_trade(-0.01), _make_trade(0.03), _make_trade(-0.02)]
        metrics = compute_metrics(_make_curve([1.0, 1.02]), trades)
        assert metrics.num_trades == 4
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.profit_factor == pytest.approx(0.05 / 0.03)

    def test_only_winners(self):
        metrics = compute_metrics(_make_curve([1.0, 1.02]), [_make_trade(0.02)])
        assert metrics.win_rate == 1.0
        assert metrics.profit_factor == math.inf

    def test_only_losers(self):
        metrics = compute_metrics(_make_curve([1.0, 0.98]), [_make_trade(-0.02)])
        assert metrics.win_rate == 0.0
        assert metrics.profit_factor == 0.0

    def test_breakeven_counts_as_win(self):
        metrics = compute_metrics(_make_curve([1.0, 1.0]), [_make_trade(0.0), _make_trade(-0.01)])
        assert metrics.win_rate == pytest.approx(0.5)
        assert metrics.profit_factor == 0.0
