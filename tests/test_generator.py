"""
Tests for the synthetic price generator.
"""

import math

import numpy as np
import pytest

from quantgrid.generator import generate_price_series, gaussian, INITIAL_PRICE
from quantgrid.models import InvalidArgumentError


# ---------------------------------------------------------------------------
# Shape
# ---------------------------------------------------------------------------

class TestSeriesShape:
    def test_exact_length(self):
        bars = generate_price_series(500, 1 / 24)
        assert len(bars) == 500

    def test_indices_increase_from_zero(self):
        bars = generate_price_series(50, 1 / 24)
        assert [b.index for b in bars] == list(range(50))

    def test_single_bar(self):
        bars = generate_price_series(1, 1 / 252)
        assert len(bars) == 1
        assert bars[0].open == pytest.approx(INITIAL_PRICE)

    def test_bars_chain_close_to_open(self):
        bars = generate_price_series(200, 1 / 24)
        assert bars[0].open == INITIAL_PRICE
        for prev, bar in zip(bars, bars[1:]):
            assert bar.open == prev.close

    def test_prices_stay_positive(self):
        bars = generate_price_series(2000, 1 / 24, rng=np.random.default_rng(3))
        assert all(b.low > 0 for b in bars)


# ---------------------------------------------------------------------------
# OHLC invariant
# ---------------------------------------------------------------------------

class TestOhlcInvariant:
    @pytest.mark.parametrize("seed", [0, 1, 2, 7, 42])
    def test_low_and_high_wrap_open_and_close(self, seed):
        bars = generate_price_series(2000, 1 / 24, rng=np.random.default_rng(seed))
        for b in bars:
            assert b.low <= min(b.open, b.close)
            assert max(b.open, b.close) <= b.high

    def test_daily_step(self):
        bars = generate_price_series(1000, 1 / 252, rng=np.random.default_rng(11))
        for b in bars:
            assert b.low <= min(b.open, b.close) <= max(b.open, b.close) <= b.high


# ---------------------------------------------------------------------------
# Randomness
# ---------------------------------------------------------------------------

class TestRandomness:
    def test_seeded_generator_is_reproducible(self):
        a = generate_price_series(300, 1 / 24, rng=np.random.default_rng(123))
        b = generate_price_series(300, 1 / 24, rng=np.random.default_rng(123))
        assert a == b

    def test_unseeded_calls_differ(self):
        a = generate_price_series(300, 1 / 24)
        b = generate_price_series(300, 1 / 24)
        assert [x.close for x in a] != [x.close for x in b]

    def test_gaussian_moments(self):
        rng = np.random.default_rng(5)
        samples = [gaussian(rng) for _ in range(20_000)]
        mean = sum(samples) / len(samples)
        var = sum((s - mean) ** 2 for s in samples) / len(samples)
        assert mean == pytest.approx(0.0, abs=0.05)
        assert var == pytest.approx(1.0, abs=0.05)

    def test_gaussian_is_finite(self):
        rng = np.random.default_rng(9)
        assert all(math.isfinite(gaussian(rng)) for _ in range(1000))


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidation:
    @pytest.mark.parametrize("length", [0, -5])
    def test_non_positive_length(self, length):
        with pytest.raises(InvalidArgumentError) as exc:
            generate_price_series(length, 1 / 24)
        assert exc.value.parameter == "length"

    @pytest.mark.parametrize("step", [0.0, -1 / 24, float("nan")])
    def test_non_positive_step(self, step):
        with pytest.raises(InvalidArgumentError) as exc:
            generate_price_series(10, step)
        assert exc.value.parameter == "step_years"
