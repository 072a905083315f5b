"""Tests for leverage, exit-level math and drawdown tracking."""

import pytest

from trendscope.risk.drawdown import DrawdownTracker
from trendscope.risk.sl_tp import calculate_leverage, calculate_trend_levels, flat_levels


class TestLeverage:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (0.0, 5),
            (3.0, 5),
            (3.99, 5),
            (4.0, 10),
            (4.5, 10),
            (5.0, 20),
            (6.999, 20),
            (7.0, 40),
            (9.5, 40),
        ],
    )
    def test_ladder(self, score, expected):
        assert calculate_leverage(score) == expected

    def test_symmetric_for_shorts(self):
        assert calculate_leverage(-4.0) == 10
        assert calculate_leverage(-7.5) == 40


class TestTrendLevels:
    def test_long_ladder(self):
        levels = calculate_trend_levels(100.0, "LONG", atr=2.0, sl_mult=1.5)
        assert levels.sl == pytest.approx(97.0)
        assert levels.tp1 == pytest.approx(103.0)
        assert levels.tp2 == pytest.approx(106.0)
        assert levels.tp3 == pytest.approx(109.0)
        assert levels.tp == levels.tp2

    def test_short_ladder(self):
        levels = calculate_trend_levels(100.0, "SHORT", atr=2.0, sl_mult=1.0)
        assert levels.sl == pytest.approx(102.0)
        assert levels.tp1 == pytest.approx(98.0)
        assert levels.tp2 == pytest.approx(96.0)
        assert levels.tp3 == pytest.approx(94.0)

    def test_unknown_direction(self):
        with pytest.raises(ValueError, match="direction"):
            calculate_trend_levels(100.0, "NEUTRAL", atr=1.0, sl_mult=1.0)

    def test_flat_levels(self):
        levels = flat_levels(tp=105.0, sl=95.0)
        assert levels.sl == 95.0
        assert levels.tp == levels.tp1 == levels.tp2 == levels.tp3 == 105.0


class TestDrawdownTracker:
    def test_initial_state(self):
        tracker = DrawdownTracker(10_000.0)
        assert tracker.peak_balance == 10_000.0
        assert tracker.current_balance == 10_000.0
        assert tracker.drawdown_pct == 0.0
        assert tracker.max_drawdown_pct == 0.0

    def test_rejects_non_positive_balance(self):
        with pytest.raises(ValueError):
            DrawdownTracker(0.0)

    def test_drawdown_from_peak(self):
        tracker = DrawdownTracker(10_000.0)
        tracker.update(12_000.0)
        tracker.update(9_000.0)
        assert tracker.peak_balance == 12_000.0
        assert tracker.drawdown_pct == pytest.approx(25.0)
        assert tracker.max_drawdown_pct == pytest.approx(25.0)

    def test_max_drawdown_is_sticky(self):
        tracker = DrawdownTracker(100.0)
        tracker.update(50.0)
        tracker.update(90.0)
        assert tracker.drawdown_pct == pytest.approx(10.0)
        assert tracker.max_drawdown_pct == pytest.approx(50.0)

    def test_new_peak_resets_current_drawdown(self):
        tracker = DrawdownTracker(100.0)
        tracker.update(80.0)
        tracker.update(150.0)
        assert tracker.drawdown_pct == 0.0
        assert tracker.max_drawdown_pct == pytest.approx(20.0)

    def test_wipeout(self):
        tracker = DrawdownTracker(100.0)
        tracker.update(0.0)
        assert tracker.max_drawdown_pct == pytest.approx(100.0)
