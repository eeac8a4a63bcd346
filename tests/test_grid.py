"""Tests for grid sizing, tick spacing and axis label formatting."""
from __future__ import annotations

import math

import pytest

from models import ViewportBounds
from canvas.grid import (
    adaptive_grid_size,
    aligned_values,
    dot_count,
    format_axis_number,
    grid_lines,
    grid_metrics,
    tick_spacing,
    tick_values,
)
from settings import AxesSettings, GridSettings


# ─────────────────────────────────────────────────────────
# adaptive_grid_size
# ─────────────────────────────────────────────────────────


class TestAdaptiveGrid:
    @pytest.mark.parametrize(
        "scale,main,sub",
        [
            (1.0, 50, 10),
            (1.5, 50, 10),
            (2.0, 25, 5),
            (0.5, 100, 20),
            (100.0, 10, 2),
            (0.01, 2000, 400),
        ],
    )
    def test_sizes(self, scale, main, sub):
        info = adaptive_grid_size(scale, GridSettings())
        assert info.main_size == pytest.approx(main)
        assert info.sub_size == pytest.approx(sub)

    def test_sub_grid_gated_by_pixel_size(self):
        assert adaptive_grid_size(1.0, GridSettings()).show_sub
        # 400 world units at 1% is 4 px, under the 5 px threshold
        assert not adaptive_grid_size(0.01, GridSettings()).show_sub

    def test_always_show_sub(self):
        grid = GridSettings(always_show_sub=True)
        assert adaptive_grid_size(0.01, grid).show_sub

    def test_custom_intervals(self):
        info = adaptive_grid_size(1.0, GridSettings(intervals=10))
        assert info.sub_size == pytest.approx(5)


# ─────────────────────────────────────────────────────────
# tick_spacing
# ─────────────────────────────────────────────────────────


def _scales():
    s = 0.01
    while s <= 100.0:
        yield s
        s *= 1.07


class TestTickSpacing:
    @pytest.mark.parametrize(
        "scale,expected",
        [(1.0, 100), (2.0, 50), (0.5, 200), (0.01, 10000), (100.0, 1.0), (0.3, 200)],
    )
    def test_values(self, scale, expected):
        assert tick_spacing(scale) == pytest.approx(expected)

    def test_non_increasing_with_scale(self):
        spacings = [tick_spacing(s) for s in _scales()]
        for a, b in zip(spacings, spacings[1:]):
            assert b <= a + 1e-12

    def test_always_nice(self):
        for s in _scales():
            spacing = tick_spacing(s)
            mantissa = spacing / 10 ** math.floor(math.log10(spacing) + 1e-9)
            assert any(abs(mantissa - n) < 1e-6 for n in (1, 2, 5, 10)), spacing

    def test_custom_target(self):
        assert tick_spacing(1.0, target_pixels=20) == pytest.approx(20)

    def test_metrics_bundle(self):
        m = grid_metrics(2.0, GridSettings(), AxesSettings())
        assert m.tick_spacing == pytest.approx(50)
        assert m.grid.main_size == pytest.approx(25)


# ─────────────────────────────────────────────────────────
# format_axis_number
# ─────────────────────────────────────────────────────────


class TestFormat:
    @pytest.mark.parametrize(
        "value,text",
        [
            (0, "0"),
            (100, "100"),
            (-50, "-50"),
            (0.5, "0.5"),
            (2.5, "2.5"),
            (1.23456, "1.235"),
            (0.0004, "0"),
            (0.0015, "0.002"),
            (0.1 + 0.2, "0.3"),
            (9999, "9999"),
            (1e4, "1.0e+4"),
            (12345, "1.2e+4"),
            (-25000, "-2.5e+4"),
            (0.00005, "5.0e-5"),
            (-0.00002, "-2.0e-5"),
            (10500, "1.1e+4"),
            (12500, "1.3e+4"),
            (-12500, "-1.3e+4"),
            (99600, "1.0e+5"),
            (0.000025, "2.5e-5"),
        ],
    )
    def test_format(self, value, text):
        assert format_axis_number(value) == text


# ─────────────────────────────────────────────────────────
# Line and tick positions
# ─────────────────────────────────────────────────────────


class TestPositions:
    def test_aligned_values(self):
        assert aligned_values(-25, 25, 10) == [-30, -20, -10, 0, 10, 20, 30]

    def test_aligned_values_bad_spacing(self):
        assert aligned_values(0, 100, 0) == []
        assert aligned_values(0, 100, float("nan")) == []

    def test_tick_values_skip_origin(self):
        assert tick_values(-250, 250, 100) == [-300, -200, -100, 100, 200, 300]

    def test_grid_lines_include_origin(self):
        xs, ys = grid_lines(ViewportBounds(0, 0, 100, 50), 25)
        assert xs == [0, 25, 50, 75, 100]
        assert ys == [0, 25, 50]

    def test_dot_count(self):
        assert dot_count(ViewportBounds(0, 0, 100, 50), 25) == 15
