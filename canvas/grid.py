"""
canvas/grid.py

Zoom-dependent metrics for the background grid and the coordinate axes.

Everything here is a pure function of the scale (and, for line positions,
of the visible bounds) so the grid, the tick marks and the labels always
agree for the same transform.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from models import GridInfo, ViewportBounds
from settings import AxesSettings, GridSettings

# Ticks closer than this fraction of the spacing to zero count as the origin
ORIGIN_EPSILON = 0.01

# Nice-number thresholds: normalized spacing below the bound snaps to the value
_NICE_STEPS = ((1.5, 1.0), (3.0, 2.0), (7.0, 5.0))


@dataclass(frozen=True)
class GridMetrics:
    """Grid and tick spacing for one frame."""
    grid: GridInfo
    tick_spacing: float


def adaptive_grid_size(scale: float, grid: Optional[GridSettings] = None) -> GridInfo:
    """Main/sub grid cell sizes (world units) for a scale.

    The main size halves each time the scale doubles, clamped to the
    configured range. The sub grid is shown only once its cells are larger
    than ``min_sub_pixels`` on screen, unless ``always_show_sub`` is set.
    """
    if grid is None:
        grid = GridSettings()
    level = math.floor(math.log2(scale))
    main_size = grid.base_size * 2.0 ** (-level)
    main_size = max(grid.min_size, min(grid.max_size, main_size))
    sub_size = main_size / max(1, grid.intervals)
    show_sub = grid.always_show_sub or sub_size * scale > grid.min_sub_pixels
    return GridInfo(main_size, sub_size, show_sub)


def tick_spacing(scale: float, target_pixels: float = 80.0) -> float:
    """World distance between labeled ticks, snapped to {1, 2, 5, 10} x 10^n.

    Non-increasing as the scale grows.
    """
    world = target_pixels / scale
    magnitude = 10.0 ** math.floor(math.log10(world))
    normalized = world / magnitude
    for bound, nice in _NICE_STEPS:
        if normalized < bound:
            return nice * magnitude
    return 10.0 * magnitude


def grid_metrics(
    scale: float,
    grid: Optional[GridSettings] = None,
    axes: Optional[AxesSettings] = None,
) -> GridMetrics:
    target = axes.target_tick_pixels if axes is not None else 80.0
    return GridMetrics(adaptive_grid_size(scale, grid), tick_spacing(scale, target))


def _to_exponential(value: float) -> str:
    # 12345 -> "1.2e+4", 10500 -> "1.1e+4", 0.00005 -> "5.0e-5"
    # Exact ties round away from zero
    exact = Decimal(value)
    exponent = exact.adjusted()
    rounded = exact.quantize(Decimal(1).scaleb(exponent - 1), rounding=ROUND_HALF_UP)
    if rounded.adjusted() > exponent:
        # 9.96e4 rounds up to 1.0e+5
        exponent += 1
        rounded = exact.quantize(Decimal(1).scaleb(exponent - 1), rounding=ROUND_HALF_UP)
    sign, digits, _ = rounded.as_tuple()
    return f"{'-' if sign else ''}{digits[0]}.{digits[1]}e{'+' if exponent >= 0 else '-'}{abs(exponent)}"


def format_axis_number(value: float) -> str:
    """Label text for an axis value.

    Very small (non-zero) and very large magnitudes use exponential notation
    with one fractional digit. Everything else is rounded to 3 decimals with
    trailing zeros dropped; results that round to zero print as ``"0"``.
    """
    magnitude = abs(value)
    if (magnitude < 1e-4 and value != 0) or magnitude >= 1e4:
        return _to_exponential(value)

    # Round half up, matching how the labels have always been produced
    rounded = math.floor(value * 1000 + 0.5) / 1000
    if abs(rounded) < 1e-3:
        return "0"
    if rounded.is_integer():
        return str(int(rounded))
    return repr(rounded)


def aligned_values(start: float, end: float, spacing: float) -> List[float]:
    """Multiples of ``spacing`` covering ``[start, end]``, one step past each end."""
    if not (math.isfinite(spacing) and spacing > 0):
        return []
    first = math.floor(start / spacing)
    last = math.ceil(end / spacing)
    return [i * spacing for i in range(first, last + 1)]


def grid_lines(bounds: ViewportBounds, spacing: float) -> Tuple[List[float], List[float]]:
    """World x positions of vertical lines and y positions of horizontal lines."""
    return (
        aligned_values(bounds.left, bounds.right, spacing),
        aligned_values(bounds.top, bounds.bottom, spacing),
    )


def tick_values(start: float, end: float, spacing: float) -> List[float]:
    """Tick positions covering a range, without the origin."""
    return [v for v in aligned_values(start, end, spacing) if abs(v) >= spacing * ORIGIN_EPSILON]


def dot_count(bounds: ViewportBounds, spacing: float) -> int:
    """Number of dots a dot pattern with ``spacing`` would draw over ``bounds``."""
    xs, ys = grid_lines(bounds, spacing)
    return len(xs) * len(ys)
