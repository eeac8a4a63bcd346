"""
canvas/viewport.py

Viewport transform: screen/world conversion, anchored zoom, and pan.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Callable, Optional, Tuple

from models import CanvasSize, Point, Transform, ViewportBounds
from settings import CanvasZoomSettings, get_settings
from utils import clamp, is_finite_positive
from debug_trace import trace

# Pinch distances at or below this are treated as degenerate
MIN_PINCH_DISTANCE = 1e-6


class Viewport:
    """
    Owns the world-to-screen transform of the canvas.

    The transform is an immutable value that is replaced on every change, so
    callers holding a reference to an older transform never see it mutate.
    ``on_transform_change`` fires once per mutating call, and only when the
    transform actually changed.
    """

    def __init__(
        self,
        zoom_settings: Optional[CanvasZoomSettings] = None,
        canvas_size: Tuple[float, float] = (0.0, 0.0),
    ):
        if zoom_settings is None:
            zoom_settings = get_settings().settings.canvas.zoom
        self.min_scale = zoom_settings.min_scale
        self.max_scale = zoom_settings.max_scale
        self.wheel_sensitivity = zoom_settings.wheel_sensitivity
        self.step_factor = zoom_settings.step_factor
        self.canvas_size = CanvasSize(*canvas_size)
        self._transform = Transform(1.0, 0.0, 0.0)
        self.on_transform_change: Optional[Callable[[Transform], None]] = None

    # ---- state ----

    @property
    def transform(self) -> Transform:
        return self._transform

    @property
    def scale(self) -> float:
        return self._transform.scale

    def set_transform(self, transform: Transform) -> None:
        """Replace the transform, clamping its scale into bounds."""
        scale = clamp(transform.scale, self.min_scale, self.max_scale)
        self._commit(replace(transform, scale=scale))

    def _commit(self, transform: Transform) -> None:
        if transform == self._transform:
            return
        self._transform = transform
        if self.on_transform_change:
            self.on_transform_change(transform)

    # ---- coordinate conversion ----

    def screen_to_world(self, p: Tuple[float, float]) -> Point:
        return self._transform.screen_to_world(p)

    def world_to_screen(self, p: Tuple[float, float]) -> Point:
        return self._transform.world_to_screen(p)

    # ---- zoom ----

    def _zoomed(self, screen_point: Tuple[float, float], factor: float) -> Transform:
        t = self._transform
        anchor = t.screen_to_world(screen_point)
        new_scale = clamp(t.scale * factor, self.min_scale, self.max_scale)
        return Transform(
            new_scale,
            screen_point[0] - anchor.x * new_scale,
            screen_point[1] - anchor.y * new_scale,
        )

    def zoom_at(self, screen_point: Tuple[float, float], factor: float) -> None:
        """Scale by ``factor`` keeping the world point under ``screen_point`` fixed.

        Non-finite or non-positive factors are ignored.
        """
        if not is_finite_positive(factor):
            trace(f"zoom_at ignored factor={factor}", "VIEWPORT")
            return
        self._commit(self._zoomed(screen_point, factor))

    def zoom_by_wheel(self, screen_point: Tuple[float, float], delta_y: float) -> None:
        """Zoom for a wheel step; positive ``delta_y`` zooms out."""
        self.zoom_at(screen_point, math.exp(-delta_y * self.wheel_sensitivity))

    def pinch(
        self,
        center: Tuple[float, float],
        previous_center: Tuple[float, float],
        distance: float,
        previous_distance: float,
    ) -> None:
        """Apply one pinch sample: zoom about ``center`` then pan by the center motion.

        A degenerate previous distance skips the zoom; the pan still applies.
        """
        transform = self._transform
        if math.isfinite(previous_distance) and previous_distance > MIN_PINCH_DISTANCE:
            factor = distance / previous_distance
            if is_finite_positive(factor):
                transform = self._zoomed(center, factor)
        else:
            trace(f"pinch zoom skipped, previous_distance={previous_distance}", "VIEWPORT")
        dx = center[0] - previous_center[0]
        dy = center[1] - previous_center[1]
        self._commit(replace(
            transform,
            offset_x=transform.offset_x + dx,
            offset_y=transform.offset_y + dy,
        ))

    def zoom_in(self) -> None:
        """Zoom in one step about the canvas center."""
        self.zoom_at(self.canvas_size.center, self.step_factor)

    def zoom_out(self) -> None:
        """Zoom out one step about the canvas center."""
        self.zoom_at(self.canvas_size.center, 1 / self.step_factor)

    # ---- pan ----

    def pan_by(self, dx: float, dy: float) -> None:
        """Shift the view by raw screen pixels, independent of scale."""
        t = self._transform
        self._commit(replace(t, offset_x=t.offset_x + dx, offset_y=t.offset_y + dy))

    def reset_view(self) -> None:
        """Return to scale 1 with the world origin at the canvas center."""
        center = self.canvas_size.center
        self._commit(Transform(1.0, center.x, center.y))

    # ---- canvas size ----

    def resize(self, width: float, height: float) -> None:
        """Record the canvas pixel size (used for bounds and centered zoom)."""
        self.canvas_size = CanvasSize(width, height)

    def get_viewport_bounds(self) -> ViewportBounds:
        """World-space rectangle visible on the canvas."""
        top_left, bottom_right = self.canvas_size.corners()
        tl = self.screen_to_world(top_left)
        br = self.screen_to_world(bottom_right)
        return ViewportBounds(left=tl.x, top=tl.y, right=br.x, bottom=br.y)
