"""
canvas package

Viewport, shapes, interaction machine, grid metrics and the PyQt6 widget
that paints them.
"""

from canvas.viewport import Viewport
from canvas.shapes import BoundingBox, Shape
from canvas.store import ShapeStore
from canvas.interaction import InteractionMachine, reduce
from canvas.grid import adaptive_grid_size, format_axis_number, tick_spacing
from canvas.renderer import CanvasRenderer, SurfaceError, build_frame
from canvas.view import CanvasView

__all__ = [
    "Viewport",
    "BoundingBox",
    "Shape",
    "ShapeStore",
    "InteractionMachine",
    "reduce",
    "adaptive_grid_size",
    "format_axis_number",
    "tick_spacing",
    "CanvasRenderer",
    "SurfaceError",
    "build_frame",
    "CanvasView",
]
