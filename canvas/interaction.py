"""
canvas/interaction.py

Gesture state machine turning normalized input events into shape and
viewport mutations.

The decision logic is a pure reducer, ``reduce(state, event, ctx)``, which
returns the next state plus a tuple of effects. ``InteractionMachine`` owns
the current state, applies the effects to the ShapeStore and Viewport, and
fires the UI callbacks at most once per handled event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from models import (
    HANDLE_CURSORS,
    MODE_CURSORS,
    PRIMARY_BUTTON,
    InputEvent,
    KeyEvent,
    Mode,
    PinchEvent,
    Point,
    PointerEvent,
    PointerKind,
    ResizeHandle,
    ShapeKind,
    Transform,
    WheelEvent,
)
from canvas.shapes import BoundingBox, Shape
from canvas.store import ShapeStore
from canvas.viewport import Viewport
from settings import AppSettings, get_settings
from debug_trace import trace

# Cursor shown while a shape is dragged or hovered in select mode
MOVE_CURSOR = "move"
# Cursor shown while the view is being panned
GRABBING_CURSOR = "grabbing"

DELETE_KEYS = frozenset({"Delete", "Backspace"})
ESCAPE_KEY = "Escape"


# =============================================================================
# Interaction states
# =============================================================================

@dataclass(frozen=True)
class Idle:
    """No gesture in progress."""


@dataclass(frozen=True)
class Dragging:
    shape_id: str
    last_world: Point


@dataclass(frozen=True)
class Resizing:
    shape_id: str
    handle: ResizeHandle
    last_world: Point


@dataclass(frozen=True)
class Drawing:
    """A shape being drawn. ``span`` is the raw dragged rectangle, before flooring."""
    shape_id: str
    anchor_world: Point
    span: BoundingBox


@dataclass(frozen=True)
class Panning:
    last_screen: Point


InteractionState = Union[Idle, Dragging, Resizing, Drawing, Panning]

IDLE = Idle()


# =============================================================================
# Effects
# =============================================================================

@dataclass(frozen=True)
class CreateShape:
    shape_id: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class MoveShape:
    shape_id: str
    dx: float
    dy: float


@dataclass(frozen=True)
class ResizeShape:
    shape_id: str
    handle: ResizeHandle
    dx: float
    dy: float


@dataclass(frozen=True)
class SetShapeBounds:
    shape_id: str
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class RemoveShape:
    shape_id: str


@dataclass(frozen=True)
class SelectShape:
    shape_id: str


@dataclass(frozen=True)
class DeselectAll:
    pass


@dataclass(frozen=True)
class DeleteSelected:
    pass


@dataclass(frozen=True)
class SetMode:
    mode: Mode


@dataclass(frozen=True)
class PanBy:
    dx: float
    dy: float


@dataclass(frozen=True)
class WheelZoom:
    screen: Point
    delta_y: float


@dataclass(frozen=True)
class PinchZoom:
    center: Point
    previous_center: Point
    distance: float
    previous_distance: float


@dataclass(frozen=True)
class ReportPointer:
    world: Point


@dataclass(frozen=True)
class SetCursor:
    cursor: str


Effect = Union[
    CreateShape, MoveShape, ResizeShape, SetShapeBounds, RemoveShape,
    SelectShape, DeselectAll, DeleteSelected, SetMode, PanBy, WheelZoom,
    PinchZoom, ReportPointer, SetCursor,
]


@dataclass(frozen=True)
class Transition:
    state: InteractionState
    effects: Tuple[Effect, ...] = ()


@dataclass(frozen=True)
class Context:
    """Read-only view of the canvas handed to the reducer.

    The reducer only queries ``store`` (selection, hit-testing, shape
    lookup); it never mutates it. ``next_id`` is the id the store will hand
    out next, so replaying an event against the same store gives the same id.
    """
    mode: Mode
    transform: Transform
    store: ShapeStore
    handle_hit_distance: float
    min_size: float
    next_id: str

    @property
    def handle_tolerance(self) -> float:
        """Handle hit radius in world units, constant on screen across zoom."""
        return self.handle_hit_distance / self.transform.scale

    def to_world(self, screen: Point) -> Point:
        return self.transform.screen_to_world(screen)


# =============================================================================
# Reducer
# =============================================================================

def reduce(state: InteractionState, event: InputEvent, ctx: Context) -> Transition:
    """Compute the next interaction state and the effects of one input event."""
    if isinstance(event, PointerEvent):
        if event.kind == PointerKind.DOWN:
            return _pointer_down(state, event, ctx)
        if event.kind == PointerKind.MOVE:
            return _pointer_move(state, event, ctx)
        return _pointer_up(state, ctx)
    if isinstance(event, KeyEvent):
        return Transition(state, _key_down(event, ctx))
    if isinstance(event, WheelEvent):
        return Transition(state, (WheelZoom(event.screen, event.delta_y),))
    if isinstance(event, PinchEvent):
        return Transition(state, (
            PinchZoom(event.center, event.previous_center, event.distance, event.previous_distance),
        ))
    return Transition(state)


def _pointer_down(state: InteractionState, event: PointerEvent, ctx: Context) -> Transition:
    if event.button != PRIMARY_BUTTON:
        return Transition(state)
    world = ctx.to_world(event.screen)

    if ctx.mode == Mode.SELECT:
        selected = ctx.store.selected
        if selected is not None:
            handle = selected.handle_at(world, ctx.handle_tolerance)
            if handle is not None:
                return Transition(
                    Resizing(selected.id, handle, world),
                    (SetCursor(HANDLE_CURSORS[handle]),),
                )
        hit = ctx.store.shape_at(world)
        if hit is not None:
            return Transition(
                Dragging(hit.id, world),
                (SelectShape(hit.id), SetCursor(MOVE_CURSOR)),
            )
        return Transition(
            Panning(event.screen),
            (DeselectAll(), SetCursor(GRABBING_CURSOR)),
        )

    if ctx.mode == Mode.PAN:
        return Transition(Panning(event.screen), (SetCursor(GRABBING_CURSOR),))

    # Draw mode: start from a 1x1 shape that the first move resizes
    shape_id = ctx.next_id
    return Transition(
        Drawing(shape_id, world, BoundingBox(world.x, world.y, 0.0, 0.0)),
        (CreateShape(shape_id, world.x, world.y, 1.0, 1.0),),
    )


def _drawn_span(anchor: Point, current: Point) -> BoundingBox:
    """Rectangle spanned by anchor and pointer, flipped for up/left drags."""
    return BoundingBox(
        min(anchor.x, current.x),
        min(anchor.y, current.y),
        abs(current.x - anchor.x),
        abs(current.y - anchor.y),
    )


def _pointer_move(state: InteractionState, event: PointerEvent, ctx: Context) -> Transition:
    world = ctx.to_world(event.screen)
    effects: List[Effect] = [ReportPointer(world)]

    if isinstance(state, Dragging):
        d = world - state.last_world
        effects.append(MoveShape(state.shape_id, d.x, d.y))
        return Transition(Dragging(state.shape_id, world), tuple(effects))

    if isinstance(state, Resizing):
        d = world - state.last_world
        effects.append(ResizeShape(state.shape_id, state.handle, d.x, d.y))
        return Transition(Resizing(state.shape_id, state.handle, world), tuple(effects))

    if isinstance(state, Drawing):
        span = _drawn_span(state.anchor_world, world)
        effects.append(SetShapeBounds(
            state.shape_id,
            span.x,
            span.y,
            max(ctx.min_size, span.width),
            max(ctx.min_size, span.height),
        ))
        return Transition(Drawing(state.shape_id, state.anchor_world, span), tuple(effects))

    if isinstance(state, Panning):
        d = event.screen - state.last_screen
        effects.append(PanBy(d.x, d.y))
        return Transition(Panning(event.screen), tuple(effects))

    if ctx.mode == Mode.SELECT:
        effects.append(SetCursor(_hover_cursor(world, ctx)))
    return Transition(state, tuple(effects))


def _hover_cursor(world: Point, ctx: Context) -> str:
    selected = ctx.store.selected
    if selected is not None:
        handle = selected.handle_at(world, ctx.handle_tolerance)
        if handle is not None:
            return HANDLE_CURSORS[handle]
    if ctx.store.shape_at(world) is not None:
        return MOVE_CURSOR
    return MODE_CURSORS[ctx.mode]


def _pointer_up(state: InteractionState, ctx: Context) -> Transition:
    """Finish whatever gesture is active. Always lands in Idle."""
    effects: List[Effect] = []
    mode = ctx.mode
    if isinstance(state, Drawing):
        span = state.span
        if span.width < ctx.min_size or span.height < ctx.min_size:
            effects.append(RemoveShape(state.shape_id))
        else:
            effects.append(SelectShape(state.shape_id))
            effects.append(SetMode(Mode.SELECT))
            mode = Mode.SELECT
    effects.append(SetCursor(MODE_CURSORS[mode]))
    return Transition(IDLE, tuple(effects))


def _key_down(event: KeyEvent, ctx: Context) -> Tuple[Effect, ...]:
    if ctx.store.selected is None:
        return ()
    if event.key in DELETE_KEYS:
        return (DeleteSelected(),)
    if event.key == ESCAPE_KEY:
        return (DeselectAll(), SetMode(Mode.SELECT))
    return ()


# =============================================================================
# Machine
# =============================================================================

class _Snapshot:
    """Observable state captured before an event, to detect what changed."""

    def __init__(self, machine: "InteractionMachine"):
        self.transform = machine.viewport.transform
        self.selected = machine.store.selected
        self.mode = machine.mode
        self.cursor = machine.cursor


class InteractionMachine:
    """
    Drives the canvas from normalized input events and discrete commands.

    Callbacks (each fired at most once per event or command):
      - on_transform_change(transform)
      - on_mouse_move(world_point)
      - on_mode_change(mode)
      - on_selection_change(shape or None)
      - on_cursor_change(cursor_name)
    """

    def __init__(
        self,
        viewport: Optional[Viewport] = None,
        store: Optional[ShapeStore] = None,
        settings: Optional[AppSettings] = None,
    ):
        if settings is None:
            settings = get_settings().settings
        self.viewport = viewport if viewport is not None else Viewport(settings.canvas.zoom)
        self.store = store if store is not None else ShapeStore(settings)
        self.handle_hit_distance = settings.canvas.handles.hit_distance
        self.state: InteractionState = IDLE
        self.mode: Mode = Mode.SELECT
        self.cursor: str = MODE_CURSORS[self.mode]

        self.on_transform_change: Optional[Callable[[Transform], None]] = None
        self.on_mouse_move: Optional[Callable[[Point], None]] = None
        self.on_mode_change: Optional[Callable[[Mode], None]] = None
        self.on_selection_change: Optional[Callable[[Optional[Shape]], None]] = None
        self.on_cursor_change: Optional[Callable[[str], None]] = None

    # ---- event entry point ----

    def context(self) -> Context:
        return Context(
            mode=self.mode,
            transform=self.viewport.transform,
            store=self.store,
            handle_hit_distance=self.handle_hit_distance,
            min_size=self.store.min_size,
            next_id=self.store.peek_id(),
        )

    def handle(self, event: InputEvent) -> Tuple[Effect, ...]:
        """Process one input event and return the effects that were applied."""
        before = _Snapshot(self)
        applied: List[Effect] = []

        # A press while a gesture is still open finishes that gesture first
        if (
            isinstance(event, PointerEvent)
            and event.kind == PointerKind.DOWN
            and event.button == PRIMARY_BUTTON
            and not isinstance(self.state, Idle)
        ):
            trace(f"pointer down during {type(self.state).__name__}, finishing it", "GESTURE")
            applied.extend(self._step(PointerEvent(PointerKind.UP, event.screen)))

        applied.extend(self._step(event))
        self._notify(before, applied)
        return tuple(applied)

    def _step(self, event: InputEvent) -> Tuple[Effect, ...]:
        transition = reduce(self.state, event, self.context())
        if type(transition.state) is not type(self.state):
            trace(f"{type(self.state).__name__} -> {type(transition.state).__name__}", "GESTURE")
        elif isinstance(event, PointerEvent) and event.kind == PointerKind.MOVE:
            trace(f"move {event.screen} in {type(self.state).__name__}", "POINTER")
        self.state = transition.state
        for effect in transition.effects:
            self._apply(effect)
        return transition.effects

    def _apply(self, effect: Effect) -> None:
        store = self.store
        if isinstance(effect, CreateShape):
            store.create_shape(effect.x, effect.y, effect.width, effect.height, shape_id=effect.shape_id)
        elif isinstance(effect, MoveShape):
            shape = store.get(effect.shape_id)
            if shape is not None:
                shape.move(effect.dx, effect.dy)
        elif isinstance(effect, ResizeShape):
            shape = store.get(effect.shape_id)
            if shape is not None:
                shape.resize_by_handle(effect.handle, (effect.dx, effect.dy))
        elif isinstance(effect, SetShapeBounds):
            shape = store.get(effect.shape_id)
            if shape is not None:
                shape.set_bounds(effect.x, effect.y, effect.width, effect.height)
        elif isinstance(effect, RemoveShape):
            store.remove_shape(effect.shape_id)
        elif isinstance(effect, SelectShape):
            store.select_by_id(effect.shape_id)
        elif isinstance(effect, DeselectAll):
            store.deselect_all()
        elif isinstance(effect, DeleteSelected):
            store.delete_selected()
        elif isinstance(effect, SetMode):
            self.mode = effect.mode
        elif isinstance(effect, PanBy):
            self.viewport.pan_by(effect.dx, effect.dy)
        elif isinstance(effect, WheelZoom):
            self.viewport.zoom_by_wheel(effect.screen, effect.delta_y)
        elif isinstance(effect, PinchZoom):
            self.viewport.pinch(effect.center, effect.previous_center, effect.distance, effect.previous_distance)
        elif isinstance(effect, SetCursor):
            self.cursor = effect.cursor
        # ReportPointer carries no mutation; _notify forwards it

    def _notify(self, before: _Snapshot, applied: Sequence[Effect] = ()) -> None:
        transform = self.viewport.transform
        if transform != before.transform and self.on_transform_change:
            self.on_transform_change(transform)

        reports = [e for e in applied if isinstance(e, ReportPointer)]
        if reports and self.on_mouse_move:
            self.on_mouse_move(reports[-1].world)

        if self.mode != before.mode and self.on_mode_change:
            self.on_mode_change(self.mode)

        if self.store.selected is not before.selected and self.on_selection_change:
            self.on_selection_change(self.store.selected)

        if self.cursor != before.cursor and self.on_cursor_change:
            self.on_cursor_change(self.cursor)

    # ---- discrete commands ----

    def _command(self, action: Callable[[], None]) -> None:
        before = _Snapshot(self)
        action()
        self._notify(before)

    def set_mode(self, mode: Union[Mode, str]) -> None:
        """Switch the persistent mode.

        Raises:
            ValueError: If ``mode`` is not a known mode name.
        """
        mode = Mode(mode)

        def action():
            self.mode = mode
            if isinstance(self.state, Idle):
                self.cursor = MODE_CURSORS[mode]

        self._command(action)

    def set_shape_kind(self, kind: Union[ShapeKind, str]) -> None:
        self.store.set_shape_kind(kind)

    def set_draw_kind(self, kind: Union[ShapeKind, str]) -> None:
        """Pick the kind for new shapes and enter draw mode."""
        self.store.set_shape_kind(kind)
        self.set_mode(Mode.DRAW)

    def set_style(self, partial=None, **kwargs) -> None:
        self.store.set_style(partial, **kwargs)

    def apply_style_to_selected(self, partial=None, **kwargs) -> None:
        self.store.apply_style_to_selected(partial, **kwargs)

    def delete_selected(self) -> None:
        self._command(self.store.delete_selected)

    def clear(self) -> None:
        self._command(self.store.clear)

    def bring_to_front(self) -> None:
        self.store.bring_to_front()

    def send_to_back(self) -> None:
        self.store.send_to_back()

    def reset_view(self) -> None:
        self._command(self.viewport.reset_view)

    def zoom_in(self) -> None:
        self._command(self.viewport.zoom_in)

    def zoom_out(self) -> None:
        self._command(self.viewport.zoom_out)

    def resize(self, width: float, height: float) -> None:
        self.viewport.resize(width, height)

    def is_interacting(self) -> bool:
        """True while a shape is being dragged, resized or drawn."""
        return isinstance(self.state, (Dragging, Resizing, Drawing))
