"""Pointer event entry points for the UI layer.

Synchronous equivalents of the canvas pointer listeners: each call finishes
its paint before returning, so the next input event always sees the result.
The fill tool acts once on pointer-down and never starts a stroke.
"""

from typing import Optional

from .flood_fill import fill_at
from .session import DrawingSession, Tool
from .stroke_renderer import StrokeRenderer

_renderer = StrokeRenderer()


def on_pointer_down(
    session: DrawingSession,
    x: float,
    y: float,
    pressure: Optional[float] = None
) -> None:
    if session.tool is Tool.FILL:
        fill_at(session, x, y)
        return
    _renderer.pointer_down(session, x, y, pressure)


def on_pointer_move(
    session: DrawingSession,
    x: float,
    y: float,
    pressure: Optional[float] = None
) -> None:
    _renderer.pointer_move(session, x, y, pressure)


def on_pointer_up(session: DrawingSession) -> None:
    _renderer.pointer_up(session)


def on_pointer_cancel(session: DrawingSession) -> None:
    _renderer.pointer_cancel(session)


def on_pointer_leave(session: DrawingSession) -> None:
    _renderer.pointer_leave(session)
