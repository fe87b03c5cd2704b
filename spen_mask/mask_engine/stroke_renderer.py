"""Freehand stroke renderer driven by pointer samples.

State machine (per session):

    Idle --pointer_down[base image loaded]--> Drawing
    Drawing --pointer_move--> Drawing          (paints one segment)
    * --pointer_up / pointer_cancel / pointer_leave--> Idle

Painting rules:
    - pointer_down stamps a disc of diameter ``brush_size`` so a tap without
      movement still leaves a dot
    - pointer_move strokes a round-capped segment from the last point with
      width = brush_size * max(pressure, 0.1); missing pressure counts as 1.0
    - brush composites SOURCE_OVER in white at the session mask opacity;
      eraser composites DESTINATION_OUT at full strength
    - each event is composited immediately; ending a stroke never rolls back
"""

import logging
from enum import Enum
from typing import Optional

from .shapes import Disc, Segment
from .session import MASK_RGB, DrawingSession

logger = logging.getLogger(__name__)

MIN_PRESSURE = 0.1


class StrokeState(str, Enum):
    IDLE = "idle"
    DRAWING = "drawing"


def effective_pressure(pressure: Optional[float]) -> float:
    """Clamp pointer pressure so zero-pressure input still leaves a mark."""
    if pressure is None:
        return 1.0
    return max(float(pressure), MIN_PRESSURE)


class StrokeRenderer:
    """Turns pointer events into paint operations on a session's buffer.

    The renderer itself is stateless; the stroke state lives on the
    ``DrawingSession`` so one renderer can serve any number of sessions.
    """

    def state(self, session: DrawingSession) -> StrokeState:
        return StrokeState.DRAWING if session.is_drawing else StrokeState.IDLE

    def pointer_down(
        self,
        session: DrawingSession,
        x: float,
        y: float,
        pressure: Optional[float] = None
    ) -> None:
        if not session.has_base_image:
            return

        session.is_drawing = True
        session.last_point = (float(x), float(y))
        self._paint(session, Disc(float(x), float(y), session.brush_size))

    def pointer_move(
        self,
        session: DrawingSession,
        x: float,
        y: float,
        pressure: Optional[float] = None
    ) -> None:
        if not session.is_drawing or session.last_point is None:
            return

        width = session.brush_size * effective_pressure(pressure)
        last_x, last_y = session.last_point
        self._paint(session, Segment(last_x, last_y, float(x), float(y), width))
        session.last_point = (float(x), float(y))

    def pointer_up(self, session: DrawingSession) -> None:
        session.end_stroke()

    def pointer_cancel(self, session: DrawingSession) -> None:
        session.end_stroke()

    def pointer_leave(self, session: DrawingSession) -> None:
        session.end_stroke()

    def _paint(self, session: DrawingSession, shape) -> None:
        touched = session.buffer.composite_paint(
            shape,
            MASK_RGB,
            session.mask_opacity,
            session.composite_mode
        )
        logger.debug(f"{session.tool.value}: {shape} touched {touched} px")
