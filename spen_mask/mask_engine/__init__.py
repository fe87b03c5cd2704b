"""Mask-painting engine.

Paints a translucent white mask into an RGBA raster buffer from pointer or
stylus input:
    - buffer: RasterMaskBuffer (pixel access, source-over / destination-out compositing)
    - shapes: anti-aliased discs and round-capped segments
    - stroke_renderer: Idle/Drawing state machine, pressure-scaled line width
    - flood_fill: iterative 4-connected exact-match fill
    - session: DrawingSession holding tool, brush size, opacity, base image
    - events: on_pointer_down/move/up/cancel/leave(session, ...)

Invariants:
    - Everything runs synchronously and mutates the session buffer in place
    - No paint or fill happens before a base image is loaded
    - Erasing is always full strength, independent of mask opacity
"""

from .buffer import CompositeMode, RasterMaskBuffer
from .flood_fill import fill_alpha_for, fill_at, flood_fill
from .session import MASK_RGB, DrawingSession, Tool
from .shapes import Disc, Segment
from .stroke_renderer import StrokeRenderer, StrokeState

__all__ = [
    'CompositeMode',
    'RasterMaskBuffer',
    'Disc',
    'Segment',
    'StrokeRenderer',
    'StrokeState',
    'DrawingSession',
    'Tool',
    'MASK_RGB',
    'flood_fill',
    'fill_at',
    'fill_alpha_for',
]
