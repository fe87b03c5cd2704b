"""Drawing session: the explicit state shared by the renderer and flood fill.

Holds what the browser front end kept in globals (current tool, brush size,
drawing flag, last pointer position, base image) next to the mask buffer it
paints into. The UI layer owns one session and passes it by reference into
``StrokeRenderer`` / ``flood_fill.fill_at`` / ``events`` calls.
"""

import logging
from enum import Enum
from typing import Optional, Tuple, Union

from .buffer import CompositeMode, RasterMaskBuffer

logger = logging.getLogger(__name__)

# Mask paint color (white); opacity is configured per session
MASK_RGB = (255, 255, 255)


class Tool(str, Enum):
    """Active input tool; exactly one at a time."""

    BRUSH = "brush"
    ERASER = "eraser"
    FILL = "fill"


class DrawingSession:
    """Mutable state of one mask-painting session.

    Parameters
    ----------
    width, height : int
        Drawing surface size in pixels (mask buffer size)
    brush_size : float
        Brush diameter in pixels, default 10
    mask_opacity : float
        Opacity in [0, 1] of brush and fill paint, default 0.5
    tool : Tool or str
        Initial tool, default brush

    Attributes
    ----------
    buffer : RasterMaskBuffer
        Mask pixels painted by strokes and fills
    base_image : BaseImage or None
        Decoded user image; painting is disabled until one is loaded
    is_drawing : bool
        True between pointer-down and pointer-up/cancel/leave
    last_point : tuple of float or None
        Last recorded stroke position while drawing
    """

    def __init__(
        self,
        width: int,
        height: int,
        brush_size: float = 10.0,
        mask_opacity: float = 0.5,
        tool: Union[Tool, str] = Tool.BRUSH
    ):
        self.buffer = RasterMaskBuffer(width, height)
        self.base_image = None
        self.tool = Tool.BRUSH
        self.brush_size = 10.0
        self.mask_opacity = 0.5
        self.is_drawing = False
        self.last_point: Optional[Tuple[float, float]] = None

        self.set_tool(tool)
        self.set_brush_size(brush_size)
        self.set_mask_opacity(mask_opacity)

    @classmethod
    def from_config(
        cls,
        cfg,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> 'DrawingSession':
        """Build a session from a validated ``MaskToolConfig``.

        ``width``/``height`` override the configured canvas size.
        """
        return cls(
            width if width is not None else cfg.canvas.width,
            height if height is not None else cfg.canvas.height,
            brush_size=cfg.brush_size,
            mask_opacity=cfg.mask_opacity,
            tool=cfg.default_tool,
        )

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height

    @property
    def has_base_image(self) -> bool:
        return self.base_image is not None

    @property
    def composite_mode(self) -> CompositeMode:
        """Composite rule for the active tool."""
        if self.tool is Tool.ERASER:
            return CompositeMode.DESTINATION_OUT
        return CompositeMode.SOURCE_OVER

    def set_tool(self, tool: Union[Tool, str]) -> None:
        """Select the active tool.

        Raises
        ------
        ValueError
            If ``tool`` is not one of brush, eraser, fill
        """
        self.tool = Tool(tool)
        logger.debug(f"Tool set to {self.tool.value}")

    def set_brush_size(self, size: float) -> None:
        if size <= 0:
            raise ValueError(f"Brush size must be positive, got {size}")
        self.brush_size = float(size)

    def set_mask_opacity(self, opacity: float) -> None:
        if not 0.0 <= opacity <= 1.0:
            raise ValueError(f"Mask opacity must be in [0, 1], got {opacity}")
        self.mask_opacity = float(opacity)

    def load_base_image(self, image) -> None:
        """Install a decoded base image and start a fresh mask."""
        self.end_stroke()
        self.base_image = image
        self.buffer.clear()
        logger.info(
            f"Base image loaded ({image.width}x{image.height}) "
            f"on {self.width}x{self.height} canvas"
        )

    def clear_mask(self) -> None:
        self.buffer.clear()

    def end_stroke(self) -> None:
        """Leave the Drawing state (no-op when idle)."""
        self.is_drawing = False
        self.last_point = None

    def resize(self, width: int, height: int) -> None:
        """Resize the drawing surface.

        An active stroke is cancelled before the buffer is replaced. The
        mask content is discarded.
        """
        if self.is_drawing:
            logger.debug("Resize during active stroke; stroke cancelled")
        self.end_stroke()
        self.buffer.resize(width, height)
        logger.info(f"Drawing surface resized to {width}x{height}")
