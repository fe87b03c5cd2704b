"""Raster mask buffer: the RGBA pixel grid the mask is painted into.

Storage:
    - numpy array, shape (H, W, 4), dtype uint8, channels R, G, B, A
    - non-premultiplied, like a canvas ``getImageData`` view
    - fully transparent pixels are always (0, 0, 0, 0)

Compositing (per paint call, rounded back to 8 bits with ``np.rint``):
    - SOURCE_OVER (brush, fill):
        src_a = coverage * opacity
        out_a = src_a + dst_a * (1 - src_a)
        out_rgb = (src_rgb * src_a + dst_rgb * dst_a * (1 - src_a)) / out_a
    - DESTINATION_OUT (eraser):
        out_a = dst_a * (1 - coverage)      # opacity ignored, full-strength erase

Invariants:
    - Pixels outside a shape's coverage are left byte-identical
    - Pixel accessors never clamp: out-of-range coordinates raise OutOfBoundsError
    - resize() discards content
"""

import logging
from enum import Enum
from typing import Tuple

import numpy as np

from ..errors import OutOfBoundsError

logger = logging.getLogger(__name__)

Pixel = Tuple[int, int, int, int]


class CompositeMode(str, Enum):
    """Rule combining new paint with existing buffer content."""

    SOURCE_OVER = "source-over"
    DESTINATION_OUT = "destination-out"


class RasterMaskBuffer:
    """RGBA mask pixel buffer with canvas-style compositing.

    Attributes
    ----------
    pixels : np.ndarray
        Pixel storage, shape (height, width, 4), uint8. Mutated in place.
    """

    def __init__(self, width: int, height: int):
        self.pixels = self._allocate(width, height)

    @staticmethod
    def _allocate(width: int, height: int) -> np.ndarray:
        if int(width) != width or int(height) != height or width <= 0 or height <= 0:
            raise ValueError(
                f"Buffer dimensions must be positive integers, got {width}x{height}"
            )
        return np.zeros((int(height), int(width), 4), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        """(width, height) in pixels."""
        return self.width, self.height

    def __repr__(self) -> str:
        return f"RasterMaskBuffer({self.width}x{self.height})"

    def clear(self) -> None:
        """Set every pixel to (0, 0, 0, 0)."""
        self.pixels.fill(0)

    def resize(self, width: int, height: int) -> None:
        """Replace the buffer with a cleared one of the new size.

        Prior content is discarded even when the size is unchanged; callers
        that need it must snapshot with ``copy()`` first.
        """
        self.pixels = self._allocate(width, height)
        logger.debug(f"Mask buffer resized to {width}x{height}")

    def copy(self) -> 'RasterMaskBuffer':
        """Independent snapshot of the buffer."""
        clone = RasterMaskBuffer.__new__(RasterMaskBuffer)
        clone.pixels = self.pixels.copy()
        return clone

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)

    def get_pixel(self, x: int, y: int) -> Pixel:
        """Return the (r, g, b, a) tuple at (x, y).

        Raises
        ------
        OutOfBoundsError
            If (x, y) is outside [0, width) × [0, height)
        """
        self._check_bounds(x, y)
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def set_pixel(self, x: int, y: int, r: int, g: int, b: int, a: int) -> None:
        """Overwrite the pixel at (x, y); no blending.

        Raises
        ------
        OutOfBoundsError
            If (x, y) is outside [0, width) × [0, height)
        ValueError
            If a channel is outside [0, 255]
        """
        self._check_bounds(x, y)
        channels = (r, g, b, a)
        if any(c < 0 or c > 255 for c in channels):
            raise ValueError(f"Channel values must be in [0, 255], got {channels}")
        self.pixels[y, x] = channels

    def composite_paint(
        self,
        shape,
        color: Tuple[int, int, int],
        opacity: float,
        mode: CompositeMode
    ) -> int:
        """Composite an anti-aliased shape into the buffer in place.

        Parameters
        ----------
        shape : Disc or Segment
            Anything with ``coverage(width, height)`` returning
            ``((x0, y0, x1, y1), coverage)`` or None
        color : tuple of int
            Paint RGB (ignored by DESTINATION_OUT)
        opacity : float
            Paint opacity in [0, 1] (ignored by DESTINATION_OUT)
        mode : CompositeMode
            SOURCE_OVER to paint, DESTINATION_OUT to erase

        Returns
        -------
        int
            Number of pixels touched (non-zero coverage)
        """
        result = shape.coverage(self.width, self.height)
        if result is None:
            return 0
        (x0, y0, x1, y1), coverage = result

        roi = self.pixels[y0:y1, x0:x1]
        touched = coverage > 0.0
        dst = roi.astype(np.float32) / 255.0
        dst_rgb = dst[..., :3]
        dst_a = dst[..., 3:4]
        cov = coverage[..., np.newaxis]

        if CompositeMode(mode) is CompositeMode.DESTINATION_OUT:
            out_a = dst_a * (1.0 - cov)
            out_rgb = dst_rgb
        else:
            opacity = float(np.clip(opacity, 0.0, 1.0))
            src_rgb = np.asarray(color, dtype=np.float32)[:3] / 255.0
            src_a = cov * opacity
            out_a = src_a + dst_a * (1.0 - src_a)
            premul = src_rgb * src_a + dst_rgb * dst_a * (1.0 - src_a)
            out_rgb = np.divide(
                premul, out_a,
                out=np.zeros_like(premul),
                where=out_a > 0.0
            )

        out = np.rint(np.concatenate([out_rgb, out_a], axis=-1) * 255.0)
        out = np.clip(out, 0, 255).astype(np.uint8)
        out[out[..., 3] == 0] = 0

        roi[touched] = out[touched]
        return int(touched.sum())

    def alpha(self) -> np.ndarray:
        """View of the alpha channel, shape (H, W)."""
        return self.pixels[..., 3]
