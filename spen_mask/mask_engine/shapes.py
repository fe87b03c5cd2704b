"""Anti-aliased paint shapes.

Each shape rasterizes itself into a coverage map over a clipped region of
interest (ROI) of the buffer:

    coverage = clip(r + 0.5 - d, 0, 1)

where ``d`` is the distance from a pixel centre to the shape's centreline
and ``r`` its half-width. This gives a one-pixel anti-aliased rim and round
caps for free; a disc is the degenerate zero-length segment.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..utils import geometry

# (x0, y0, x1, y1) exclusive ROI plus coverage of shape (y1 - y0, x1 - x0)
Coverage = Tuple[Tuple[int, int, int, int], np.ndarray]


def _capsule_coverage(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    radius: float,
    width: int,
    height: int
) -> Optional[Coverage]:
    if radius <= 0.0 or not all(map(math.isfinite, (x0, y0, x1, y1, radius))):
        return None

    reach = radius + 0.5
    roi = geometry.clip_roi(
        min(x0, x1) - reach, min(y0, y1) - reach,
        max(x0, x1) + reach, max(y0, y1) + reach,
        width, height
    )
    if roi is None:
        return None

    dist = geometry.segment_distance_grid(x0, y0, x1, y1, roi)
    coverage = np.clip(radius + 0.5 - dist, 0.0, 1.0).astype(np.float32)
    if not coverage.any():
        return None
    return roi, coverage


@dataclass(frozen=True)
class Disc:
    """Filled circle of the given diameter centred at (cx, cy)."""

    cx: float
    cy: float
    diameter: float

    def coverage(self, width: int, height: int) -> Optional[Coverage]:
        return _capsule_coverage(
            self.cx, self.cy, self.cx, self.cy, 0.5 * self.diameter, width, height
        )


@dataclass(frozen=True)
class Segment:
    """Line segment with round caps, stroked at ``width``."""

    x0: float
    y0: float
    x1: float
    y1: float
    width: float

    def coverage(self, width: int, height: int) -> Optional[Coverage]:
        return _capsule_coverage(
            self.x0, self.y0, self.x1, self.y1, 0.5 * self.width, width, height
        )
