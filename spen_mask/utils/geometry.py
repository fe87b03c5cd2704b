"""Geometric helpers for painting and image placement.

Provides:
    - Letterbox fitting of an image into a drawing surface (aspect preserved)
    - Vectorized point-to-segment distance over a pixel grid
    - Clipped region of interest (ROI) around a shape

Used by:
    - Paint shapes: anti-aliased disc / round-capped segment coverage
    - Image I/O: drawing the base image centred on the canvas

All coordinates are canvas pixels, top-left origin, +Y down. Pixel (i, j)
covers the square [i, i+1) × [j, j+1); its centre is (i + 0.5, j + 0.5).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class LetterboxRect:
    """Placement of an image inside a canvas (floats, canvas pixels)."""

    offset_x: float
    offset_y: float
    width: float
    height: float


def letterbox(
    canvas_w: int,
    canvas_h: int,
    image_w: int,
    image_h: int
) -> LetterboxRect:
    """Fit an image inside a canvas, preserving aspect ratio and centring it.

    Parameters
    ----------
    canvas_w, canvas_h : int
        Drawing surface size in pixels
    image_w, image_h : int
        Image size in pixels

    Returns
    -------
    LetterboxRect
        Offset and drawn size of the image

    Raises
    ------
    ValueError
        If any dimension is not positive

    Notes
    -----
    A canvas wider (relative to its height) than the image uses the full
    canvas height and pads left/right; otherwise the full width is used and
    the image is padded top/bottom.
    """
    if min(canvas_w, canvas_h, image_w, image_h) <= 0:
        raise ValueError(
            f"Dimensions must be positive, got canvas={canvas_w}x{canvas_h}, "
            f"image={image_w}x{image_h}"
        )

    canvas_ratio = canvas_w / canvas_h
    image_ratio = image_w / image_h

    if canvas_ratio > image_ratio:
        draw_h = float(canvas_h)
        draw_w = image_w * (draw_h / image_h)
        return LetterboxRect((canvas_w - draw_w) / 2.0, 0.0, draw_w, draw_h)

    draw_w = float(canvas_w)
    draw_h = image_h * (draw_w / image_w)
    return LetterboxRect(0.0, (canvas_h - draw_h) / 2.0, draw_w, draw_h)


def clip_roi(
    x_min: float,
    y_min: float,
    x_max: float,
    y_max: float,
    width: int,
    height: int
) -> Optional[Tuple[int, int, int, int]]:
    """Integer pixel ROI covering a float bounding box, clipped to the canvas.

    Returns
    -------
    Optional[Tuple[int, int, int, int]]
        (x0, y0, x1, y1) with exclusive upper bounds, or None when the box
        does not touch the canvas.
    """
    x0 = max(0, int(np.floor(x_min)))
    y0 = max(0, int(np.floor(y_min)))
    x1 = min(width, int(np.ceil(x_max)) + 1)
    y1 = min(height, int(np.ceil(y_max)) + 1)
    if x1 <= x0 or y1 <= y0:
        return None
    return x0, y0, x1, y1


def segment_distance_grid(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    roi: Tuple[int, int, int, int]
) -> np.ndarray:
    """Distance from every pixel centre in ``roi`` to segment (x0,y0)-(x1,y1).

    Parameters
    ----------
    x0, y0, x1, y1 : float
        Segment endpoints; equal endpoints degenerate to a point
    roi : tuple of int
        (x_start, y_start, x_stop, y_stop), exclusive stops

    Returns
    -------
    np.ndarray
        Distances, shape (y_stop - y_start, x_stop - x_start), float32
    """
    rx0, ry0, rx1, ry1 = roi
    ys, xs = np.meshgrid(
        np.arange(ry0, ry1, dtype=np.float32) + 0.5,
        np.arange(rx0, rx1, dtype=np.float32) + 0.5,
        indexing='ij'
    )

    dx = x1 - x0
    dy = y1 - y0
    length_sq = dx * dx + dy * dy

    if length_sq < 1e-12:
        return np.hypot(xs - x0, ys - y0).astype(np.float32)

    # Project onto the segment and clamp to the endpoints (round caps)
    t = ((xs - x0) * dx + (ys - y0) * dy) / length_sq
    t = np.clip(t, 0.0, 1.0)
    px = x0 + t * dx
    py = y0 + t * dy
    return np.hypot(xs - px, ys - py).astype(np.float32)
