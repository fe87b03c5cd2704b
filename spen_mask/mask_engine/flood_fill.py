"""Flood fill ("fill tool") on the raster mask buffer.

Algorithm (iterative, stack-based, 4-connected):
    1. Read the seed pixel's exact (R, G, B, A) tuple as the target
    2. No-op if the target already equals the fill tuple
    3. Pop coordinates from an explicit LIFO stack seeded with the seed
    4. Discard out-of-bounds pixels and pixels not exactly equal to the target
    5. Write the fill tuple and push all four axis neighbours
    6. Stop when the stack is empty

Visited-ness is implied: a written pixel no longer matches the target, so
re-pushed neighbours terminate on their own pop. Each pixel is compared as a
single uint32 word through a view of the buffer, so a click never scans or
copies pixels outside the filled region. Matching is exact, with no
color-distance tolerance, so anti-aliased stroke rims whose alpha differs from
the target bound the region.

Complexity:
    - Time O(region size)
    - Stack can approach O(width × height) entries for thin spiral regions;
      the fill runs to completion synchronously
"""

import logging
import math
from typing import Tuple

import numpy as np

from .buffer import RasterMaskBuffer
from .session import MASK_RGB, DrawingSession

logger = logging.getLogger(__name__)


def fill_alpha_for(opacity: float) -> int:
    """8-bit fill alpha for a mask opacity (255 × opacity, rounded).

    Rounds half to even like the canvas byte store: 0.5 → 128.
    """
    return int(np.clip(round(255.0 * float(opacity)), 0, 255))


def flood_fill(
    buffer: RasterMaskBuffer,
    seed_x: float,
    seed_y: float,
    fill_color: Tuple[int, int, int] = MASK_RGB,
    fill_alpha: int = 255
) -> int:
    """Recolor the 4-connected region of pixels exactly matching the seed.

    Parameters
    ----------
    buffer : RasterMaskBuffer
        Buffer mutated in place
    seed_x, seed_y : float
        Seed position; fractional coordinates are floored
    fill_color : tuple of int
        Fill RGB, default white
    fill_alpha : int
        Fill alpha in [0, 255]

    Returns
    -------
    int
        Number of pixels recolored (0 for the no-op case)

    Raises
    ------
    OutOfBoundsError
        If the seed lies outside the buffer
    """
    sx = int(math.floor(seed_x))
    sy = int(math.floor(seed_y))
    target = buffer.get_pixel(sx, sy)
    fill = (int(fill_color[0]), int(fill_color[1]), int(fill_color[2]), int(fill_alpha))

    if target == fill:
        return 0

    if not buffer.pixels.flags.c_contiguous:
        buffer.pixels = np.ascontiguousarray(buffer.pixels)
    width, height = buffer.width, buffer.height

    # One uint32 word per RGBA pixel (a view: writes land in the buffer)
    words = buffer.pixels.view(np.uint32)[..., 0]
    target_word = np.array(target, dtype=np.uint8).view(np.uint32)[0]
    fill_word = np.array(fill, dtype=np.uint8).view(np.uint32)[0]

    filled = 0
    stack = [(sx, sy)]
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        if words[y, x] != target_word:
            continue

        words[y, x] = fill_word
        filled += 1

        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))

    logger.debug(f"Flood fill from ({sx}, {sy}) target={target} → {fill}: {filled} px")
    return filled


def fill_at(session: DrawingSession, x: float, y: float) -> int:
    """Fill tool click: flood fill with the session's mask paint.

    No-op (returns 0) until a base image is loaded, and for clicks outside
    the drawing surface (the brush clips those the same way).
    """
    if not session.has_base_image:
        return 0
    if not (math.isfinite(x) and math.isfinite(y)) or \
            not session.buffer.in_bounds(math.floor(x), math.floor(y)):
        logger.debug(f"Fill click ({x}, {y}) outside {session.width}x{session.height} surface ignored")
        return 0
    return flood_fill(
        session.buffer,
        x,
        y,
        fill_color=MASK_RGB,
        fill_alpha=fill_alpha_for(session.mask_opacity)
    )
