"""Image loading, letterboxed base layer rendering, and PNG export.

Provides:
    - load_base_image(): decode user-supplied bytes into a read-only BaseImage
    - render_base_layer(): draw the base image letterboxed on a transparent canvas
    - export_mask_png(): mask buffer → PNG (flattened over black, or raw RGBA)
    - export_original_png(): letterboxed base layer → PNG

Decode failures raise ImageDecodeError and never leave a half-initialized
image behind, so the caller can prompt the user again.

Export is pure serialization: lossless PNG via Pillow, alpha preserved for
the raw mask.
"""

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import ImageDecodeError
from ..mask_engine.buffer import RasterMaskBuffer
from ..utils import geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaseImage:
    """Decoded base image (RGBA uint8, shape (H, W, 4)). Treated as read-only."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


def load_base_image(data: bytes) -> BaseImage:
    """Decode image bytes into a BaseImage.

    Parameters
    ----------
    data : bytes
        Encoded image (PNG, JPEG, ... anything Pillow reads)

    Returns
    -------
    BaseImage
        Fully decoded RGBA image

    Raises
    ------
    ImageDecodeError
        If the bytes are empty, truncated or not an image
    """
    if not data:
        raise ImageDecodeError("No image data provided")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Image decode failed: {e}")
        raise ImageDecodeError(f"Could not decode image: {e}") from e

    if rgba.ndim != 3 or rgba.shape[0] == 0 or rgba.shape[1] == 0:
        raise ImageDecodeError(f"Decoded image has invalid shape {rgba.shape}")

    rgba.setflags(write=False)
    return BaseImage(rgba)


def load_base_image_file(path: Union[str, Path]) -> BaseImage:
    """Read and decode an image file.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ImageDecodeError
        If the file content is not a decodable image
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    return load_base_image(path.read_bytes())


def render_base_layer(base: BaseImage, width: int, height: int) -> np.ndarray:
    """Draw the base image letterboxed on a transparent canvas.

    Parameters
    ----------
    base : BaseImage
        Source image
    width, height : int
        Canvas size in pixels

    Returns
    -------
    np.ndarray
        Canvas, shape (height, width, 4), uint8; padding is (0, 0, 0, 0)
    """
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    rect = geometry.letterbox(width, height, base.width, base.height)

    draw_w = max(1, int(round(rect.width)))
    draw_h = max(1, int(round(rect.height)))
    off_x = int(round(rect.offset_x))
    off_y = int(round(rect.offset_y))

    shrinking = draw_w < base.width or draw_h < base.height
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    resized = cv2.resize(base.pixels, (draw_w, draw_h), interpolation=interpolation)

    # Rounding can push the last row/column one pixel past the canvas
    x0, y0 = max(0, off_x), max(0, off_y)
    x1, y1 = min(width, off_x + draw_w), min(height, off_y + draw_h)
    canvas[y0:y1, x0:x1] = resized[y0 - off_y:y1 - off_y, x0 - off_x:x1 - off_x]
    return canvas


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode an (H, W, 4) or (H, W, 3) uint8 array as PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def flatten_on_black(pixels: np.ndarray) -> np.ndarray:
    """Composite an RGBA mask over an opaque black background.

    Returns
    -------
    np.ndarray
        Opaque RGBA array (alpha 255 everywhere); painted regions become
        white scaled by their alpha, everything else black
    """
    rgb = pixels[..., :3].astype(np.float32)
    alpha = pixels[..., 3:4].astype(np.float32) / 255.0
    out = np.empty_like(pixels)
    out[..., :3] = np.clip(np.rint(rgb * alpha), 0, 255).astype(np.uint8)
    out[..., 3] = 255
    return out


def export_mask_png(buffer: RasterMaskBuffer, flatten: bool = True) -> bytes:
    """Serialize the mask buffer as PNG.

    Parameters
    ----------
    buffer : RasterMaskBuffer
        Mask to export (not modified)
    flatten : bool
        True: opaque mask over black (for consumers that need an opaque
        alpha channel). False: raw semi-transparent RGBA mask.
    """
    pixels = flatten_on_black(buffer.pixels) if flatten else buffer.pixels.copy()
    return encode_png(pixels)


def export_original_png(session) -> bytes:
    """Serialize the letterboxed base layer at the session's canvas size.

    Raises
    ------
    ValueError
        If the session has no base image
    """
    if not session.has_base_image:
        raise ValueError("No base image loaded")
    return encode_png(render_base_layer(session.base_image, session.width, session.height))
