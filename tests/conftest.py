"""Shared fixtures for mask engine tests."""

import io

import numpy as np
import pytest
from PIL import Image

from spen_mask.inpaint_backend.image_io import BaseImage
from spen_mask.mask_engine.session import DrawingSession


def _make_png_bytes(width: int, height: int, color=(200, 40, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    """Factory encoding a solid-color RGB image as PNG: png_bytes(w, h, color)."""
    return _make_png_bytes


@pytest.fixture
def base_image():
    """Small opaque base image (content is irrelevant to the mask engine)."""
    pixels = np.full((30, 40, 4), 255, dtype=np.uint8)
    return BaseImage(pixels)


@pytest.fixture
def session(base_image):
    """100×100 session, brush 20, opacity 0.5, base image loaded."""
    s = DrawingSession(100, 100, brush_size=20, mask_opacity=0.5)
    s.load_base_image(base_image)
    return s


@pytest.fixture
def bare_session():
    """100×100 session without a base image."""
    return DrawingSession(100, 100, brush_size=20, mask_opacity=0.5)
