"""S Pen Masking Tool: paint inpainting masks over an uploaded image.

This package contains the mask-painting engine (stroke renderer + flood fill
on an RGBA raster buffer), the image I/O used around it, and a local mock of
the inpainting backend.

Architecture layers (strict one-way dependency):
    scripts/ → spen_mask/pipeline → spen_mask/{inpaint_backend,mask_engine}/ → spen_mask/utils/

Key invariants:
    - Mask buffer is (H, W, 4) uint8 RGBA, non-premultiplied
    - Fully transparent pixels are always (0, 0, 0, 0)
    - All painting is synchronous and in place; one stroke at a time
    - YAML-only configs, validated with pydantic
"""

__version__ = "0.3.0"
