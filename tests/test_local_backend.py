"""Test the local inpainting backend mock.

Tests for spen_mask.inpaint_backend.local_backend:
    - Data-URL / raw bytes decoding
    - LocalImageStore persist, unique filenames, listing newest first
    - LocalInpaintSink success and failure results
    - submit_inpaint gating, default prompt, and flattened mask export

Run:
    pytest tests/test_local_backend.py -v
"""

import base64
import io
import os

import numpy as np
import pytest
from PIL import Image

from spen_mask.inpaint_backend.local_backend import (
    LocalImageStore,
    LocalInpaintSink,
    SubmissionResult,
    decode_image_data,
    submit_inpaint,
)
from spen_mask.mask_engine import events


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def store(tmp_path):
    return LocalImageStore(tmp_path / "uploads")


class RecordingSink:
    """SubmissionSink that keeps the last request in memory."""

    def __init__(self):
        self.calls = []

    def submit(self, original, mask, prompt, negative_prompt):
        self.calls.append((original, mask, prompt, negative_prompt))
        return SubmissionResult(True, "ok", prompt=prompt, negative_prompt=negative_prompt)


class FailingStore:
    def persist(self, data, prefix="img"):
        raise RuntimeError("disk full")


# ============================================================================
# DECODING
# ============================================================================

def test_decode_raw_bytes():
    assert decode_image_data(b"abc") == b"abc"


def test_decode_data_url(png_bytes):
    png = png_bytes(2, 2)
    url = "data:image/png;base64," + base64.b64encode(png).decode("ascii")
    assert decode_image_data(url) == png


@pytest.mark.parametrize("data", [b"", "", "data:image/png;base64,", "data:image/png;base64,@@@"])
def test_decode_rejects_empty_or_invalid(data):
    with pytest.raises(ValueError):
        decode_image_data(data)


# ============================================================================
# IMAGE STORE
# ============================================================================

def test_persist_writes_file(store, png_bytes):
    png = png_bytes(3, 3)
    ref = store.persist(png, prefix="original")
    assert ref.filename.startswith("original-")
    assert ref.filename.endswith(".png")
    assert ref.path == f"/uploads/{ref.filename}"
    assert store.resolve(ref).read_bytes() == png


def test_persist_filenames_are_unique(store, png_bytes):
    refs = [store.persist(png_bytes(2, 2), prefix="mask") for _ in range(5)]
    assert len({r.filename for r in refs}) == 5


def test_persist_custom_url_prefix(tmp_path, png_bytes):
    store = LocalImageStore(tmp_path, url_prefix="/files/")
    ref = store.persist(png_bytes(2, 2))
    assert ref.path == f"/files/{ref.filename}"


def test_list_images_newest_first(store, png_bytes):
    assert store.list_images() == []

    first = store.persist(png_bytes(2, 2), prefix="original")
    second = store.persist(png_bytes(2, 2), prefix="original")
    store.persist(png_bytes(2, 2), prefix="mask")
    os.utime(store.resolve(first), (1_000_000, 1_000_000))

    listed = store.list_images()
    assert [entry['filename'] for entry in listed] == [second.filename, first.filename]
    assert listed[0]['path'] == second.path


# ============================================================================
# SINK
# ============================================================================

def test_sink_success(store, png_bytes):
    sink = LocalInpaintSink(store)
    result = sink.submit(png_bytes(4, 4), png_bytes(4, 4), "a cat", "blurry")
    assert result.success
    assert result.message == "Images saved successfully"
    assert result.original_path.startswith("/uploads/original-")
    assert result.mask_path.startswith("/uploads/mask-")
    assert result.prompt == "a cat"
    assert result.negative_prompt == "blurry"
    assert result.to_dict()['success'] is True


@pytest.mark.parametrize("original,mask", [(b"", b"x"), (b"x", b""), (None, b"x")])
def test_sink_missing_images(store, original, mask):
    result = LocalInpaintSink(store).submit(original, mask, "p", "")
    assert not result.success
    assert result.message == "Missing required images"
    assert store.list_images() == []


def test_sink_reports_store_failure_as_value():
    result = LocalInpaintSink(FailingStore()).submit(b"x", b"y", "p", "n")
    assert not result.success
    assert "disk full" in result.message


# ============================================================================
# SUBMIT FROM SESSION
# ============================================================================

def test_submit_without_base_image(bare_session):
    sink = RecordingSink()
    result = submit_inpaint(bare_session, sink)
    assert not result.success
    assert result.message == "Please upload an image first"
    assert sink.calls == []


def test_submit_uses_default_prompt(session):
    sink = RecordingSink()
    submit_inpaint(session, sink, prompt="", negative_prompt="")
    assert sink.calls[0][2] == "Realistic photo"
    assert sink.calls[0][3] == ""


def test_submit_exports_flattened_mask(session):
    events.on_pointer_down(session, 50, 50, 1.0)
    events.on_pointer_up(session)
    before = session.buffer.pixels.copy()

    sink = RecordingSink()
    result = submit_inpaint(session, sink, prompt="sky")
    assert result.success

    original, mask, prompt, _ = sink.calls[0]
    assert prompt == "sky"
    with Image.open(io.BytesIO(mask)) as img:
        mask_pixels = np.array(img)
    with Image.open(io.BytesIO(original)) as img:
        assert img.size == (100, 100)

    assert np.all(mask_pixels[..., 3] == 255)
    assert tuple(mask_pixels[50, 50]) == (128, 128, 128, 255)
    assert tuple(mask_pixels[0, 0]) == (0, 0, 0, 255)
    # Session state is untouched by submission
    assert np.array_equal(session.buffer.pixels, before)


def test_submit_end_to_end_local(session, store):
    result = submit_inpaint(session, LocalInpaintSink(store), prompt="tree")
    assert result.success
    assert len(store.list_images("original")) == 1
    assert len(store.list_images("mask")) == 1
