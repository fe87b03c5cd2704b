"""Test the headless pipeline and its CLI.

Tests for spen_mask.pipeline and scripts/paint_mask.py:
    - replay_events dispatch (strokes, tool switches, clear, resize)
    - paint_mask_main artifacts: mask.png, original.png, session.yaml
    - Stroke + fill covers the whole canvas
    - Submission to the local backend
    - CLI exit codes

Run:
    pytest tests/test_pipeline.py -v
"""

import importlib.util
import sys
from pathlib import Path

import numpy as np
import pytest
import yaml
from PIL import Image

from spen_mask.errors import ConfigError, ImageDecodeError
from spen_mask.inpaint_backend.image_io import BaseImage
from spen_mask.mask_engine.session import DrawingSession, Tool
from spen_mask.pipeline import paint_mask_main, replay_events
from spen_mask.utils import fs
from spen_mask.utils.logging_config import setup_logging
from spen_mask.utils.validators import PointerScriptV1

REPO_ROOT = Path(__file__).resolve().parent.parent


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture(autouse=True)
def reset_logging():
    yield
    setup_logging(to_stderr=False, capture_warnings=False)


@pytest.fixture
def image_file(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes(64, 48, (90, 120, 30)))
    return path


def _script(events):
    return {'schema': "pointer_script.v1", 'events': events}


@pytest.fixture
def stroke_and_fill(tmp_path):
    path = tmp_path / "events.yaml"
    fs.atomic_yaml_dump(_script([
        {'type': "brush_size", 'size': 6},
        {'type': "down", 'x': 10, 'y': 10, 'pressure': 1.0},
        {'type': "move", 'x': 20, 'y': 10, 'pressure': 1.0},
        {'type': "up"},
        {'type': "tool", 'tool': "fill"},
        {'type': "down", 'x': 60, 'y': 40},
    ]), path)
    return path


@pytest.fixture
def config_file(tmp_path):
    def make(**overrides):
        data = {'schema': "mask_tool.v1", 'canvas': {'width': 64, 'height': 48}, **overrides}
        path = tmp_path / "mask_tool.yaml"
        fs.atomic_yaml_dump(data, path)
        return path
    return make


def _load_png(path):
    with Image.open(path) as img:
        return np.array(img)


def _base(width, height):
    return BaseImage(np.full((height, width, 4), 255, dtype=np.uint8))


# ============================================================================
# REPLAY
# ============================================================================

def test_replay_counts_and_dispatch(session):
    script = PointerScriptV1(**_script([
        {'type': "down", 'x': 20, 'y': 20},
        {'type': "move", 'x': 80, 'y': 20, 'pressure': 0.5},
        {'type': "leave"},
        {'type': "tool", 'tool': "eraser"},
        {'type': "brush_size", 'size': 30},
    ]))
    counts = replay_events(session, script)
    assert counts == {'down': 1, 'move': 1, 'leave': 1, 'tool': 1, 'brush_size': 1}
    assert session.tool is Tool.ERASER
    assert session.brush_size == 30
    assert not session.is_drawing
    assert session.buffer.get_pixel(50, 20)[3] > 0


def test_replay_clear_and_resize(session):
    script = PointerScriptV1(**_script([
        {'type': "down", 'x': 20, 'y': 20},
        {'type': "clear"},
        {'type': "move", 'x': 40, 'y': 40},
        {'type': "resize", 'width': 30, 'height': 20},
        {'type': "move", 'x': 5, 'y': 5},
    ]))
    replay_events(session, script)
    assert session.buffer.shape == (30, 20)
    assert not session.buffer.pixels.any()


def test_replay_fill_click_outside_resized_surface(session):
    script = PointerScriptV1(**_script([
        {'type': "resize", 'width': 50, 'height': 50},
        {'type': "tool", 'tool': "fill"},
        {'type': "down", 'x': 80, 'y': 80},
        {'type': "down", 'x': 10, 'y': 10},
    ]))
    counts = replay_events(session, script)
    assert counts['down'] == 2
    # Only the in-bounds click fills
    assert session.buffer.get_pixel(49, 49) == (255, 255, 255, 128)


def test_replay_cancel_keeps_paint():
    s = DrawingSession(50, 50, brush_size=8, mask_opacity=1.0)
    s.load_base_image(_base(50, 50))
    replay_events(s, PointerScriptV1(**_script([
        {'type': "down", 'x': 10, 'y': 25},
        {'type': "move", 'x': 40, 'y': 25},
        {'type': "cancel"},
        {'type': "move", 'x': 40, 'y': 45},
    ])))
    assert s.buffer.get_pixel(25, 25) == (255, 255, 255, 255)
    assert s.buffer.get_pixel(40, 40) == (0, 0, 0, 0)


# ============================================================================
# PAINT_MASK_MAIN
# ============================================================================

def test_stroke_then_fill_covers_canvas(tmp_path, image_file, stroke_and_fill, config_file):
    out_dir = tmp_path / "out"
    result = paint_mask_main(image_file, stroke_and_fill, out_dir, config_path=config_file())

    assert result['painted_pixels'] == 64 * 48
    assert result['events']['down'] == 2
    assert result['submission'] is None

    mask = _load_png(result['mask_path'])
    assert mask.shape == (48, 64, 4)
    assert np.all(mask[..., 3] == 255)
    # Fill at opacity 0.5 flattened over black
    assert tuple(mask[40, 60]) == (128, 128, 128, 255)

    original = _load_png(result['original_path'])
    assert tuple(original[24, 32]) == (90, 120, 30, 255)

    meta = fs.load_yaml(result['metadata_path'])
    assert meta['canvas'] == {'width': 64, 'height': 48}
    assert meta['final_tool'] == "fill"
    assert meta['painted_pixels'] == 64 * 48


def test_fill_click_outside_canvas_still_exports(tmp_path, image_file, config_file):
    events_path = tmp_path / "outside.yaml"
    fs.atomic_yaml_dump(_script([
        {'type': "tool", 'tool': "fill"},
        {'type': "down", 'x': 500, 'y': 20},
    ]), events_path)
    result = paint_mask_main(image_file, events_path, tmp_path / "out", config_path=config_file())
    assert result['painted_pixels'] == 0
    assert Path(result['mask_path']).exists()


def test_raw_mask_and_canvas_override(tmp_path, image_file, stroke_and_fill):
    result = paint_mask_main(
        image_file, stroke_and_fill, tmp_path / "out",
        canvas_size=(128, 96), flatten=False
    )
    mask = _load_png(result['mask_path'])
    assert mask.shape == (96, 128, 4)
    assert tuple(mask[90, 120]) == (255, 255, 255, 128)


def test_submit_stores_pair(tmp_path, image_file, stroke_and_fill, config_file):
    out_dir = tmp_path / "out"
    result = paint_mask_main(
        image_file, stroke_and_fill, out_dir,
        config_path=config_file(), submit=True, prompt="moss"
    )
    submission = result['submission']
    assert submission['success']
    assert submission['prompt'] == "moss"
    assert submission['mask_path'].startswith("/uploads/mask-")

    stored = list((out_dir / "uploads").glob("*.png"))
    assert len(stored) == 2


def test_submit_default_prompt(tmp_path, image_file, stroke_and_fill, config_file):
    cfg = config_file(prompts={'default_prompt': "clean wall"})
    result = paint_mask_main(image_file, stroke_and_fill, tmp_path / "out", config_path=cfg, submit=True)
    assert result['submission']['prompt'] == "clean wall"


def test_missing_inputs(tmp_path, image_file, stroke_and_fill):
    with pytest.raises(FileNotFoundError):
        paint_mask_main(tmp_path / "nope.png", stroke_and_fill, tmp_path / "out")
    with pytest.raises(FileNotFoundError):
        paint_mask_main(image_file, tmp_path / "nope.yaml", tmp_path / "out")


def test_invalid_inputs(tmp_path, image_file, stroke_and_fill):
    bad_image = tmp_path / "bad.png"
    bad_image.write_bytes(b"definitely not a png")
    with pytest.raises(ImageDecodeError):
        paint_mask_main(bad_image, stroke_and_fill, tmp_path / "out")

    bad_events = tmp_path / "bad.yaml"
    bad_events.write_text(yaml.safe_dump(_script([{'type': "down"}])))
    with pytest.raises(ConfigError):
        paint_mask_main(image_file, bad_events, tmp_path / "out")


# ============================================================================
# CLI
# ============================================================================

@pytest.fixture
def cli(monkeypatch):
    # main() installs its own excepthook
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    spec = importlib.util.spec_from_file_location(
        "paint_mask_cli", REPO_ROOT / "scripts" / "paint_mask.py"
    )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_cli_success(cli, tmp_path, image_file, stroke_and_fill, config_file):
    out_dir = tmp_path / "out"
    code = cli.main([
        "--image", str(image_file),
        "--events", str(stroke_and_fill),
        "--output_dir", str(out_dir),
        "--config", str(config_file()),
        "--raw_mask",
    ])
    assert code == 0
    assert (out_dir / "mask.png").exists()
    assert (out_dir / "session.yaml").exists()
    with Image.open(out_dir / "mask.png") as img:
        assert img.getpixel((60, 40)) == (255, 255, 255, 128)


def test_cli_input_errors(cli, tmp_path, image_file, stroke_and_fill):
    base = ["--events", str(stroke_and_fill), "--output_dir", str(tmp_path / "out")]
    assert cli.main(["--image", str(tmp_path / "missing.png")] + base) == 1
    assert cli.main(["--image", str(image_file), "--canvas_size", "wide"] + base) == 1
    assert cli.main(["--image", str(image_file), "--config", str(tmp_path / "no.yaml")] + base) == 1


def test_cli_submission_failure(cli, tmp_path, image_file, stroke_and_fill, config_file):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("occupied")
    cfg = config_file(backend={'uploads_dir': str(blocker)})
    code = cli.main([
        "--image", str(image_file),
        "--events", str(stroke_and_fill),
        "--output_dir", str(tmp_path / "out"),
        "--config", str(cfg),
        "--submit",
    ])
    assert code == 2


def test_cli_submission_success(cli, tmp_path, image_file, stroke_and_fill, config_file):
    code = cli.main([
        "--image", str(image_file),
        "--events", str(stroke_and_fill),
        "--output_dir", str(tmp_path / "out"),
        "--config", str(config_file()),
        "--submit", "--prompt", "grass",
    ])
    assert code == 0
    meta = fs.load_yaml(tmp_path / "out" / "session.yaml")
    assert meta['submission']['prompt'] == "grass"
