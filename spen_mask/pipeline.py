"""Headless mask painting pipeline: image + recorded pointer events → mask.

Runs the same engine the interactive front end drives, from files:
    1. Load and validate config (mask_tool.v1.yaml) and pointer script
    2. Decode the base image
    3. Build a DrawingSession and install the base image
    4. Replay pointer / tool events in order
    5. Export mask.png and original.png, write session.yaml metadata
    6. Optionally submit the pair to the local inpainting backend

Refactored architecture:
    - replay_events(session, script) → dict of event counts
    - paint_mask_main(...) → dict (callable; used by the CLI and tests)

Output structure:
    <output_dir>/
        mask.png
        original.png
        session.yaml
        uploads/            (only with submit=True and a relative uploads_dir)
"""

import logging
import time
from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .inpaint_backend import image_io
from .inpaint_backend.local_backend import LocalImageStore, LocalInpaintSink, submit_inpaint
from .mask_engine import events
from .mask_engine.session import DrawingSession
from .utils import fs, validators

logger = logging.getLogger(__name__)


def replay_events(
    session: DrawingSession,
    script: validators.PointerScriptV1
) -> Dict[str, int]:
    """Apply recorded events to a session in order.

    Parameters
    ----------
    session : DrawingSession
        Session mutated in place
    script : PointerScriptV1
        Validated event list

    Returns
    -------
    Dict[str, int]
        Number of events applied per type
    """
    counts: Counter = Counter()
    for event in script.events:
        kind = event.type
        if kind == "down":
            events.on_pointer_down(session, event.x, event.y, event.pressure)
        elif kind == "move":
            events.on_pointer_move(session, event.x, event.y, event.pressure)
        elif kind == "up":
            events.on_pointer_up(session)
        elif kind == "cancel":
            events.on_pointer_cancel(session)
        elif kind == "leave":
            events.on_pointer_leave(session)
        elif kind == "tool":
            session.set_tool(event.tool)
        elif kind == "brush_size":
            session.set_brush_size(event.size)
        elif kind == "clear":
            session.clear_mask()
        elif kind == "resize":
            session.resize(event.width, event.height)
        counts[kind] += 1

    logger.debug(f"Replayed {sum(counts.values())} events: {dict(counts)}")
    return dict(counts)


def paint_mask_main(
    image_path: Union[str, Path],
    events_path: Union[str, Path],
    output_dir: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
    canvas_size: Optional[Tuple[int, int]] = None,
    submit: bool = False,
    prompt: str = "",
    negative_prompt: str = "",
    flatten: Optional[bool] = None,
) -> Dict[str, Any]:
    """Paint a mask over an image from a pointer script and export it.

    Parameters
    ----------
    image_path : Union[str, Path]
        Base image file
    events_path : Union[str, Path]
        pointer_script.v1 YAML file
    output_dir : Union[str, Path]
        Output directory for artifacts
    config_path : Union[str, Path], optional
        mask_tool.v1 YAML; built-in defaults when None
    canvas_size : tuple of int, optional
        (width, height) overriding the configured canvas
    submit : bool
        Also submit to the local inpainting backend, default False
    prompt, negative_prompt : str
        Prompts for the submission; empty values use configured defaults
    flatten : bool, optional
        Override ``export.flatten_mask`` from config

    Returns
    -------
    Dict[str, Any]
        mask_path, original_path, metadata_path, events (counts),
        painted_pixels, submission (dict or None)

    Raises
    ------
    FileNotFoundError
        If an input file is missing
    ConfigError
        If the config or pointer script fails validation
    ImageDecodeError
        If the image cannot be decoded
    """
    t_start = time.time()
    cfg = validators.load_mask_tool_config(config_path)
    script = validators.load_pointer_script(events_path)
    base = image_io.load_base_image_file(image_path)

    out_path = fs.ensure_dir(output_dir)
    width, height = canvas_size if canvas_size else (cfg.canvas.width, cfg.canvas.height)
    session = DrawingSession.from_config(cfg, width, height)
    session.load_base_image(base)

    counts = replay_events(session, script)
    flatten_mask = cfg.export.flatten_mask if flatten is None else flatten

    mask_path = out_path / "mask.png"
    original_path = out_path / "original.png"
    fs.atomic_write_bytes(mask_path, image_io.export_mask_png(session.buffer, flatten=flatten_mask))
    fs.atomic_write_bytes(original_path, image_io.export_original_png(session))

    painted = int((session.buffer.alpha() > 0).sum())

    submission = None
    if submit:
        uploads_dir = Path(cfg.backend.uploads_dir)
        if not uploads_dir.is_absolute():
            uploads_dir = out_path / uploads_dir
        sink = LocalInpaintSink(LocalImageStore(uploads_dir, cfg.backend.url_prefix))
        result = submit_inpaint(
            session,
            sink,
            prompt=prompt,
            negative_prompt=negative_prompt or cfg.prompts.default_negative_prompt,
            flatten=flatten_mask,
            default_prompt=cfg.prompts.default_prompt,
        )
        if not result.success:
            logger.warning(f"Submission failed: {result.message}")
        submission = result.to_dict()

    metadata = {
        'image': str(image_path),
        'events': str(events_path),
        'canvas': {'width': session.width, 'height': session.height},
        'base_image': {'width': base.width, 'height': base.height},
        'brush_size': session.brush_size,
        'mask_opacity': session.mask_opacity,
        'final_tool': session.tool.value,
        'flatten_mask': flatten_mask,
        'event_counts': counts,
        'painted_pixels': painted,
        'submission': submission,
        'elapsed_s': round(time.time() - t_start, 4),
    }
    metadata_path = out_path / "session.yaml"
    fs.atomic_yaml_dump(metadata, metadata_path)

    logger.info(
        f"Mask written to {mask_path} ({painted} painted px, "
        f"{sum(counts.values())} events)"
    )

    return {
        'mask_path': str(mask_path),
        'original_path': str(original_path),
        'metadata_path': str(metadata_path),
        'events': counts,
        'painted_pixels': painted,
        'submission': submission,
    }
