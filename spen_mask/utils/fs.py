"""Artifact writing and YAML reading for the mask tool.

Every file the tool produces (uploaded originals and masks in the local
store, mask.png / original.png / session.yaml from the pipeline) is written
through ``atomic_write_bytes``: the payload goes to a hidden temp file in the
target directory, is fsynced, then renamed over the target. A reader listing
``uploads/`` never sees a half-written PNG.

Config and pointer scripts come in through ``load_yaml``, which only accepts
a mapping at the top level and reports parse problems as ConfigError so the
CLI can treat them like any other invalid input.

Usage:
    from spen_mask.utils import fs
    fs.atomic_write_bytes(out_dir / "mask.png", png_bytes)
    fs.atomic_yaml_dump(metadata, out_dir / "session.yaml")
    data = fs.load_yaml("configs/mask_tool.v1.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from ..errors import ConfigError

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create ``p`` (and parents) if missing; return it as a Path."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: PathLike, data: bytes) -> Path:
    """Replace ``path`` with ``data`` in one rename.

    Parameters
    ----------
    path : PathLike
        Target file; its directory is created on demand
    data : bytes
        Complete file content

    Returns
    -------
    Path
        The written path

    Raises
    ------
    RuntimeError
        If writing or renaming fails; the temp file is removed and an
        existing target is left untouched
    """
    path = Path(path)
    directory = ensure_dir(path.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".part", dir=directory)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise RuntimeError(f"Failed to write {path}: {e}") from e
    return path


def atomic_yaml_dump(obj: Any, path: PathLike) -> Path:
    """Write ``obj`` as block-style YAML, keeping key order."""
    text = yaml.safe_dump(obj, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return atomic_write_bytes(path, text.encode('utf-8'))


def load_yaml(path: PathLike) -> Dict[str, Any]:
    """Read a YAML mapping.

    An empty file reads as ``{}``.

    Raises
    ------
    FileNotFoundError
        If ``path`` doesn't exist
    ConfigError
        If the file is not valid YAML or its top level is not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping at the top of {path}, got {type(data).__name__}"
        )
    return data
