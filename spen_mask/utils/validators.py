"""YAML schema validation and config loading.

Provides centralized validation for all configuration files using pydantic:
    - Mask tool schema (mask_tool.v1.yaml): brush, opacity, canvas, export,
      backend and prompt defaults, logging
    - Pointer script schema (pointer_script.v1.yaml): recorded pointer/tool
      events replayed by the pipeline

All modules must use these validators to load configs for fail-fast error
detection with actionable messages (offending keys, expected ranges).

Units:
    - Geometry: canvas pixels
    - Opacity and pressure: [0.0, 1.0]

Usage:
    from spen_mask.utils import validators

    cfg = validators.load_mask_tool_config("configs/mask_tool.v1.yaml")
    script = validators.load_pointer_script("events.yaml")
"""

from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import ConfigError

TOOL_NAMES = ("brush", "eraser", "fill")


# ============================================================================
# MASK TOOL SCHEMA V1
# ============================================================================

class CanvasConfig(BaseModel):
    """Initial drawing surface size (pixels)."""
    width: int = Field(1024, gt=0, le=16384, description="Canvas width (px)")
    height: int = Field(768, gt=0, le=16384, description="Canvas height (px)")


class ExportConfig(BaseModel):
    """Mask export options."""
    flatten_mask: bool = Field(
        True,
        description="Composite the mask over opaque black before export"
    )


class BackendConfig(BaseModel):
    """Local inpainting backend mock."""
    uploads_dir: str = Field("uploads", description="Directory for stored images")
    url_prefix: str = Field("/uploads", description="Reference prefix returned to callers")

    @field_validator('url_prefix')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v.startswith('/'):
            raise ValueError(f"url_prefix must start with '/', got '{v}'")
        return v.rstrip('/') or '/'


class PromptDefaults(BaseModel):
    """Prompt defaults used when the user leaves a field empty."""
    default_prompt: str = Field("Realistic photo")
    default_negative_prompt: str = Field("")


class LoggingSettings(BaseModel):
    """Logging options passed to setup_logging()."""
    level: str = Field("INFO")
    file: Optional[str] = Field(None)
    json_format: bool = Field(False, alias="json")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"Logging level must be one of {allowed}, got '{v}'")
        return v.upper()


class MaskToolConfig(BaseModel):
    """Mask tool configuration (mask_tool.v1.yaml schema)."""
    schema_version: str = Field("mask_tool.v1", alias="schema", description="Schema version")
    brush_size: float = Field(10.0, gt=0.0, le=500.0, description="Brush diameter (px)")
    mask_opacity: float = Field(0.5, ge=0.0, le=1.0, description="Opacity of brush and fill paint")
    default_tool: str = Field("brush", description="Tool active at session start")
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    prompts: PromptDefaults = Field(default_factory=PromptDefaults)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "mask_tool.v1":
            raise ValueError(f"Expected schema 'mask_tool.v1', got '{v}'")
        return v

    @field_validator('default_tool')
    @classmethod
    def validate_tool(cls, v: str) -> str:
        if v not in TOOL_NAMES:
            raise ValueError(f"default_tool must be one of {list(TOOL_NAMES)}, got '{v}'")
        return v


# ============================================================================
# POINTER SCRIPT SCHEMA V1
# ============================================================================

EventType = Literal[
    "down", "move", "up", "cancel", "leave",
    "tool", "brush_size", "clear", "resize"
]


class PointerEvent(BaseModel):
    """One recorded input event.

    Positional events (down, move) need x and y; pressure is optional and
    means 1.0 when absent. ``tool`` events need ``tool``, ``brush_size``
    events need ``size`` and ``resize`` events need ``width`` and ``height``.
    """
    type: EventType
    x: Optional[float] = None
    y: Optional[float] = None
    pressure: Optional[float] = Field(None, ge=0.0, le=1.0)
    tool: Optional[str] = None
    size: Optional[float] = Field(None, gt=0.0)
    width: Optional[int] = Field(None, gt=0)
    height: Optional[int] = Field(None, gt=0)

    @model_validator(mode='after')
    def validate_required_fields(self) -> 'PointerEvent':
        if self.type in ("down", "move") and (self.x is None or self.y is None):
            raise ValueError(f"'{self.type}' event requires x and y")
        if self.type == "tool":
            if self.tool not in TOOL_NAMES:
                raise ValueError(
                    f"'tool' event requires tool in {list(TOOL_NAMES)}, got {self.tool!r}"
                )
        if self.type == "brush_size" and self.size is None:
            raise ValueError("'brush_size' event requires size")
        if self.type == "resize" and (self.width is None or self.height is None):
            raise ValueError("'resize' event requires width and height")
        return self


class PointerScriptV1(BaseModel):
    """Container for an ordered list of input events."""
    schema_version: str = Field("pointer_script.v1", alias="schema", description="Schema version")
    events: List[PointerEvent] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "pointer_script.v1":
            raise ValueError(f"Expected schema 'pointer_script.v1', got '{v}'")
        return v


# ============================================================================
# PUBLIC API
# ============================================================================

def load_mask_tool_config(path: Optional[Union[str, Path]] = None) -> MaskToolConfig:
    """Load and validate the mask tool config from YAML.

    Parameters
    ----------
    path : Union[str, Path], optional
        Path to mask_tool.v1.yaml; None returns the built-in defaults

    Returns
    -------
    MaskToolConfig
        Validated configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigError
        If validation fails (with actionable error message)
    """
    if path is None:
        return MaskToolConfig()

    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mask tool config not found: {path}")

    data = fs.load_yaml(path)
    try:
        return MaskToolConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Mask tool config validation failed at {path}: {e}") from e


def load_pointer_script(path: Union[str, Path]) -> PointerScriptV1:
    """Load and validate a pointer event script from YAML.

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigError
        If validation fails (message includes the event index)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pointer script not found: {path}")

    data = fs.load_yaml(path)
    try:
        return PointerScriptV1(**data)
    except ValidationError as e:
        raise ConfigError(f"Pointer script validation failed at {path}: {e}") from e
