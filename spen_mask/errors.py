"""Exception hierarchy for the mask tool.

Only genuine precondition violations are exceptions. "No base image loaded"
and "fill target already filled" are valid states handled as no-ops, and
backend submission failures are returned as values (see
``inpaint_backend.local_backend.SubmissionResult``).
"""


class SpenMaskError(Exception):
    """Base class for all mask tool errors."""

    pass


class OutOfBoundsError(SpenMaskError, IndexError):
    """Raised when a pixel coordinate falls outside the buffer."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(
            f"Pixel ({x}, {y}) out of bounds for {width}x{height} buffer"
        )
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class ImageDecodeError(SpenMaskError, ValueError):
    """Raised when user-supplied image bytes cannot be decoded."""

    pass


class ConfigError(SpenMaskError, ValueError):
    """Raised when a configuration file fails validation."""

    pass
