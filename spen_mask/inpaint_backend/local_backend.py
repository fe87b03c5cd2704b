"""Backend contracts and a local filesystem mock of the inpainting service.

Contracts the mask engine talks to:
    - ImageStore.persist(data, prefix) → ImageRef
        "persist an image buffer, get back a reference"
    - SubmissionSink.submit(original, mask, prompt, negative_prompt) → SubmissionResult
        "submit (image, mask, prompt), get back success/failure"

Local mock:
    - LocalImageStore writes PNGs atomically under ``uploads_dir`` as
      ``<prefix>-<epoch ms>.png`` and returns ``<url_prefix>/<filename>`` refs
    - LocalInpaintSink stores original + mask and reports success; no
      inference is run

Failures of the sink are values (SubmissionResult(success=False, message=...)),
not exceptions, and never touch the mask buffer.
"""

import base64
import binascii
import logging
import re
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Union

from ..utils import fs
from .image_io import export_mask_png, export_original_png

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r'^data:image/\w+;base64,')

ImageData = Union[bytes, str]


@dataclass(frozen=True)
class ImageRef:
    """Reference to a stored image."""

    filename: str
    path: str


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of an inpainting submission."""

    success: bool
    message: str
    original_path: Optional[str] = None
    mask_path: Optional[str] = None
    prompt: str = ""
    negative_prompt: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


class ImageStore(Protocol):
    def persist(self, data: ImageData, prefix: str = "img") -> ImageRef:
        ...


class SubmissionSink(Protocol):
    def submit(
        self,
        original: ImageData,
        mask: ImageData,
        prompt: str,
        negative_prompt: str
    ) -> SubmissionResult:
        ...


def decode_image_data(data: ImageData) -> bytes:
    """Accept raw bytes or a ``data:image/...;base64,`` string.

    Raises
    ------
    ValueError
        If the payload is empty or not valid base64
    """
    if isinstance(data, str):
        payload = _DATA_URL_RE.sub('', data, count=1)
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e
    if not data:
        raise ValueError("No image data provided")
    return bytes(data)


class LocalImageStore:
    """Filesystem-backed ImageStore.

    Parameters
    ----------
    root : Union[str, Path]
        Directory files are written to (created on demand)
    url_prefix : str
        Prefix of the returned reference paths, default "/uploads"
    """

    def __init__(self, root: Union[str, Path], url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip('/')

    def _unique_filename(self, prefix: str) -> str:
        stamp = int(time.time() * 1000)
        filename = f"{prefix}-{stamp}.png"
        counter = 1
        while (self.root / filename).exists():
            filename = f"{prefix}-{stamp}-{counter}.png"
            counter += 1
        return filename

    def persist(self, data: ImageData, prefix: str = "img") -> ImageRef:
        """Store image bytes and return a reference to them.

        Raises
        ------
        ValueError
            If ``data`` is empty or malformed
        RuntimeError
            If the file cannot be written
        """
        payload = decode_image_data(data)
        fs.ensure_dir(self.root)
        filename = self._unique_filename(prefix)
        fs.atomic_write_bytes(self.root / filename, payload)
        ref = ImageRef(filename=filename, path=f"{self.url_prefix}/{filename}")
        logger.debug(f"Stored {len(payload)} bytes as {ref.path}")
        return ref

    def resolve(self, ref: ImageRef) -> Path:
        """Filesystem location of a stored reference."""
        return self.root / ref.filename

    def list_images(self, prefix: str = "original") -> List[dict]:
        """Stored images with ``prefix``, newest first.

        Returns
        -------
        list of dict
            {"filename", "path", "mtime"} entries
        """
        if not self.root.exists():
            return []

        images = []
        for item in self.root.iterdir():
            if item.is_file() and item.name.startswith(f"{prefix}-") and item.suffix == ".png":
                images.append({
                    'filename': item.name,
                    'path': f"{self.url_prefix}/{item.name}",
                    'mtime': item.stat().st_mtime,
                })
        images.sort(key=lambda entry: entry['mtime'], reverse=True)
        return images


class LocalInpaintSink:
    """SubmissionSink that stores the pair locally instead of running inference."""

    def __init__(self, store: ImageStore):
        self.store = store

    def submit(
        self,
        original: ImageData,
        mask: ImageData,
        prompt: str,
        negative_prompt: str
    ) -> SubmissionResult:
        prompt = prompt or ""
        negative_prompt = negative_prompt or ""

        if not original or not mask:
            return SubmissionResult(False, "Missing required images")

        try:
            original_ref = self.store.persist(original, prefix="original")
            mask_ref = self.store.persist(mask, prefix="mask")
        except (ValueError, RuntimeError, OSError) as e:
            logger.warning(f"Inpaint submission failed: {e}")
            return SubmissionResult(False, str(e), prompt=prompt, negative_prompt=negative_prompt)

        logger.info(f"Inpaint request stored: {original_ref.path}, {mask_ref.path}")
        return SubmissionResult(
            True,
            "Images saved successfully",
            original_path=original_ref.path,
            mask_path=mask_ref.path,
            prompt=prompt,
            negative_prompt=negative_prompt,
        )


def submit_inpaint(
    session,
    sink: SubmissionSink,
    prompt: str = "",
    negative_prompt: str = "",
    flatten: bool = True,
    default_prompt: str = "Realistic photo"
) -> SubmissionResult:
    """Export the session's base layer and mask and submit them.

    Parameters
    ----------
    session : DrawingSession
        Session to export (left unchanged)
    sink : SubmissionSink
        Backend receiving the request
    prompt, negative_prompt : str
        User prompts; an empty prompt falls back to ``default_prompt``
    flatten : bool
        Flatten the mask over opaque black before export, default True

    Returns
    -------
    SubmissionResult
        Failure "Please upload an image first" when no base image is loaded
    """
    if not session.has_base_image:
        return SubmissionResult(False, "Please upload an image first")

    original_png = export_original_png(session)
    mask_png = export_mask_png(session.buffer, flatten=flatten)
    return sink.submit(original_png, mask_png, prompt or default_prompt, negative_prompt or "")
