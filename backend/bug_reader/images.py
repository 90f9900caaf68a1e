from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import ImageReadError, ImageTooLargeError, UnsupportedImageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRecord:
    """An uploaded screenshot, ready to send to the model and to show in the page."""

    data: str  # base64
    mime_type: str
    filename: str = ""
    size: int = 0

    @property
    def display_ref(self) -> str:
        """data: URI built on access; only `data` is held in memory."""
        return f"data:{self.mime_type};base64,{self.data}"

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


def decodable_mime_types() -> frozenset:
    """MIME types Pillow has a decoder registered for."""
    Image.init()
    return frozenset(mime.lower() for mime in Image.MIME.values())


def declared_mime_type(content_type: Optional[str]) -> str:
    """
    "image/PNG; charset=binary" -> "image/png"
    """
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_image_upload(content_type: Optional[str], filename: Optional[str] = None) -> str:
    """
    Accept any image/* content type; anything else is rejected before the
    body is read. Returns the normalized MIME type.
    """
    mime = declared_mime_type(content_type)
    if not mime.startswith("image/"):
        raise UnsupportedImageError(
            f"Unsupported content_type: {content_type or 'unknown'} (filename={filename})"
        )
    return mime


def _verify_decodable(data: bytes) -> None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise ImageReadError() from e


def normalize_image(
    data: bytes,
    content_type: Optional[str],
    filename: Optional[str] = None,
    max_bytes: Optional[int] = None,
) -> ImageRecord:
    mime = validate_image_upload(content_type, filename)

    if not data:
        raise ImageReadError(f"{filename or 'The image'} is empty.")
    if max_bytes is not None and len(data) > max_bytes:
        raise ImageTooLargeError(
            f"{filename or 'The image'} exceeds the {max_bytes // (1024 * 1024)} MB limit."
        )

    # Types Pillow cannot decode (HEIC, SVG, ...) pass through unchecked
    if mime in decodable_mime_types():
        _verify_decodable(data)

    b64 = base64.b64encode(data).decode("utf-8")
    record = ImageRecord(
        data=b64,
        mime_type=mime,
        filename=filename or "",
        size=len(data),
    )
    logger.info("normalized image %s (%s, %d bytes)", record.filename or "<pasted>", mime, record.size)
    return record
