"""Image attachments encoded as data URLs."""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path


class AttachmentError(Exception):
    """Raised when a file cannot be turned into an image attachment."""


def encode_data_url(content: bytes, mime_type: str) -> str:
    """Encode raw bytes as a ``data:`` URL.

    Raises:
        AttachmentError: If the content is empty or not an image type.
    """
    if not mime_type.startswith("image/"):
        raise AttachmentError(f"unsupported attachment type: {mime_type}")
    if not content:
        raise AttachmentError("attachment is empty")
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def read_attachment(path: str | Path, mime_type: str | None = None) -> str:
    """Read an image file and return it as a data URL.

    Args:
        path: File to read.
        mime_type: Explicit media type. Guessed from the file name when
            omitted.

    Raises:
        AttachmentError: If the file cannot be read or is not an image.
    """
    path = Path(path)
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None:
        raise AttachmentError(f"cannot determine the type of {path.name}")
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise AttachmentError(f"cannot read {path}: {exc}") from exc
    return encode_data_url(content, mime_type)


def is_data_url(payload: str) -> bool:
    return payload.startswith("data:") and "," in payload
