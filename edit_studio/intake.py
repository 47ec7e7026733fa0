"""Image intake: validate an uploaded file and encode it for the session."""

from __future__ import annotations

import asyncio
import base64
import io
import mimetypes
from pathlib import Path

from PIL import Image

from .errors import DecodeError, ValidationError
from .logging_config import get_logger
from .providers.base import UploadedImage
from .session import SessionState

logger = get_logger(__name__)

NOT_AN_IMAGE_MESSAGE = "Please upload an image file (PNG, JPG, WEBP)."
READ_ERROR_MESSAGE = "Error reading the file."


def declared_media_type(path: str | Path, media_type: str | None = None) -> str:
    if media_type:
        return media_type.strip().lower()
    guessed, _ = mimetypes.guess_type(str(path))
    return (guessed or "").lower()


def is_image_media_type(media_type: str | None) -> bool:
    return bool(media_type) and str(media_type).startswith("image/")


async def load_upload(path: str | Path, media_type: str | None = None) -> UploadedImage:
    declared = declared_media_type(path, media_type)
    if not is_image_media_type(declared):
        raise ValidationError(NOT_AN_IMAGE_MESSAGE)
    data = await asyncio.to_thread(_read_and_encode, Path(path))
    return UploadedImage(media_type=declared, data=data)


async def accept_upload(
    session: SessionState,
    path: str | Path,
    media_type: str | None = None,
) -> UploadedImage:
    image = await load_upload(path, media_type)
    session.replace_image(image)
    logger.info("accepted upload media_type=%s b64_chars=%d", image.media_type, len(image.data))
    return image


def decode_image(image: UploadedImage) -> Image.Image:
    """Fully decode ``image`` with Pillow; any failure becomes DecodeError."""
    try:
        return _decode_bytes(image.to_bytes())
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(READ_ERROR_MESSAGE) from exc


def _decode_bytes(raw: bytes) -> Image.Image:
    pil = Image.open(io.BytesIO(raw))
    pil.load()
    return pil


def _read_and_encode(path: Path) -> str:
    try:
        raw = path.read_bytes()
        _decode_bytes(raw).close()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("could not read upload %s: %s", path.name, exc)
        raise DecodeError(READ_ERROR_MESSAGE) from exc
    return base64.b64encode(raw).decode("ascii")
