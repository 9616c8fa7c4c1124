"""Image normalisation helpers."""

from __future__ import annotations

import asyncio
import base64
import logging
import re
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from stylestudio.storage.models import EncodedImage, RawImage

logger = logging.getLogger(__name__)

FALLBACK_MEDIA_TYPE = "image/png"

_MEDIA_TYPE_PATTERN = re.compile(r"^data:([a-zA-Z0-9]+/[\w.+-]+)[^,]*,")


class ImageReadError(OSError):
    """Raised when uploaded bytes cannot be read as an image."""


def encode_data_uri(image: EncodedImage) -> str:
    """Render the displayable ``data:`` URI for an encoded image."""

    return image.to_data_uri()


def decode_data_uri(uri: str) -> EncodedImage:
    """
    Recover ``(payload, media_type)`` from a data URI or a bare payload.

    Anything before the first comma is treated as the header; a header without
    a recognisable type, or no header at all, yields ``image/png``.
    """

    if "," in uri:
        _, payload = uri.split(",", 1)
    else:
        payload = uri
    match = _MEDIA_TYPE_PATTERN.match(uri)
    media_type = match.group(1) if match else FALLBACK_MEDIA_TYPE
    return EncodedImage(payload=payload, media_type=media_type)


class ImageNormalizer:
    """Turns uploaded bytes into the canonical :class:`EncodedImage`."""

    async def normalize(self, raw: RawImage) -> EncodedImage:
        """Read and verify the image in a worker thread."""

        return await asyncio.to_thread(self._normalize_sync, raw)

    def _normalize_sync(self, raw: RawImage) -> EncodedImage:
        data = self._read_bytes(raw)
        detected = self._detect_media_type(data, raw.name)
        declared = (raw.media_type or "").strip().lower()
        media_type = declared if declared.startswith("image/") else detected
        return EncodedImage(
            payload=base64.b64encode(data).decode("ascii"),
            media_type=media_type,
        )

    @staticmethod
    def _read_bytes(raw: RawImage) -> bytes:
        if isinstance(raw.data, Path):
            try:
                return raw.data.read_bytes()
            except OSError as exc:
                raise ImageReadError(f"Could not read {raw.data}: {exc}") from exc
        return bytes(raw.data)

    @staticmethod
    def _detect_media_type(data: bytes, name: str | None) -> str:
        if not data:
            raise ImageReadError(f"Upload {name or '<unnamed>'} is empty.")
        try:
            with Image.open(BytesIO(data)) as img:
                img.verify()
                image_format = img.format
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ImageReadError(
                f"Upload {name or '<unnamed>'} is not a supported image.",
            ) from exc
        media_type = Image.MIME.get(image_format or "")
        if not media_type:
            logger.debug("No MIME type known for format %s; using %s", image_format, FALLBACK_MEDIA_TYPE)
            return FALLBACK_MEDIA_TYPE
        return media_type
