"""Image ingestion helpers."""

from .normalize import (
    FALLBACK_MEDIA_TYPE,
    ImageNormalizer,
    ImageReadError,
    decode_data_uri,
    encode_data_uri,
)

__all__ = [
    "FALLBACK_MEDIA_TYPE",
    "ImageNormalizer",
    "ImageReadError",
    "decode_data_uri",
    "encode_data_uri",
]
