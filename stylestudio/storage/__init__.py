"""Data model and the in-memory wardrobe."""

from .models import (
    CLASSIFIABLE_CATEGORIES,
    DEFAULT_CLASSIFICATION,
    CatalogEntry,
    Category,
    Classification,
    EncodedImage,
    GarmentRecord,
    PendingUpload,
    Provenance,
    RawImage,
)
from .wardrobe import DuplicateGarmentError, GarmentStore, new_garment_id

__all__ = [
    "CLASSIFIABLE_CATEGORIES",
    "DEFAULT_CLASSIFICATION",
    "CatalogEntry",
    "Category",
    "Classification",
    "DuplicateGarmentError",
    "EncodedImage",
    "GarmentRecord",
    "GarmentStore",
    "PendingUpload",
    "Provenance",
    "RawImage",
    "new_garment_id",
]
