"""Data model shared by the studio components."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class Category(str, Enum):
    """Garment classifier and studio slot key."""

    TOP = "Top"
    BOTTOM = "Bottom"
    ONE_PIECE = "One-Piece"
    SHOES = "Shoes"
    BAG = "Bag"
    ACCESSORY = "Accessory"
    OUTERWEAR = "Outerwear"
    DRESSES = "Dresses"

    @classmethod
    def parse(cls, raw: str) -> "Category":
        """Match a label case-insensitively, ignoring spaces, dashes and underscores."""

        key = _category_key(str(raw))
        for member in cls:
            if _category_key(member.value) == key:
                return member
        raise ValueError(f"Unsupported category '{raw}'. Allowed: {[m.value for m in cls]}")


def _category_key(value: str) -> str:
    return value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")


# Labels the classification prompt offers; Dresses is only assigned manually.
CLASSIFIABLE_CATEGORIES: tuple[Category, ...] = (
    Category.TOP,
    Category.BOTTOM,
    Category.ONE_PIECE,
    Category.SHOES,
    Category.BAG,
    Category.ACCESSORY,
    Category.OUTERWEAR,
)


class Provenance(str, Enum):
    """Where a garment record came from."""

    CAPTURED = "captured"
    CATALOG = "catalog"


@dataclass(slots=True, frozen=True)
class EncodedImage:
    """Base64 payload plus its media type."""

    payload: str
    media_type: str

    def to_data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.payload}"


@dataclass(slots=True, frozen=True)
class RawImage:
    """Bytes (or a path to them) handed over by the capture collaborator."""

    data: bytes | Path
    media_type: str | None = None
    name: str | None = None


@dataclass(slots=True, frozen=True)
class Classification:
    """Category suggestion returned by the analysis service."""

    category: Category
    description: str


DEFAULT_CLASSIFICATION = Classification(category=Category.ACCESSORY, description="Unknown item")


@dataclass(slots=True, frozen=True)
class GarmentRecord:
    """A categorized, owned clothing image."""

    id: str
    image: str
    category: Category
    description: str | None = None
    provenance: Provenance = Provenance.CAPTURED
    price: float | None = None
    brand: str | None = None


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    """Row of the static product catalog that can be imported into the wardrobe."""

    catalog_id: str
    image: str
    category: Category
    description: str | None = None
    price: float | None = None
    brand: str | None = None


@dataclass(slots=True, frozen=True)
class PendingUpload:
    """Normalized image waiting for a category decision."""

    image: EncodedImage
    suggestion: Classification | None = None
