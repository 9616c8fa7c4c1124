"""In-memory wardrobe keyed by garment id."""

from __future__ import annotations

import logging
import secrets
import time
from typing import Iterator

from stylestudio.storage.models import CatalogEntry, GarmentRecord, Provenance
from stylestudio.events import Observable

logger = logging.getLogger(__name__)


class DuplicateGarmentError(ValueError):
    """Raised when a record id is already present in the store."""


def new_garment_id() -> str:
    """Timestamp plus random suffix; collisions are negligible."""

    return f"{time.time_ns()}{secrets.token_hex(4)}"


def catalog_garment_id(catalog_id: str) -> str:
    return f"{catalog_id}-{time.time_ns()}"


class GarmentStore(Observable):
    """Source of truth for owned garments during a session."""

    def __init__(self) -> None:
        super().__init__()
        self._records: dict[str, GarmentRecord] = {}

    def add(self, record: GarmentRecord) -> GarmentRecord:
        """Append a record; the id must be new."""

        if record.id in self._records:
            raise DuplicateGarmentError(f"Garment {record.id} already exists.")
        self._records[record.id] = record
        logger.info("Stored garment %s (%s)", record.id, record.category.value)
        self._notify("wardrobe.added")
        return record

    def remove(self, garment_id: str) -> GarmentRecord | None:
        """Drop a record by id; absent ids are ignored."""

        record = self._records.pop(garment_id, None)
        if record is not None:
            logger.info("Removed garment %s", garment_id)
            self._notify("wardrobe.removed")
        return record

    def import_from_catalog(self, entry: CatalogEntry) -> GarmentRecord:
        """Copy a catalog row into the wardrobe under a fresh id."""

        record = GarmentRecord(
            id=catalog_garment_id(entry.catalog_id),
            image=entry.image,
            category=entry.category,
            description=entry.description,
            provenance=Provenance.CATALOG,
            price=entry.price,
            brand=entry.brand,
        )
        return self.add(record)

    def get(self, garment_id: str) -> GarmentRecord | None:
        return self._records.get(garment_id)

    def records(self) -> list[GarmentRecord]:
        return list(self._records.values())

    def __iter__(self) -> Iterator[GarmentRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, garment_id: object) -> bool:
        return garment_id in self._records
