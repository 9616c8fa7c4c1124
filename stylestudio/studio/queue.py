"""FIFO holding area for uploads awaiting a category decision."""

from __future__ import annotations

import logging
from collections import deque
from typing import Sequence

from stylestudio.events import Observable
from stylestudio.storage.models import (
    Category,
    Classification,
    EncodedImage,
    GarmentRecord,
    PendingUpload,
    Provenance,
)
from stylestudio.storage.wardrobe import GarmentStore, new_garment_id

logger = logging.getLogger(__name__)


class CategorizationQueue(Observable):
    """
    Drains uploads into the wardrobe one confirmation at a time.

    The head is the only item offered for decision; later items wait their turn.
    """

    def __init__(self, store: GarmentStore) -> None:
        super().__init__()
        self._store = store
        self._pending: deque[PendingUpload] = deque()

    def enqueue(
        self,
        images: Sequence[EncodedImage],
        suggestions: Sequence[Classification | None] | None = None,
    ) -> None:
        """Append images to the tail in submission order."""

        if suggestions is not None and len(suggestions) != len(images):
            raise ValueError("suggestions must match images one to one")
        if not images:
            return
        for index, image in enumerate(images):
            suggestion = suggestions[index] if suggestions is not None else None
            self._pending.append(PendingUpload(image=image, suggestion=suggestion))
        logger.info("Queued %s upload(s) for categorization (%s pending)", len(images), len(self._pending))
        self._notify("queue.enqueued")

    def confirm(self, category: Category, description: str | None = None) -> GarmentRecord | None:
        """Turn the head into a garment record; no-op when the queue is empty."""

        if not self._pending:
            return None
        head = self._pending.popleft()
        if description is None and head.suggestion is not None:
            description = head.suggestion.description
        record = GarmentRecord(
            id=new_garment_id(),
            image=head.image.to_data_uri(),
            category=category,
            description=description,
            provenance=Provenance.CAPTURED,
        )
        self._store.add(record)
        self._notify("queue.confirmed")
        return record

    def discard(self) -> PendingUpload | None:
        """Drop the head without creating a record."""

        if not self._pending:
            return None
        head = self._pending.popleft()
        self._notify("queue.discarded")
        return head

    @property
    def head(self) -> PendingUpload | None:
        return self._pending[0] if self._pending else None

    def pending(self) -> list[PendingUpload]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)
