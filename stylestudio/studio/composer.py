"""Garments selected for the current styling session."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable

from stylestudio.events import Observable
from stylestudio.storage.models import Category, GarmentRecord


class CompositionPolicy(str, Enum):
    """How the studio treats several garments of one category."""

    SLOT = "slot"
    ORDERED = "ordered"


# Rendering order of the slot policy; Outerwear, One-Piece and Dresses sit with Top.
SLOT_ORDER: tuple[Category, ...] = (
    Category.ACCESSORY,
    Category.TOP,
    Category.OUTERWEAR,
    Category.ONE_PIECE,
    Category.DRESSES,
    Category.BOTTOM,
    Category.SHOES,
    Category.BAG,
)


class StudioComposer(Observable, ABC):
    """Operations shared by both composition policies."""

    policy: CompositionPolicy

    @abstractmethod
    def items(self) -> list[GarmentRecord]:
        """Records in layering order, index 0 being the innermost."""

    @abstractmethod
    def add(self, record: GarmentRecord) -> None:
        ...

    @abstractmethod
    def remove(self, garment_id: str) -> None:
        ...

    @abstractmethod
    def set_all(self, records: Iterable[GarmentRecord]) -> None:
        """Replace the whole composition at once."""

    def clear(self) -> None:
        self.set_all([])

    def contains(self, garment_id: str) -> bool:
        return any(record.id == garment_id for record in self.items())

    def __len__(self) -> int:
        return len(self.items())


class SlotComposer(StudioComposer):
    """At most one garment per category; placing into a taken slot replaces it."""

    policy = CompositionPolicy.SLOT

    def __init__(self) -> None:
        super().__init__()
        self._slots: dict[Category, GarmentRecord] = {}

    def place(self, record: GarmentRecord) -> GarmentRecord | None:
        """Put ``record`` in its category slot and return the previous occupant."""

        previous = self._slots.get(record.category)
        self._slots[record.category] = record
        self._notify("studio.changed")
        return previous

    def add(self, record: GarmentRecord) -> None:
        self.place(record)

    def remove(self, garment_id: str) -> None:
        for category, record in list(self._slots.items()):
            if record.id == garment_id:
                del self._slots[category]
                self._notify("studio.changed")
                return

    def set_all(self, records: Iterable[GarmentRecord]) -> None:
        slots: dict[Category, GarmentRecord] = {}
        for record in records:
            slots[record.category] = record
        self._slots = slots
        self._notify("studio.changed")

    def slots(self) -> list[tuple[Category, GarmentRecord | None]]:
        """Every slot in rendering order, empty ones included."""

        return [(category, self._slots.get(category)) for category in SLOT_ORDER]

    def items(self) -> list[GarmentRecord]:
        return [self._slots[category] for category in SLOT_ORDER if category in self._slots]


class OrderedComposer(StudioComposer):
    """Insertion order is the layering order; categories may repeat."""

    policy = CompositionPolicy.ORDERED

    def __init__(self) -> None:
        super().__init__()
        self._items: list[GarmentRecord] = []

    def add(self, record: GarmentRecord) -> None:
        self._items.append(record)
        self._notify("studio.changed")

    def remove(self, garment_id: str) -> None:
        remaining = [record for record in self._items if record.id != garment_id]
        if len(remaining) != len(self._items):
            self._items = remaining
            self._notify("studio.changed")

    def toggle(self, record: GarmentRecord) -> bool:
        """Remove ``record`` if present, else append it; returns ``True`` when it was added."""

        if self.contains(record.id):
            self.remove(record.id)
            return False
        self.add(record)
        return True

    def set_all(self, records: Iterable[GarmentRecord]) -> None:
        self._items = list(records)
        self._notify("studio.changed")

    def items(self) -> list[GarmentRecord]:
        return list(self._items)


def create_composer(policy: CompositionPolicy | str) -> StudioComposer:
    """Build the composer for a configured policy name."""

    if CompositionPolicy(policy) is CompositionPolicy.SLOT:
        return SlotComposer()
    return OrderedComposer()
