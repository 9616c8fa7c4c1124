"""Multi-select mode used to send several wardrobe items to the studio at once."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from stylestudio.events import Observable
from stylestudio.storage.wardrobe import GarmentStore
from stylestudio.studio.composer import StudioComposer

logger = logging.getLogger(__name__)


class SelectionMode(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


@dataclass(slots=True, frozen=True)
class SelectionModeState:
    active: bool = False
    selected_ids: frozenset[str] = field(default_factory=frozenset)


class SelectionController(Observable):
    """Transient set of selected garment ids, cleared on every mode change."""

    def __init__(self, store: GarmentStore, composer: StudioComposer) -> None:
        super().__init__()
        self._store = store
        self._composer = composer
        self._mode = SelectionMode.INACTIVE
        self._selected: set[str] = set()

    @property
    def mode(self) -> SelectionMode:
        return self._mode

    @property
    def active(self) -> bool:
        return self._mode is SelectionMode.ACTIVE

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def state(self) -> SelectionModeState:
        return SelectionModeState(active=self.active, selected_ids=self.selected_ids)

    def toggle(self) -> SelectionMode:
        """Flip the mode and forget the current selection."""

        self._mode = SelectionMode.INACTIVE if self.active else SelectionMode.ACTIVE
        self._selected.clear()
        self._notify("selection.mode")
        return self._mode

    def toggle_item(self, garment_id: str) -> None:
        if not self.active:
            return
        if garment_id in self._selected:
            self._selected.remove(garment_id)
        else:
            self._selected.add(garment_id)
        self._notify("selection.items")

    def commit(self) -> bool:
        """Send the selection to the studio in wardrobe order and leave selection mode."""

        if not self.active or not self._selected:
            return False
        records = [record for record in self._store if record.id in self._selected]
        self._composer.set_all(records)
        logger.info("Moved %s selected garment(s) into the studio", len(records))
        self._mode = SelectionMode.INACTIVE
        self._selected.clear()
        self._notify("selection.mode")
        return True
