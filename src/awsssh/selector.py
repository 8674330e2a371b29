from __future__ import annotations

import logging
from typing import Protocol

from .errors import NoMatchError, NoSelectionError
from .models import InstanceRecord, SelectionFilter

logger = logging.getLogger(__name__)


class Inventory(Protocol):
    region: str

    def query(self, selection: SelectionFilter | None = None) -> list[InstanceRecord]: ...


class Picker(Protocol):
    def ensure_available(self) -> None: ...

    def pick(self, records: list[InstanceRecord]) -> list[InstanceRecord]: ...


class Selector:
    def __init__(self, inventory: Inventory, picker: Picker) -> None:
        self.inventory = inventory
        self.picker = picker

    def select(self, selection: SelectionFilter | None) -> list[InstanceRecord]:
        if selection is not None:
            return [self._select_filtered(selection)]
        return self._select_interactive()

    def _select_filtered(self, selection: SelectionFilter) -> InstanceRecord:
        matches = self.inventory.query(selection)
        if not matches:
            raise NoMatchError(selection, self.inventory.region)
        if len(matches) > 1:
            logger.info("Multiple instances matched '%s'; using the first result.", selection)
        return matches[0]

    def _select_interactive(self) -> list[InstanceRecord]:
        self.picker.ensure_available()
        records = self.inventory.query(None)
        if not records:
            raise NoMatchError(None, self.inventory.region)
        selected = self.picker.pick(records)
        if not selected:
            raise NoSelectionError()
        logger.debug("Selected %d instance(s)", len(selected))
        return selected
