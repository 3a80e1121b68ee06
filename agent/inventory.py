"""Optimistic in-memory warehouse bookkeeping.

The tracker is seeded once per cycle from a full warehouse read and then
mutated locally as actions consume or produce items. It may drift from the
server within a cycle; the next ``refresh()`` replaces it wholesale.
"""

import logging
from typing import Dict

from api.endpoints.panorama import PanoramaApi

logger = logging.getLogger(__name__)


class InventoryTracker:
    def __init__(self, panorama: PanoramaApi) -> None:
        self._panorama = panorama
        self._items: Dict[int, int] = {}
        self.is_fresh = False

    def refresh(self) -> Dict[int, int]:
        """Replace local state with the server's warehouse contents.

        On failure the tracker is left empty and stale and the error is
        re-raised.
        """
        self._items = {}
        self.is_fresh = False
        warehouses = self._panorama.get_warehouses()
        items: Dict[int, int] = {}
        for warehouse in warehouses:
            for item in warehouse.items:
                items[item.item_id] = items.get(item.item_id, 0) + item.count
        self._items = items
        self.is_fresh = True
        logger.debug("Inventory refreshed: %d item kinds", len(items))
        return dict(items)

    def get(self, item_id: int) -> int:
        return self._items.get(item_id, 0)

    def apply_delta(self, item_id: int, delta: int) -> int:
        """Adjust *item_id* by *delta* and return the new estimate (may be negative)."""
        self._items[item_id] = self.get(item_id) + delta
        return self._items[item_id]

    def set(self, item_id: int, quantity: int) -> None:
        self._items[item_id] = quantity

    def has_all(self, requirements: Dict[int, int]) -> bool:
        return all(self.get(item_id) >= count for item_id, count in requirements.items())

    def invalidate(self) -> None:
        self.is_fresh = False

    def snapshot(self) -> Dict[int, int]:
        return dict(self._items)
