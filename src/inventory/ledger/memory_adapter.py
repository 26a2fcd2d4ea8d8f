"""In-memory inventory ledger for development and testing.

A single lock guards the check-and-decrement so concurrent reservations
behave like the conditional UPDATE of the SQL adapter.
"""

import threading

from inventory.ledger.port import (
    InventoryLedger,
    InventoryRecord,
    check_quantity,
    normalize_variant,
)


class InMemoryLedger(InventoryLedger):
    def __init__(self) -> None:
        self._levels: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()

    def reserve(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        check_quantity(quantity)
        key = (str(product_id), normalize_variant(variant_key))
        with self._lock:
            available = self._levels.get(key)
            if available is None or available < quantity:
                return False
            self._levels[key] = available - quantity
            return True

    def release(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        check_quantity(quantity)
        key = (str(product_id), normalize_variant(variant_key))
        with self._lock:
            if key not in self._levels:
                return False
            self._levels[key] += quantity
            return True

    def set_level(self, product_id: str, variant_key: str | None, available: int) -> InventoryRecord:
        if available < 0:
            raise ValueError("Available quantity cannot be negative")
        key = (str(product_id), normalize_variant(variant_key))
        with self._lock:
            self._levels[key] = available
        return InventoryRecord(product_id=key[0], variant_key=key[1], available=available)

    def get(self, product_id: str, variant_key: str | None = None) -> InventoryRecord | None:
        key = (str(product_id), normalize_variant(variant_key))
        with self._lock:
            available = self._levels.get(key)
        if available is None:
            return None
        return InventoryRecord(product_id=key[0], variant_key=key[1], available=available)

    def reset(self) -> None:
        """Clear all stock levels (useful between tests)."""
        with self._lock:
            self._levels.clear()
