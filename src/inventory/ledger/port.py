"""Inventory ledger port (abstract interface for stock storage).

Every adapter must make ``reserve`` a single atomic check-and-decrement:
two callers racing for the last unit must never both succeed. The ledger
is the only code allowed to mutate available quantities.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class InventoryRecord:
    """Available quantity for one product, or one variant of a product."""

    product_id: str
    variant_key: str
    available: int


def normalize_variant(variant_key: str | None) -> str:
    """Products without variants are stored under the empty variant key."""
    return variant_key or ""


def check_quantity(quantity: int) -> None:
    if quantity <= 0:
        raise ValueError(f"Quantity must be a positive integer, got {quantity}")


class InventoryLedger(ABC):
    """Abstract inventory ledger."""

    @abstractmethod
    def reserve(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        """Atomically decrement ``available`` by ``quantity`` if enough stock exists.

        Returns False, without changing anything, when the record is unknown
        or holds fewer than ``quantity`` units.
        """
        ...

    @abstractmethod
    def release(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        """Compensating increment. Returns False if the record does not exist."""
        ...

    @abstractmethod
    def set_level(self, product_id: str, variant_key: str | None, available: int) -> InventoryRecord:
        """Create or overwrite the available quantity of a record."""
        ...

    @abstractmethod
    def get(self, product_id: str, variant_key: str | None = None) -> InventoryRecord | None:
        """Return the current record, or None when the product is not stocked."""
        ...

    def available(self, product_id: str, variant_key: str | None = None) -> int | None:
        record = self.get(product_id, variant_key)
        return record.available if record else None
