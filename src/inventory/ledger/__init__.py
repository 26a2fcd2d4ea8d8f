"""Inventory ledger factory.

Provides get_ledger() / set_ledger() to swap implementations:
- InMemoryLedger for development and testing
- SQLAlchemyLedger for production (INVENTORY_LEDGER=sqlalchemy)
"""

from inventory.ledger.memory_adapter import InMemoryLedger
from inventory.ledger.port import InventoryLedger, InventoryRecord
from shared.config import get_settings

_current_ledger: InventoryLedger | None = None


def get_ledger() -> InventoryLedger:
    """Return the configured inventory ledger (singleton)."""
    global _current_ledger
    if _current_ledger is None:
        settings = get_settings()
        if settings.inventory_ledger == "memory":
            _current_ledger = InMemoryLedger()
        elif settings.inventory_ledger == "sqlalchemy":
            from inventory.ledger.sqlalchemy_adapter import SQLAlchemyLedger

            ledger = SQLAlchemyLedger(settings.inventory_database_uri)
            ledger.create_schema()
            _current_ledger = ledger
        else:
            raise ValueError(f"Unknown inventory ledger: {settings.inventory_ledger}")
    return _current_ledger


def set_ledger(ledger: InventoryLedger) -> None:
    """Override the active ledger (useful for tests)."""
    global _current_ledger
    _current_ledger = ledger


def reset_ledger() -> None:
    """Reset to the configured default ledger."""
    global _current_ledger
    _current_ledger = None


__all__ = ["InventoryLedger", "InventoryRecord", "get_ledger", "set_ledger", "reset_ledger"]
