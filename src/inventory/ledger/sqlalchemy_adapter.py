"""SQLAlchemy inventory ledger.

Reservation is one conditional UPDATE:

    UPDATE inventory
       SET available = available - :quantity
     WHERE product_id = :product_id
       AND variant_key = :variant_key
       AND available >= :quantity

The database serialises concurrent writers on the row, so a reservation
succeeds iff exactly one row was updated. No value is read back into the
application before writing.
"""

import structlog
from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from inventory.ledger.port import (
    InventoryLedger,
    InventoryRecord,
    check_quantity,
    normalize_variant,
)

logger = structlog.get_logger(__name__)

metadata = MetaData()

inventory_table = Table(
    "inventory",
    metadata,
    Column("product_id", String(64), primary_key=True),
    Column("variant_key", String(100), primary_key=True, default=""),
    Column("available", Integer, nullable=False, default=0),
    CheckConstraint("available >= 0", name="ck_inventory_available_non_negative"),
)


class SQLAlchemyLedger(InventoryLedger):
    def __init__(self, engine: Engine | str) -> None:
        if isinstance(engine, str):
            connect_args = {"timeout": 30, "check_same_thread": False} if engine.startswith("sqlite") else {}
            engine = create_engine(engine, connect_args=connect_args)
        self.engine = engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    def _match(self, product_id: str, variant_key: str | None):
        return (inventory_table.c.product_id == str(product_id)) & (
            inventory_table.c.variant_key == normalize_variant(variant_key)
        )

    def reserve(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        check_quantity(quantity)
        statement = (
            update(inventory_table)
            .where(self._match(product_id, variant_key))
            .where(inventory_table.c.available >= quantity)
            .values(available=inventory_table.c.available - quantity)
        )
        with self.engine.begin() as conn:
            result = conn.execute(statement)
        reserved = result.rowcount == 1
        logger.debug(
            "Stock reservation attempted",
            product_id=str(product_id),
            variant_key=normalize_variant(variant_key),
            quantity=quantity,
            reserved=reserved,
        )
        return reserved

    def release(self, product_id: str, variant_key: str | None, quantity: int) -> bool:
        check_quantity(quantity)
        statement = (
            update(inventory_table)
            .where(self._match(product_id, variant_key))
            .values(available=inventory_table.c.available + quantity)
        )
        with self.engine.begin() as conn:
            result = conn.execute(statement)
        return result.rowcount == 1

    def set_level(self, product_id: str, variant_key: str | None, available: int) -> InventoryRecord:
        if available < 0:
            raise ValueError("Available quantity cannot be negative")
        variant = normalize_variant(variant_key)
        statement = update(inventory_table).where(self._match(product_id, variant)).values(available=available)
        with self.engine.begin() as conn:
            result = conn.execute(statement)
            if result.rowcount == 0:
                try:
                    with conn.begin_nested():
                        conn.execute(
                            insert(inventory_table).values(
                                product_id=str(product_id),
                                variant_key=variant,
                                available=available,
                            )
                        )
                except IntegrityError:
                    # Inserted concurrently; overwrite it.
                    conn.execute(statement)
        return InventoryRecord(product_id=str(product_id), variant_key=variant, available=available)

    def get(self, product_id: str, variant_key: str | None = None) -> InventoryRecord | None:
        statement = select(inventory_table.c.available).where(self._match(product_id, variant_key))
        with self.engine.connect() as conn:
            available = conn.execute(statement).scalar_one_or_none()
        if available is None:
            return None
        return InventoryRecord(
            product_id=str(product_id),
            variant_key=normalize_variant(variant_key),
            available=available,
        )
