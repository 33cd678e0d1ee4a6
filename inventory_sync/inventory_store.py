"""Inventory cache tables: full-replace writes and bin-prefix reads."""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .database import session_scope
from .exceptions import PersistenceError
from .models import InventoryRecordMixin, utcnow

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class InventoryRow:
    sku: str
    bin: str
    quantity: int


def escape_like(value: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so a prefix is matched literally."""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


class InventoryCacheStore:
    """One cache table, written only by full replacement.

    replace_all() commits the clear and every insert batch separately, so a
    failed batch leaves the table partially populated.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        model: type[InventoryRecordMixin],
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._session_factory = session_factory
        self.model = model
        self.batch_size = batch_size

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def clear(self) -> None:
        logger.info(f"Clearing table: {self.table_name}")
        try:
            with session_scope(self._session_factory) as db:
                db.execute(delete(self.model))
        except SQLAlchemyError as e:
            logger.error(f"Error clearing table {self.table_name}: {e}")
            raise PersistenceError(f"Failed to clear table {self.table_name}: {e}") from e

    def insert_batches(self, rows: Sequence[InventoryRow]) -> int:
        logger.info(f"Inserting {len(rows)} records into {self.table_name}")

        inserted = 0
        for start in range(0, len(rows), self.batch_size):
            batch = rows[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            now = utcnow()
            values = [
                {
                    "sku": row.sku,
                    "inventory_bin": row.bin,
                    "quantity": row.quantity,
                    "created_at": now,
                }
                for row in batch
            ]
            try:
                with session_scope(self._session_factory) as db:
                    db.execute(insert(self.model), values)
            except SQLAlchemyError as e:
                logger.error(f"Error inserting batch {batch_number} into {self.table_name}: {e}")
                raise PersistenceError(
                    f"Failed to insert batch into {self.table_name}: {e}"
                ) from e

            inserted += len(batch)
            logger.info(f"Inserted batch {batch_number}: {inserted}/{len(rows)} records")

        return inserted

    def replace_all(self, rows: Iterable[InventoryRow]) -> int:
        """Clear the table and insert rows in bounded batches.

        Returns:
            Number of rows inserted.

        Raises:
            PersistenceError: If the clear or any batch fails.
        """
        rows = list(rows)
        self.clear()
        inserted = self.insert_batches(rows)
        logger.info(f"Successfully inserted {inserted} records into {self.table_name}")
        return inserted

    def find_by_prefix(self, prefix: str) -> list[InventoryRow]:
        """Case-insensitive bin prefix match, ordered by bin."""
        logger.info(f"Querying {self.table_name} with prefix: {prefix}")

        pattern = f"{escape_like(prefix)}%"
        stmt = (
            select(self.model)
            .where(self.model.inventory_bin.ilike(pattern, escape="\\"))
            .order_by(self.model.inventory_bin.asc(), self.model.id.asc())
        )
        try:
            with session_scope(self._session_factory) as db:
                records = [
                    InventoryRow(r.sku, r.inventory_bin, r.quantity)
                    for r in db.scalars(stmt)
                ]
        except SQLAlchemyError as e:
            logger.error(f"Error querying {self.table_name}: {e}")
            raise PersistenceError(f"Failed to query {self.table_name}: {e}") from e

        logger.info(f"Found {len(records)} records matching prefix: {prefix}")
        return records

    def count(self) -> int:
        try:
            with session_scope(self._session_factory) as db:
                return db.scalar(select(func.count()).select_from(self.model)) or 0
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count {self.table_name}: {e}") from e
