"""Idempotent, additive schema upgrades for SQLite databases."""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

# Added in place when an existing database predates them, so a data
# directory keeps working as the item model grows.
INVENTORY_COLUMNS: dict[str, str] = {
    "sold_at": "DATETIME",
    "sold_price": "FLOAT",
    "ship_by_date": "DATETIME",
    "shipper_qr_code": "TEXT",
    "updated_at": "DATETIME",
}


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    """Fetch SQLite's description of a table; empty when the table is absent."""

    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up to date with the models."""

    if engine.dialect.name != "sqlite":
        return

    columns = _column_names(engine, "inventory_items")
    if not columns:
        # Table absent -> Base.metadata.create_all builds the fresh schema.
        return

    for name, dtype in INVENTORY_COLUMNS.items():
        if name not in columns:
            _add_column_sqlite(engine, "inventory_items", f"{name} {dtype}")

    with engine.begin() as conn:
        conn.execute(text("UPDATE inventory_items SET updated_at = created_at WHERE updated_at IS NULL"))
        conn.execute(text("UPDATE inventory_items SET bin_number = '' WHERE bin_number IS NULL"))
        conn.execute(text("UPDATE inventory_items SET rack_number = '' WHERE rack_number IS NULL"))
        conn.execute(text("UPDATE inventory_items SET platform = '' WHERE platform IS NULL"))

    _create_index_if_not_exists(engine, "inventory_items", "ix_inventory_items_status", ["status"])
    _create_index_if_not_exists(engine, "inventory_items", "ix_inventory_items_created_at", ["created_at"])
