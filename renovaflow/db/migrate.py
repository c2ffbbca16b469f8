"""Additive schema upgrades for databases created by earlier releases."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns that did not exist in the first schema. Only ADD COLUMN is used, so
# running this against an up-to-date database is a no-op.
ADDED_COLUMNS: tuple[tuple[str, str, str], ...] = (
    ("projects", "orderDate", "TEXT"),
    ("projects", "constructionStartDate", "TEXT"),
    ("projects", "paymentDate", "TEXT"),
    ("projects", "paymentMethod", "TEXT"),
    ("projects", "paymentRemarks", "TEXT"),
    ("projects", "constructionRemarks", "TEXT"),
    ("projects", "billingRemarks", "TEXT"),
    ("projects", "outboundPaymentRemarks", "TEXT"),
    ("projects", "propertyName", "TEXT"),
    ("users", "remarks", "TEXT"),
    ("users", "isActive", "INTEGER DEFAULT 1"),
)


def _column_names(engine: Engine, table: str) -> set[str]:
    """Return the column names SQLite reports for ``table`` (empty when absent)."""

    with engine.connect() as conn:
        rows = conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()
    return {row["name"] for row in rows}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up to date with the models."""

    if engine.dialect.name != "sqlite":
        return
    known: dict[str, set[str]] = {}
    for table, column, dtype in ADDED_COLUMNS:
        if table not in known:
            known[table] = _column_names(engine, table)
        columns = known[table]
        if not columns or column in columns:
            continue
        _add_column_sqlite(engine, table, f"{column} {dtype}")
        columns.add(column)
        logger.info("migration.column_added", extra={"extra_data": {"table": table, "column": column}})
