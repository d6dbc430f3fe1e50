"""
Storage backend selection.

create_app builds one Storage per application (STORAGE_BACKEND = "sql" or
"memory") and keeps it in app.extensions; routes reach it via get_storage().
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from .base import CatalogStore, CheckoutUnit, ReportReader, TransactionStore

EXTENSION_KEY = "cashier.storage"
BACKENDS = ("sql", "memory")


@dataclass(frozen=True)
class Storage:
    backend: str
    catalog: CatalogStore
    transactions: TransactionStore
    reports: ReportReader


def build_storage(backend: str) -> Storage:
    if backend == "sql":
        from .sql import SqlCatalogStore, SqlReportReader, SqlTransactionStore

        return Storage(
            backend=backend,
            catalog=SqlCatalogStore(),
            transactions=SqlTransactionStore(),
            reports=SqlReportReader(),
        )

    if backend == "memory":
        from .memory import MemoryStore

        store = MemoryStore()
        return Storage(backend=backend, catalog=store, transactions=store, reports=store)

    raise ValueError(f"Unknown storage backend: {backend!r} (expected one of {', '.join(BACKENDS)})")


def init_storage(app: Flask) -> Storage:
    storage = build_storage(app.config.get("STORAGE_BACKEND", "sql"))
    app.extensions[EXTENSION_KEY] = storage
    return storage


def get_storage() -> Storage:
    return current_app.extensions[EXTENSION_KEY]


__all__ = [
    "CatalogStore",
    "CheckoutUnit",
    "ReportReader",
    "Storage",
    "TransactionStore",
    "build_storage",
    "get_storage",
    "init_storage",
]
