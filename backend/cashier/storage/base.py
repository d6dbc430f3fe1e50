"""
Storage capability interfaces.

Services depend only on these abstract classes. Two implementations exist:
storage.sql (Flask-SQLAlchemy session) and storage.memory (in-process dicts
behind a ReadWriteLock).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, Sequence

from ..records import (
    CategoryRecord,
    LockedProduct,
    ProductRecord,
    ReportSummary,
    TransactionDetailRecord,
    TransactionRecord,
)


class CatalogStore(ABC):
    """Products and categories. Every read reflects the latest commit."""

    @abstractmethod
    def find_product(self, product_id: int) -> ProductRecord:
        """Raises NotFoundError."""

    @abstractmethod
    def list_products(self, *, name: str | None = None, active: bool | None = None) -> list[ProductRecord]:
        ...

    @abstractmethod
    def create_product(self, fields: dict) -> ProductRecord:
        ...

    @abstractmethod
    def update_product(self, product_id: int, patch: dict) -> ProductRecord:
        """Raises NotFoundError."""

    @abstractmethod
    def delete_product(self, product_id: int) -> None:
        """Raises NotFoundError."""

    @abstractmethod
    def find_category(self, category_id: int) -> CategoryRecord:
        """Raises NotFoundError."""

    @abstractmethod
    def list_categories(self) -> list[CategoryRecord]:
        ...

    @abstractmethod
    def create_category(self, fields: dict) -> CategoryRecord:
        ...

    @abstractmethod
    def update_category(self, category_id: int, patch: dict) -> CategoryRecord:
        """Raises NotFoundError."""

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Raises NotFoundError."""


class CheckoutUnit(ABC):
    """
    One atomic unit of work for checkout.

    Used as a context manager: leaving the block without commit() rolls
    everything back.
    """

    def __init__(self):
        self._closed = False

    @abstractmethod
    def lock_products(self, product_ids: Iterable[int]) -> dict[int, LockedProduct]:
        """Lock the rows for write and return those that exist, keyed by id."""

    @abstractmethod
    def decrement_stock(self, product_id: int, amount: int) -> None:
        ...

    @abstractmethod
    def insert_transaction(self, total_amount: int) -> tuple[int, datetime]:
        """Insert the header; the store assigns id and created_at."""

    @abstractmethod
    def insert_details(
        self, transaction_id: int, details: Sequence[TransactionDetailRecord]
    ) -> list[int]:
        """Insert detail rows in order and return their ids."""

    @abstractmethod
    def _commit(self) -> None:
        ...

    @abstractmethod
    def _rollback(self) -> None:
        ...

    @property
    def closed(self) -> bool:
        return self._closed

    def commit(self) -> None:
        if self._closed:
            raise RuntimeError("unit of work already closed")
        self._commit()
        self._closed = True

    def rollback(self) -> None:
        if self._closed:
            return
        try:
            self._rollback()
        finally:
            self._closed = True

    def __enter__(self) -> "CheckoutUnit":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()


class TransactionStore(ABC):
    """Writer and reader of the append-only transaction ledger."""

    @abstractmethod
    def begin(self, *, deadline: float | None = None) -> CheckoutUnit:
        ...

    @abstractmethod
    def find_transaction(self, transaction_id: int) -> TransactionRecord:
        """Raises NotFoundError."""


class ReportReader(ABC):
    """Aggregates over committed transactions."""

    @abstractmethod
    def summary(self, start: date, end: date) -> ReportSummary:
        """Inclusive calendar date window on created_at."""

    @abstractmethod
    def today_summary(self) -> ReportSummary:
        """Window of the store's own current date."""
