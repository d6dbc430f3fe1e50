# Overview: Volatile in-process storage backend.

from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Callable, Iterable, Sequence

from ..errors import InternalError, NotFoundError
from ..records import (
    CategoryRecord,
    LockedProduct,
    ProductRecord,
    ReportSummary,
    TopProduct,
    TransactionDetailRecord,
    TransactionRecord,
)
from ..services.concurrency import LockTimeout, ReadWriteLock
from ..time_utils import utcnow
from .base import CatalogStore, CheckoutUnit, ReportReader, TransactionStore


class MemoryStore(CatalogStore, TransactionStore, ReportReader):
    """
    Catalog, ledger and reports kept in dictionaries.

    One ReadWriteLock guards all collections: plain reads share it, catalog
    writes and whole checkout units hold it exclusively. Records handed out
    are copies, so callers never mutate store state by accident.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._lock = ReadWriteLock()
        self._clock = clock
        self._products: dict[int, ProductRecord] = {}
        self._categories: dict[int, CategoryRecord] = {}
        self._transactions: dict[int, TransactionRecord] = {}
        self._sequences = {"product": 0, "category": 0, "transaction": 0, "detail": 0}

    def _next_id(self, kind: str) -> int:
        # Caller holds the write lock.
        self._sequences[kind] += 1
        return self._sequences[kind]

    # -- catalog ---------------------------------------------------------

    def _resolved(self, p: ProductRecord) -> ProductRecord:
        out = p.copy()
        category = self._categories.get(p.category_id) if p.category_id is not None else None
        out.category = copy.copy(category) if category is not None else None
        return out

    def _require_product(self, product_id: int) -> ProductRecord:
        p = self._products.get(product_id)
        if p is None:
            raise NotFoundError(f"product id {product_id} not found")
        return p

    def _require_category(self, category_id: int) -> CategoryRecord:
        c = self._categories.get(category_id)
        if c is None:
            raise NotFoundError(f"category id {category_id} not found")
        return c

    def find_product(self, product_id: int) -> ProductRecord:
        with self._lock.read_locked():
            return self._resolved(self._require_product(product_id))

    def list_products(self, *, name: str | None = None, active: bool | None = None) -> list[ProductRecord]:
        needle = name.lower() if name else None
        with self._lock.read_locked():
            out = []
            for product_id in sorted(self._products):
                p = self._products[product_id]
                if needle and needle not in p.name.lower():
                    continue
                if active is not None and p.active != active:
                    continue
                out.append(self._resolved(p))
            return out

    def create_product(self, fields: dict) -> ProductRecord:
        with self._lock.write_locked():
            p = ProductRecord(
                id=self._next_id("product"),
                name=fields["name"],
                price=fields.get("price") or 0,
                stock=fields.get("stock") or 0,
                active=fields.get("active") is not False,
                category_id=fields.get("category_id"),
            )
            self._products[p.id] = p
            return self._resolved(p)

    def update_product(self, product_id: int, patch: dict) -> ProductRecord:
        with self._lock.write_locked():
            p = self._require_product(product_id)
            for k in ("name", "price", "stock", "active", "category_id"):
                if k in patch:
                    setattr(p, k, patch[k])
            return self._resolved(p)

    def delete_product(self, product_id: int) -> None:
        with self._lock.write_locked():
            self._require_product(product_id)
            del self._products[product_id]

    def find_category(self, category_id: int) -> CategoryRecord:
        with self._lock.read_locked():
            return copy.copy(self._require_category(category_id))

    def list_categories(self) -> list[CategoryRecord]:
        with self._lock.read_locked():
            return [copy.copy(self._categories[k]) for k in sorted(self._categories)]

    def create_category(self, fields: dict) -> CategoryRecord:
        with self._lock.write_locked():
            c = CategoryRecord(
                id=self._next_id("category"),
                name=fields["name"],
                description=fields.get("description"),
            )
            self._categories[c.id] = c
            return copy.copy(c)

    def update_category(self, category_id: int, patch: dict) -> CategoryRecord:
        with self._lock.write_locked():
            c = self._require_category(category_id)
            for k in ("name", "description"):
                if k in patch:
                    setattr(c, k, patch[k])
            return copy.copy(c)

    def delete_category(self, category_id: int) -> None:
        with self._lock.write_locked():
            self._require_category(category_id)
            del self._categories[category_id]

    # -- ledger ----------------------------------------------------------

    def begin(self, *, deadline: float | None = None) -> CheckoutUnit:
        return MemoryCheckoutUnit(self, deadline=deadline)

    def find_transaction(self, transaction_id: int) -> TransactionRecord:
        with self._lock.read_locked():
            txn = self._transactions.get(transaction_id)
            if txn is None:
                raise NotFoundError(f"transaction id {transaction_id} not found")
            return copy.deepcopy(txn)

    # -- reports ---------------------------------------------------------

    def summary(self, start: date, end: date) -> ReportSummary:
        with self._lock.read_locked():
            return self._summary(lambda day: start <= day <= end)

    def today_summary(self) -> ReportSummary:
        today = self._clock().date()
        with self._lock.read_locked():
            return self._summary(lambda day: day == today)

    def _summary(self, in_window: Callable[[date], bool]) -> ReportSummary:
        revenue = 0
        count = 0
        sold: dict[int, int] = {}
        last_detail: dict[int, TransactionDetailRecord] = {}

        for txn in self._transactions.values():
            if not in_window(txn.created_at.date()):
                continue
            revenue += txn.total_amount
            count += 1
            for d in txn.details:
                sold[d.product_id] = sold.get(d.product_id, 0) + d.quantity
                seen = last_detail.get(d.product_id)
                if seen is None or d.id > seen.id:
                    last_detail[d.product_id] = d

        top_product = None
        if sold:
            # Highest quantity wins, lowest product id breaks ties.
            product_id = min(sold, key=lambda pid: (-sold[pid], pid))
            top_product = TopProduct(name=last_detail[product_id].product_name, sold_qty=sold[product_id])

        return ReportSummary(total_revenue=revenue, total_transaction=count, top_product=top_product)


class MemoryCheckoutUnit(CheckoutUnit):
    """
    Holds the store's exclusive lock from begin to commit/rollback.

    Writes are staged and only applied to the store on commit, so a rolled
    back unit leaves no trace apart from consumed ids.
    """

    def __init__(self, store: MemoryStore, *, deadline: float | None = None):
        super().__init__()
        self._store = store
        try:
            store._lock.acquire_write(deadline)
        except LockTimeout as exc:
            raise InternalError("checkout timed out waiting for product lock") from exc
        self._locked = True
        self._decrements: dict[int, int] = {}
        self._transaction: TransactionRecord | None = None

    def _release(self) -> None:
        if self._locked:
            self._locked = False
            self._store._lock.release_write()

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, LockedProduct]:
        products = self._store._products
        return {
            pid: LockedProduct(id=pid, name=products[pid].name, price=products[pid].price, stock=products[pid].stock)
            for pid in set(product_ids)
            if pid in products
        }

    def decrement_stock(self, product_id: int, amount: int) -> None:
        self._store._require_product(product_id)
        self._decrements[product_id] = self._decrements.get(product_id, 0) + amount

    def insert_transaction(self, total_amount: int) -> tuple[int, datetime]:
        txn = TransactionRecord(
            id=self._store._next_id("transaction"),
            total_amount=total_amount,
            created_at=self._store._clock(),
        )
        self._transaction = txn
        return txn.id, txn.created_at

    def insert_details(
        self, transaction_id: int, details: Sequence[TransactionDetailRecord]
    ) -> list[int]:
        if self._transaction is None or self._transaction.id != transaction_id:
            raise InternalError(f"transaction id {transaction_id} is not part of this unit of work")
        ids = []
        for d in details:
            row = copy.copy(d)
            row.id = self._store._next_id("detail")
            row.transaction_id = transaction_id
            self._transaction.details.append(row)
            ids.append(row.id)
        return ids

    def _commit(self) -> None:
        store = self._store
        try:
            for pid, amount in self._decrements.items():
                if store._products[pid].stock < amount:
                    raise InternalError(f"stock for product id {pid} would go negative")
            for pid, amount in self._decrements.items():
                store._products[pid].stock -= amount
            if self._transaction is not None:
                store._transactions[self._transaction.id] = self._transaction
        finally:
            self._release()

    def _rollback(self) -> None:
        self._decrements.clear()
        self._transaction = None
        self._release()
