# Overview: Relational storage backend on the Flask-SQLAlchemy session.

from __future__ import annotations

import time
from datetime import date, datetime
from typing import Iterable, Sequence

from sqlalchemy import func, text, update

from ..errors import NotFoundError
from ..extensions import db
from ..models import Category, Product, Transaction, TransactionDetail
from ..records import (
    CategoryRecord,
    LockedProduct,
    ProductRecord,
    ReportSummary,
    TopProduct,
    TransactionDetailRecord,
    TransactionRecord,
)
from ..services.concurrency import begin_write_transaction, lock_for_update
from .base import CatalogStore, CheckoutUnit, ReportReader, TransactionStore


CATEGORY_FIELDS = {"name", "description"}
PRODUCT_FIELDS = {"name", "price", "stock", "active", "category_id"}


def _escape_like(term: str) -> str:
    """Make % and _ match literally inside a LIKE pattern."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_patch(obj, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(obj, k, v)


class SqlCatalogStore(CatalogStore):

    def _product_query(self):
        # Outer join: orphaned category ids resolve to no category.
        return (
            db.session.query(Product, Category)
            .outerjoin(Category, Product.category_id == Category.id)
        )

    def _get_product(self, product_id: int) -> Product:
        p = db.session.get(Product, product_id)
        if p is None:
            raise NotFoundError(f"product id {product_id} not found")
        return p

    def _get_category(self, category_id: int) -> Category:
        c = db.session.get(Category, category_id)
        if c is None:
            raise NotFoundError(f"category id {category_id} not found")
        return c

    def find_product(self, product_id: int) -> ProductRecord:
        row = self._product_query().filter(Product.id == product_id).first()
        if row is None:
            raise NotFoundError(f"product id {product_id} not found")
        product, category = row
        return product.to_record(category)

    def list_products(self, *, name: str | None = None, active: bool | None = None) -> list[ProductRecord]:
        query = self._product_query()
        if name:
            query = query.filter(Product.name.ilike(f"%{_escape_like(name)}%", escape="\\"))
        if active is not None:
            query = query.filter(Product.active.is_(active))
        rows = query.order_by(Product.id.asc()).all()
        return [p.to_record(c) for p, c in rows]

    def create_product(self, fields: dict) -> ProductRecord:
        p = Product()
        _apply_patch(p, fields, PRODUCT_FIELDS)
        db.session.add(p)
        db.session.commit()
        return self.find_product(p.id)

    def update_product(self, product_id: int, patch: dict) -> ProductRecord:
        p = self._get_product(product_id)
        _apply_patch(p, patch, PRODUCT_FIELDS)
        db.session.commit()
        return self.find_product(product_id)

    def delete_product(self, product_id: int) -> None:
        p = self._get_product(product_id)
        db.session.delete(p)
        db.session.commit()

    def find_category(self, category_id: int) -> CategoryRecord:
        return self._get_category(category_id).to_record()

    def list_categories(self) -> list[CategoryRecord]:
        rows = db.session.query(Category).order_by(Category.id.asc()).all()
        return [c.to_record() for c in rows]

    def create_category(self, fields: dict) -> CategoryRecord:
        c = Category()
        _apply_patch(c, fields, CATEGORY_FIELDS)
        db.session.add(c)
        db.session.commit()
        return c.to_record()

    def update_category(self, category_id: int, patch: dict) -> CategoryRecord:
        c = self._get_category(category_id)
        _apply_patch(c, patch, CATEGORY_FIELDS)
        db.session.commit()
        return c.to_record()

    def delete_category(self, category_id: int) -> None:
        c = self._get_category(category_id)
        # Products keep their category_id; reads simply stop resolving it.
        db.session.delete(c)
        db.session.commit()


class SqlCheckoutUnit(CheckoutUnit):
    """
    Checkout unit of work on the request's session.

    The transaction is opened with write intent immediately (BEGIN IMMEDIATE
    on SQLite) and product rows are read with SELECT ... FOR UPDATE, so two
    checkouts over overlapping products serialize instead of overselling.
    """

    def __init__(self, session, *, deadline: float | None = None):
        super().__init__()
        self.session = session
        try:
            begin_write_transaction(session)
            if deadline is not None and session.get_bind().dialect.name == "postgresql":
                self._set_lock_timeout(deadline)
        except Exception:
            session.rollback()
            raise

    def _set_lock_timeout(self, deadline: float) -> None:
        remaining_ms = max(int((deadline - time.monotonic()) * 1000), 1)
        self.session.execute(text(f"SET LOCAL lock_timeout = {remaining_ms}"))

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, LockedProduct]:
        # Lock in id order so overlapping checkouts cannot deadlock.
        ids = sorted(set(product_ids))
        rows = (
            lock_for_update(self.session.query(Product).filter(Product.id.in_(ids)))
            .order_by(Product.id.asc())
            .populate_existing()
            .all()
        )
        return {
            p.id: LockedProduct(id=p.id, name=p.name, price=p.price, stock=p.stock)
            for p in rows
        }

    def decrement_stock(self, product_id: int, amount: int) -> None:
        self.session.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock - amount)
        )

    def insert_transaction(self, total_amount: int) -> tuple[int, datetime]:
        txn = Transaction(total_amount=total_amount)
        self.session.add(txn)
        self.session.flush()
        # created_at comes from the server default; reading it reloads the row.
        return txn.id, txn.created_at

    def insert_details(
        self, transaction_id: int, details: Sequence[TransactionDetailRecord]
    ) -> list[int]:
        rows = [
            TransactionDetail(
                transaction_id=transaction_id,
                product_id=d.product_id,
                product_name=d.product_name,
                quantity=d.quantity,
                subtotal=d.subtotal,
            )
            for d in details
        ]
        self.session.add_all(rows)
        self.session.flush()
        return [row.id for row in rows]

    def _commit(self) -> None:
        self.session.commit()

    def _rollback(self) -> None:
        self.session.rollback()


class SqlTransactionStore(TransactionStore):

    def begin(self, *, deadline: float | None = None) -> CheckoutUnit:
        return SqlCheckoutUnit(db.session, deadline=deadline)

    def find_transaction(self, transaction_id: int) -> TransactionRecord:
        txn = db.session.get(Transaction, transaction_id)
        if txn is None:
            raise NotFoundError(f"transaction id {transaction_id} not found")
        return txn.to_record()


class SqlReportReader(ReportReader):

    @staticmethod
    def _created_day():
        return func.date(Transaction.created_at, type_=db.Date)

    def summary(self, start: date, end: date) -> ReportSummary:
        return self._summary(self._created_day().between(start, end))

    def today_summary(self) -> ReportSummary:
        # CURRENT_DATE: the database clock decides what "today" is.
        return self._summary(self._created_day() == func.current_date())

    def _summary(self, in_window) -> ReportSummary:
        total_revenue, total_transaction = (
            db.session.query(
                func.coalesce(func.sum(Transaction.total_amount), 0),
                func.count(Transaction.id),
            )
            .filter(in_window)
            .one()
        )

        sold_qty = func.sum(TransactionDetail.quantity).label("sold_qty")
        top = (
            db.session.query(
                TransactionDetail.product_id,
                sold_qty,
                func.max(TransactionDetail.id).label("last_detail_id"),
            )
            .join(Transaction, TransactionDetail.transaction_id == Transaction.id)
            .filter(in_window)
            .group_by(TransactionDetail.product_id)
            .order_by(sold_qty.desc(), TransactionDetail.product_id.asc())
            .first()
        )

        top_product = None
        if top is not None:
            name = (
                db.session.query(TransactionDetail.product_name)
                .filter(TransactionDetail.id == top.last_detail_id)
                .scalar()
            )
            top_product = TopProduct(name=name, sold_qty=int(top.sold_qty or 0))

        return ReportSummary(
            total_revenue=int(total_revenue or 0),
            total_transaction=int(total_transaction or 0),
            top_product=top_product,
        )
