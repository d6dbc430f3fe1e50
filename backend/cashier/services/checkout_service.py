# Overview: Checkout engine; turns a basket into one committed transaction or nothing.

"""
Checkout: document-free, single-shot sale posting.

One call runs Validating -> Locking -> PricingAndStockCheck -> Committing
inside a single unit of work. Any failure before commit rolls back every
write; once commit has been issued nothing is undone.

Duplicate product ids are merged into the line of their first occurrence so
that the stock check sees the full requested quantity.
"""
from __future__ import annotations

import logging
import time

from ..errors import CashierError, ErrorKind, InternalError, NotFoundError, ValidationError
from ..records import (
    CheckoutItem,
    CheckoutRequest,
    LockedProduct,
    TransactionDetailRecord,
    TransactionRecord,
)
from ..storage.base import CheckoutUnit, TransactionStore
from ..validation import is_storable_int, validate_checkout

logger = logging.getLogger(__name__)


def merge_items(items) -> list[CheckoutItem]:
    """Sum quantities per product_id, keeping first-occurrence order."""
    merged: dict[int, int] = {}
    for item in items:
        merged[item.product_id] = merged.get(item.product_id, 0) + item.quantity
    return [CheckoutItem(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def _check_stock(items: list[CheckoutItem], locked: dict[int, LockedProduct]) -> None:
    for item in items:
        product = locked.get(item.product_id)
        if product is None:
            raise NotFoundError(f"product id {item.product_id} not found")
        if product.stock < item.quantity:
            raise ValidationError(
                f"insufficient stock for product {product.name} "
                f"(available: {product.stock}, requested: {item.quantity})",
                details={
                    "product_id": product.id,
                    "available": product.stock,
                    "requested": item.quantity,
                },
            )


def _check_deadline(deadline: float | None) -> None:
    if deadline is not None and time.monotonic() >= deadline:
        raise InternalError("checkout deadline exceeded before commit")


class CheckoutEngine:
    """Runs checkouts against a TransactionStore."""

    def __init__(self, store: TransactionStore):
        self.store = store

    def checkout(self, request: CheckoutRequest, *, deadline: float | None = None) -> TransactionRecord:
        validate_checkout(request)
        items = merge_items(request.items)

        try:
            with self.store.begin(deadline=deadline) as unit:
                txn = self._run(unit, items, deadline)
        except CashierError as e:
            if e.kind is ErrorKind.INTERNAL:
                logger.error("Checkout failed: %s", e.message)
            else:
                logger.warning("Checkout rejected: %s", e.message)
            raise
        except Exception as e:
            logger.exception("Checkout failed with unexpected storage error")
            raise InternalError("checkout failed") from e

        logger.info(
            "Checkout committed: transaction_id=%s total_amount=%s lines=%s",
            txn.id, txn.total_amount, len(txn.details),
        )
        return txn

    def _run(self, unit: CheckoutUnit, items: list[CheckoutItem], deadline: float | None) -> TransactionRecord:
        # Ids past the 64-bit column range cannot exist; leaving them out of
        # the lock query lets _check_stock report them as not found.
        locked = unit.lock_products(item.product_id for item in items if is_storable_int(item.product_id))
        _check_stock(items, locked)

        details = []
        for item in items:
            product = locked[item.product_id]
            details.append(TransactionDetailRecord(
                id=None,
                transaction_id=None,
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                subtotal=product.price * item.quantity,
            ))
        total_amount = sum(d.subtotal for d in details)
        if not is_storable_int(total_amount):
            raise ValidationError("total amount is out of range")

        for item in items:
            unit.decrement_stock(item.product_id, item.quantity)

        transaction_id, created_at = unit.insert_transaction(total_amount)
        detail_ids = unit.insert_details(transaction_id, details)
        for d, detail_id in zip(details, detail_ids):
            d.id = detail_id
            d.transaction_id = transaction_id

        _check_deadline(deadline)
        unit.commit()

        return TransactionRecord(
            id=transaction_id,
            total_amount=total_amount,
            created_at=created_at,
            details=details,
        )

    def find_transaction(self, transaction_id: int) -> TransactionRecord:
        if not is_storable_int(transaction_id):
            raise NotFoundError(f"transaction id {transaction_id} not found")
        return self.store.find_transaction(transaction_id)
