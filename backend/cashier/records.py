"""
Storage-independent records exchanged between services and storage backends.

The SQL backend converts ORM rows into these; the in-memory backend stores
them directly (copies are handed out so callers never alias store state).
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime

from .time_utils import to_utc_z


@dataclass
class CategoryRecord:
    id: int
    name: str
    description: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


@dataclass
class ProductRecord:
    id: int
    name: str
    price: int
    stock: int
    active: bool = True
    category_id: int | None = None
    # Resolved view only; None when unset or orphaned
    category: CategoryRecord | None = None

    def copy(self) -> "ProductRecord":
        return replace(self, category=replace(self.category) if self.category else None)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "active": self.active,
            "category_id": self.category_id,
        }
        if self.category is not None:
            data["category"] = self.category.to_dict()
        return data


@dataclass(frozen=True)
class LockedProduct:
    """Product row as read under the checkout lock."""
    id: int
    name: str
    price: int
    stock: int


@dataclass(frozen=True)
class CheckoutItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class CheckoutRequest:
    items: tuple[CheckoutItem, ...]


@dataclass
class TransactionDetailRecord:
    id: int | None
    transaction_id: int | None
    product_id: int
    product_name: str
    quantity: int
    subtotal: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }


@dataclass
class TransactionRecord:
    id: int
    total_amount: int
    created_at: datetime
    details: list[TransactionDetailRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "total_amount": self.total_amount,
            "created_at": to_utc_z(self.created_at),
            "details": [d.to_dict() for d in self.details],
        }


@dataclass(frozen=True)
class TopProduct:
    name: str
    sold_qty: int

    def to_dict(self) -> dict:
        return {"name": self.name, "sold_qty": self.sold_qty}


@dataclass(frozen=True)
class ReportSummary:
    total_revenue: int
    total_transaction: int
    top_product: TopProduct | None = None

    def to_dict(self) -> dict:
        return {
            "total_revenue": self.total_revenue,
            "total_transaction": self.total_transaction,
            "top_product": self.top_product.to_dict() if self.top_product else None,
        }
