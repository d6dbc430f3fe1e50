from __future__ import annotations

from ..extensions import db
from ..records import CategoryRecord, ProductRecord


class Category(db.Model):
    """Product grouping. Deleting one leaves its products in place."""
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_record(self) -> CategoryRecord:
        return CategoryRecord(id=self.id, name=self.name, description=self.description)


class Product(db.Model):
    """
    Sellable product.

    category_id is deliberately not a foreign key: categories can be deleted
    while products keep the stale id, and reads resolve it with an outer join.

    stock is only mutated by checkout or by an explicit product update.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_active_name", "active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Minor currency unit (e.g. rupiah, cents)
    price = db.Column(db.Integer, nullable=False, default=0)
    stock = db.Column(db.BigInteger, nullable=False, default=0)
    active = db.Column(db.Boolean, nullable=False, default=True)

    category_id = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_record(self, category: Category | None = None) -> ProductRecord:
        return ProductRecord(
            id=self.id,
            name=self.name,
            price=self.price,
            stock=self.stock,
            active=self.active,
            category_id=self.category_id,
            category=category.to_record() if category is not None else None,
        )
