from __future__ import annotations

from ..extensions import db
from ..records import TransactionDetailRecord, TransactionRecord


class Transaction(db.Model):
    """
    Sales transaction header.

    Append-only: written once by checkout together with its details and
    never updated or deleted afterwards.
    """
    __tablename__ = "transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    # 64-bit: price cap times large quantities overflows INT4
    total_amount = db.Column(db.BigInteger, nullable=False)

    # Assigned by the database clock, reports group on DATE(created_at)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    details = db.relationship(
        "TransactionDetail",
        back_populates="transaction",
        order_by="TransactionDetail.id",
        lazy="selectin",
    )

    def to_record(self) -> TransactionRecord:
        return TransactionRecord(
            id=self.id,
            total_amount=self.total_amount,
            created_at=self.created_at,
            details=[d.to_record() for d in self.details],
        )


class TransactionDetail(db.Model):
    """
    One product line of a transaction.

    product_name and subtotal are snapshots taken at sale time so later
    catalog edits (rename, price change, delete) never rewrite history.
    product_id is therefore not a foreign key to products.
    """
    __tablename__ = "transaction_details"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_transaction_details_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.BigInteger, nullable=False)
    subtotal = db.Column(db.BigInteger, nullable=False)

    transaction = db.relationship("Transaction", back_populates="details")

    def to_record(self) -> TransactionDetailRecord:
        return TransactionDetailRecord(
            id=self.id,
            transaction_id=self.transaction_id,
            product_id=self.product_id,
            product_name=self.product_name,
            quantity=self.quantity,
            subtotal=self.subtotal,
        )
