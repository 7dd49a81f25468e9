"""
Invoice and Payment Models for Customer Billing
"""

import enum
from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import LineItemColumns, generate_document_number
from .services.totals import compute_balance, compute_document_totals, derive_invoice_status


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    OTHER = "other"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


# Payments are refused once an invoice reaches one of these
CLOSED_INVOICE_STATUSES = frozenset(
    {InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value, InvoiceStatus.REFUNDED.value}
)


class Invoice(Base):
    """Invoice model for customer billing"""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(
        String(30), unique=True, nullable=False, index=True,
        default=lambda: generate_document_number("INV"),
    )
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    # One invoice per work order
    work_order_id = Column(Integer, ForeignKey("work_orders.id"), unique=True, nullable=True)

    # Pricing
    subtotal = Column(Float, default=0, nullable=False)
    discount_amount = Column(Float, default=0, nullable=False)
    tax_rate = Column(Float, default=0, nullable=False)  # Percentage
    tax_amount = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)
    amount_paid = Column(Float, default=0, nullable=False)
    amount_due = Column(Float, default=0, nullable=False)

    # Status: draft, sent, partial, paid, overdue, cancelled, refunded
    status = Column(String(20), default=InvoiceStatus.DRAFT.value, nullable=False, index=True)

    notes = Column(String(500), nullable=True)
    payment_terms = Column(String(200), nullable=True)

    # Dates
    due_date = Column(DateTime, nullable=False, index=True)
    sent_at = Column(DateTime, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    # Optimistic concurrency counter; every UPDATE is conditional on it
    version = Column(Integer, nullable=False, default=1)

    # Audit
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    line_items = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineItem.id",
    )
    payments = relationship("Payment", back_populates="invoice", order_by="Payment.id")

    __mapper_args__ = {"version_id_col": version}

    def recalculate_totals(self) -> None:
        """Recompute totals and the balance, then derive the status from it"""
        for item in self.line_items:
            item.recalculate_total()
        totals = compute_document_totals(
            (item.total for item in self.line_items), self.discount_amount, self.tax_rate
        )
        self.subtotal = totals.subtotal
        self.tax_amount = totals.tax_amount
        self.total = totals.total
        self.amount_due = compute_balance(self.total, self.amount_paid)

        status = derive_invoice_status(self.status, self.amount_paid, self.amount_due)
        if status == InvoiceStatus.PAID.value and self.status != InvoiceStatus.PAID.value:
            self.paid_at = datetime.utcnow()
        self.status = status


class InvoiceLineItem(LineItemColumns, Base):
    __tablename__ = "invoice_line_items"

    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)

    invoice = relationship("Invoice", back_populates="line_items")


class Payment(Base):
    """Money received against an invoice"""

    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_number = Column(
        String(30), unique=True, nullable=False, index=True,
        default=lambda: generate_document_number("PAY"),
    )
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)

    amount = Column(Float, nullable=False)
    method = Column(String(20), nullable=False)  # cash, credit_card, debit_card, ...
    status = Column(String(20), default=PaymentStatus.COMPLETED.value, nullable=False, index=True)
    reference = Column(String(100), nullable=True)  # Cheque number, terminal receipt, etc.
    notes = Column(String(500), nullable=True)

    processed_at = Column(DateTime, nullable=True, index=True)
    processed_by = Column(Integer, nullable=False)
    refunded_at = Column(DateTime, nullable=True)
    refund_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    invoice = relationship("Invoice", back_populates="payments")
