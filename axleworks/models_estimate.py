"""
Estimate Models for Quoting
"""

import enum

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import LineItemColumns, generate_document_number
from .services.totals import compute_document_totals


class EstimateStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


# Line items may only change while the customer has not answered yet
EDITABLE_ESTIMATE_STATUSES = frozenset({EstimateStatus.DRAFT.value, EstimateStatus.SENT.value})


class Estimate(Base):
    """Priced proposal of work awaiting customer approval"""

    __tablename__ = "estimates"

    id = Column(Integer, primary_key=True, index=True)
    estimate_number = Column(
        String(30), unique=True, nullable=False, index=True,
        default=lambda: generate_document_number("EST"),
    )
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)

    # Pricing (recomputed from line items before every save)
    subtotal = Column(Float, default=0, nullable=False)
    discount_amount = Column(Float, default=0, nullable=False)
    tax_rate = Column(Float, default=0, nullable=False)  # Percentage
    tax_amount = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)

    # Status workflow: draft → sent → approved/rejected → converted/expired
    status = Column(String(20), default=EstimateStatus.DRAFT.value, nullable=False, index=True)
    valid_until = Column(DateTime, nullable=False, index=True)
    notes = Column(String(500), nullable=True)
    terms = Column(String(500), nullable=True)

    sent_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    rejection_reason = Column(String(200), nullable=True)

    # Set exactly once, by conversion. Unique so a second work order can never claim it
    converted_to_work_order_id = Column(Integer, unique=True, nullable=True)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    line_items = relationship(
        "EstimateLineItem",
        back_populates="estimate",
        cascade="all, delete-orphan",
        order_by="EstimateLineItem.id",
    )

    def recalculate_totals(self) -> None:
        for item in self.line_items:
            item.recalculate_total()
        totals = compute_document_totals(
            (item.total for item in self.line_items), self.discount_amount, self.tax_rate
        )
        self.subtotal = totals.subtotal
        self.tax_amount = totals.tax_amount
        self.total = totals.total


class EstimateLineItem(LineItemColumns, Base):
    __tablename__ = "estimate_line_items"

    estimate_id = Column(Integer, ForeignKey("estimates.id", ondelete="CASCADE"), nullable=False, index=True)
    notes = Column(Text, nullable=True)

    estimate = relationship("Estimate", back_populates="line_items")
