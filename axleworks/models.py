import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .services.totals import line_item_total


def generate_document_number(prefix: str) -> str:
    """Human-facing document number, e.g. INV-2024-3F9A01C2"""
    return f"{prefix}-{datetime.utcnow().year}-{uuid.uuid4().hex[:8].upper()}"


class LineItemKind(str, enum.Enum):
    PART = "part"
    LABOUR = "labour"
    SERVICE = "service"
    MISC = "misc"


class LineItemColumns:
    """Columns shared by estimate and invoice line items"""

    id = Column(Integer, primary_key=True, index=True)
    description = Column(String(200), nullable=False)
    kind = Column(String(20), nullable=False)  # part, labour, service, misc
    quantity = Column(Float, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0)
    discount = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)

    def recalculate_total(self) -> None:
        self.total = line_item_total(self.quantity, self.unit_price, self.discount)


class Customer(Base):
    """Customer record owned by the CRM service; mirrored here for lookups and spend counters"""

    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)  # Portal login, if any
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Lifetime counters, bumped by the payment processor
    total_spent = Column(Float, default=0, nullable=False)
    visit_count = Column(Integer, default=0, nullable=False)
    last_visit = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Derived from Vehicle.customer_id; no list of ids is stored on the customer
    vehicles = relationship("Vehicle", back_populates="customer", viewonly=True)


class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    make = Column(String(50), nullable=False)
    model = Column(String(50), nullable=False)
    year = Column(Integer, nullable=True)
    vin = Column(String(17), nullable=True, unique=True)
    license_plate = Column(String(20), nullable=True, index=True)
    mileage = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="vehicles")
