"""
Work Order Models for Job Execution
"""

import enum

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .models import generate_document_number
from .services.totals import compute_work_order_totals, job_billable_hours


class WorkOrderStatus(str, enum.Enum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    WAITING_PARTS = "waiting_parts"
    WAITING_APPROVAL = "waiting_approval"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class WorkOrderPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class WorkOrderType(str, enum.Enum):
    MAINTENANCE = "maintenance"
    REPAIR = "repair"
    INSPECTION = "inspection"
    DIAGNOSTIC = "diagnostic"
    WARRANTY = "warranty"
    RECALL = "recall"


class JobStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


# Sort weight for the shop-floor board (most urgent first)
PRIORITY_RANK = {
    WorkOrderPriority.URGENT.value: 0,
    WorkOrderPriority.HIGH.value: 1,
    WorkOrderPriority.NORMAL.value: 2,
    WorkOrderPriority.LOW.value: 3,
}


class WorkOrder(Base):
    """Authorized record of labour (jobs) and materials (parts) on a vehicle"""

    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    work_order_number = Column(
        String(30), unique=True, nullable=False, index=True,
        default=lambda: generate_document_number("WO"),
    )
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    # One work order per estimate
    estimate_id = Column(Integer, ForeignKey("estimates.id"), unique=True, nullable=True)

    # Status workflow: see services/status_automation.WORK_ORDER_TRANSITIONS
    status = Column(String(30), default=WorkOrderStatus.CREATED.value, nullable=False, index=True)
    priority = Column(String(20), default=WorkOrderPriority.NORMAL.value, nullable=False, index=True)
    work_type = Column(String(20), default=WorkOrderType.REPAIR.value, nullable=False)
    assigned_technician_id = Column(Integer, nullable=True, index=True)  # Employee id (HR service)

    mileage_in = Column(Integer, nullable=False)
    mileage_out = Column(Integer, nullable=True)
    customer_concerns = Column(String(500), nullable=True)
    technician_notes = Column(String(1000), nullable=True)
    internal_notes = Column(String(500), nullable=True)

    # Hourly rate in force when the order was opened
    labour_rate = Column(Float, nullable=False)
    labour_total = Column(Float, default=0, nullable=False)
    parts_total = Column(Float, default=0, nullable=False)
    tax_amount = Column(Float, default=0, nullable=False)
    total = Column(Float, default=0, nullable=False)

    # Set by invoice generation; invoices.work_order_id holds the enforced link
    invoice_id = Column(Integer, unique=True, nullable=True)

    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    jobs = relationship(
        "WorkOrderJob",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderJob.id",
    )
    parts = relationship(
        "WorkOrderPart",
        back_populates="work_order",
        cascade="all, delete-orphan",
        order_by="WorkOrderPart.id",
    )

    def recalculate_totals(self) -> None:
        """Roll up stored part totals and job hours. Part totals are set when a part
        is added or edited (or carried from an estimate line), not recomputed here."""
        totals = compute_work_order_totals(
            (part.total for part in self.parts),
            (job.billable_hours for job in self.jobs),
            self.labour_rate,
            self.tax_amount,
        )
        self.parts_total = totals.parts_total
        self.labour_total = totals.labour_total
        self.total = totals.total


class WorkOrderJob(Base):
    __tablename__ = "work_order_jobs"

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(
        Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description = Column(String(200), nullable=False)
    estimated_hours = Column(Float, nullable=False, default=0)
    actual_hours = Column(Float, nullable=True)
    status = Column(String(20), default=JobStatus.PENDING.value, nullable=False)
    technician_id = Column(Integer, nullable=True)  # Employee id (HR service)
    notes = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    work_order = relationship("WorkOrder", back_populates="jobs")

    @property
    def billable_hours(self) -> float:
        return job_billable_hours(self.actual_hours, self.estimated_hours)


class WorkOrderPart(Base):
    __tablename__ = "work_order_parts"

    id = Column(Integer, primary_key=True, index=True)
    work_order_id = Column(
        Integer, ForeignKey("work_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    inventory_item_id = Column(Integer, nullable=True)  # Inventory service reference
    part_number = Column(String(50), nullable=False)
    description = Column(String(200), nullable=False)
    quantity = Column(Float, nullable=False, default=1)
    unit_cost = Column(Float, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0)
    total = Column(Float, nullable=False, default=0)

    work_order = relationship("WorkOrder", back_populates="parts")

    def recalculate_total(self) -> None:
        self.total = self.quantity * self.unit_price
