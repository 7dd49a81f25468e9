"""Work order service - State machine, job/part rollup and invoice generation"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import ShopSettings
from ...errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from ...models import LineItemKind
from ...models_invoice import Invoice, InvoiceLineItem, InvoiceStatus
from ...models_work_order import (
    JobStatus,
    WorkOrder,
    WorkOrderJob,
    WorkOrderPart,
    WorkOrderStatus,
)
from ...services.status_automation import WORK_ORDER_TRANSITIONS, can_transition
from ...shared.pagination import PageParams
from ...utils.sanitization import sanitize_fields, sanitize_string
from ..collaborators import get_customer, get_vehicle
from .repository import WorkOrderRepository
from .schemas import (
    JobCreate,
    JobUpdate,
    PartCreate,
    PartUpdate,
    WorkOrderCreate,
    WorkOrderUpdate,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("customer_concerns", "technician_notes", "internal_notes")


def build_job(data: JobCreate) -> WorkOrderJob:
    return WorkOrderJob(
        description=sanitize_string(data.description),
        estimated_hours=data.estimated_hours,
        actual_hours=data.actual_hours,
        technician_id=data.technician_id,
        notes=sanitize_string(data.notes),
        status=JobStatus.PENDING.value,
    )


def build_part(data: PartCreate) -> WorkOrderPart:
    part = WorkOrderPart(
        inventory_item_id=data.inventory_item_id,
        part_number=sanitize_string(data.part_number),
        description=sanitize_string(data.description),
        quantity=data.quantity,
        unit_cost=data.unit_cost,
        unit_price=data.unit_price,
    )
    part.recalculate_total()
    return part


def build_invoice_from_work_order(
    work_order: WorkOrder,
    settings: ShopSettings,
    created_by: int,
    notes: Optional[str] = None,
    payment_terms: Optional[str] = None,
) -> Invoice:
    """
    Draft invoice mirroring a work order: one labour line per job (billable hours
    at the order's labour rate) and one part line per part.
    """
    invoice = Invoice(
        customer_id=work_order.customer_id,
        vehicle_id=work_order.vehicle_id,
        work_order_id=work_order.id,
        discount_amount=0,
        tax_rate=settings.tax_rate,
        amount_paid=0,
        status=InvoiceStatus.DRAFT.value,
        due_date=datetime.utcnow() + timedelta(days=settings.invoice_due_days),
        notes=sanitize_string(notes),
        payment_terms=sanitize_string(payment_terms),
        created_by=created_by,
    )

    for job in work_order.jobs:
        invoice.line_items.append(
            InvoiceLineItem(
                description=job.description,
                kind=LineItemKind.LABOUR.value,
                quantity=job.billable_hours,
                unit_price=work_order.labour_rate,
                discount=0,
            )
        )

    for part in work_order.parts:
        # A part carried from a discounted estimate line keeps its lower total
        invoice.line_items.append(
            InvoiceLineItem(
                description=part.description,
                kind=LineItemKind.PART.value,
                quantity=part.quantity,
                unit_price=part.unit_price,
                discount=max(part.quantity * part.unit_price - part.total, 0),
            )
        )

    invoice.recalculate_totals()
    return invoice


class WorkOrderService:
    """Service layer for work order business logic"""

    def __init__(self, db: Session, settings: ShopSettings):
        self.db = db
        self.settings = settings
        self.repo = WorkOrderRepository()

    def get_work_order(self, work_order_id: int) -> WorkOrder:
        work_order = self.repo.get_by_id(self.db, work_order_id)
        if not work_order:
            raise NotFoundError("Work order not found")
        return work_order

    def list_work_orders(self, page: PageParams, **filters) -> list[WorkOrder]:
        return self.repo.list_work_orders(self.db, page, **filters)

    def get_active_work_orders(self) -> list[WorkOrder]:
        """Shop-floor board: everything not completed or cancelled"""
        return self.repo.list_open(self.db)

    def get_technician_work_orders(
        self, technician_id: int, status: Optional[str] = None
    ) -> list[WorkOrder]:
        if status:
            return self.repo.list_for_technician(self.db, technician_id, status)
        return self.repo.list_open(self.db, technician_id)

    def create_work_order(self, data: WorkOrderCreate, actor: Actor) -> WorkOrder:
        """Open a work order directly, without an estimate"""
        logger.info(f"🔧 Creating work order for customer {data.customer_id}, vehicle {data.vehicle_id}")

        get_customer(self.db, data.customer_id)
        get_vehicle(self.db, data.vehicle_id, data.customer_id)

        appointment = None
        if data.appointment_id:
            appointment = self.repo.get_appointment(self.db, data.appointment_id)
            if not appointment:
                raise NotFoundError("Appointment not found")

        work_order = WorkOrder(
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            appointment_id=data.appointment_id,
            status=WorkOrderStatus.CREATED.value,
            priority=data.priority.value,
            work_type=data.work_type.value,
            assigned_technician_id=data.assigned_technician_id,
            mileage_in=data.mileage_in,
            customer_concerns=sanitize_string(data.customer_concerns),
            internal_notes=sanitize_string(data.internal_notes),
            labour_rate=self.settings.labour_rate,
            tax_amount=0,
            created_by=actor.id,
        )
        work_order.jobs = [build_job(job) for job in data.jobs]
        work_order.parts = [build_part(part) for part in data.parts]

        self.db.add(work_order)
        self.db.flush()
        if appointment:
            appointment.work_order_id = work_order.id

        work_order = self.repo.save(self.db, work_order)
        logger.info(f"✅ Work order {work_order.work_order_number} created (total {work_order.total:.2f})")
        return work_order

    def update_work_order(self, work_order_id: int, data: WorkOrderUpdate) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        updates = sanitize_fields(data.model_dump(exclude_unset=True, exclude_none=True), TEXT_FIELDS)

        if "tax_amount" in updates and work_order.invoice_id:
            raise BadRequestError("Cannot change tax on a work order that has been invoiced")

        for key, value in updates.items():
            if key in ("priority", "work_type"):
                value = value.value
            setattr(work_order, key, value)

        return self.repo.save(self.db, work_order)

    def update_status(
        self, work_order_id: int, new_status: WorkOrderStatus, actor: Actor
    ) -> WorkOrder:
        """
        Move a work order along WORK_ORDER_TRANSITIONS.

        Completing an order also generates its invoice when the shop has
        auto_invoice_on_completion set; both writes commit together.
        """
        work_order = self.get_work_order(work_order_id)
        current = work_order.status
        target = new_status.value

        if not can_transition(WORK_ORDER_TRANSITIONS, current, target):
            logger.warning(f"⚠️ Work order {work_order_id}: rejected transition {current} → {target}")
            raise InvalidTransitionError("work order", current, target)

        now = datetime.utcnow()
        work_order.status = target
        if target == WorkOrderStatus.IN_PROGRESS.value and not work_order.started_at:
            work_order.started_at = now
        if target == WorkOrderStatus.COMPLETED.value:
            work_order.completed_at = now

        invoice = None
        if (
            target == WorkOrderStatus.COMPLETED.value
            and self.settings.auto_invoice_on_completion
            and not work_order.invoice_id
            and not self.repo.get_invoice_for_work_order(self.db, work_order.id)
        ):
            invoice = self._attach_invoice(work_order, actor)

        self._commit_linked(work_order, "Invoice already generated for this work order")
        logger.info(f"✅ Work order {work_order.id} transitioned: {current} → {target}")
        if invoice:
            logger.info(f"🧾 Invoice {invoice.invoice_number} generated on completion")
        return work_order

    # ------------------------------------------------------------------
    # Jobs and parts
    # ------------------------------------------------------------------

    def _ensure_not_invoiced(self, work_order: WorkOrder) -> None:
        if work_order.invoice_id:
            logger.warning(f"⚠️ Work order {work_order.id} is invoiced, job/part change refused")
            raise BadRequestError("Cannot modify jobs or parts after the work order has been invoiced")

    def _find_job(self, work_order: WorkOrder, job_id: int) -> WorkOrderJob:
        for job in work_order.jobs:
            if job.id == job_id:
                return job
        raise NotFoundError("Job not found")

    def _find_part(self, work_order: WorkOrder, part_id: int) -> WorkOrderPart:
        for part in work_order.parts:
            if part.id == part_id:
                return part
        raise NotFoundError("Part not found")

    def add_job(self, work_order_id: int, data: JobCreate) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        work_order.jobs.append(build_job(data))
        return self.repo.save(self.db, work_order)

    def update_job(self, work_order_id: int, job_id: int, data: JobUpdate) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        job = self._find_job(work_order, job_id)

        updates = sanitize_fields(data.model_dump(exclude_unset=True), ("description", "notes"))
        if updates.get("description") is None:
            updates.pop("description", None)
        if updates.get("estimated_hours") is None:
            updates.pop("estimated_hours", None)

        status = updates.pop("status", None)
        for key, value in updates.items():
            setattr(job, key, value)

        if status:
            now = datetime.utcnow()
            job.status = status.value
            if status == JobStatus.IN_PROGRESS and not job.started_at:
                job.started_at = now
            if status == JobStatus.COMPLETED:
                job.completed_at = now

        return self.repo.save(self.db, work_order)

    def remove_job(self, work_order_id: int, job_id: int) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        work_order.jobs.remove(self._find_job(work_order, job_id))
        return self.repo.save(self.db, work_order)

    def add_part(self, work_order_id: int, data: PartCreate) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        work_order.parts.append(build_part(data))
        return self.repo.save(self.db, work_order)

    def update_part(self, work_order_id: int, part_id: int, data: PartUpdate) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        part = self._find_part(work_order, part_id)

        updates = sanitize_fields(
            data.model_dump(exclude_unset=True, exclude_none=True), ("part_number", "description")
        )
        for key, value in updates.items():
            setattr(part, key, value)
        part.recalculate_total()

        return self.repo.save(self.db, work_order)

    def remove_part(self, work_order_id: int, part_id: int) -> WorkOrder:
        work_order = self.get_work_order(work_order_id)
        self._ensure_not_invoiced(work_order)
        work_order.parts.remove(self._find_part(work_order, part_id))
        return self.repo.save(self.db, work_order)

    # ------------------------------------------------------------------
    # Invoicing
    # ------------------------------------------------------------------

    def _attach_invoice(
        self,
        work_order: WorkOrder,
        actor: Actor,
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> Invoice:
        """Stage a new invoice for the work order in the current transaction"""
        invoice = build_invoice_from_work_order(
            work_order, self.settings, actor.id, notes, payment_terms
        )
        self.db.add(invoice)
        try:
            self.db.flush()
        except IntegrityError:
            # Another request invoiced this work order first
            self.db.rollback()
            raise ConflictError("Invoice already generated for this work order") from None
        work_order.invoice_id = invoice.id
        return invoice

    def _commit_linked(self, work_order: WorkOrder, conflict_message: str) -> None:
        """Commit a work order together with whatever document was staged beside it"""
        try:
            work_order.recalculate_totals()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"⚠️ Work order {work_order.id}: {conflict_message}")
            raise ConflictError(conflict_message) from None
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(work_order)

    def generate_invoice(
        self,
        work_order_id: int,
        actor: Actor,
        send: bool = False,
        notes: Optional[str] = None,
        payment_terms: Optional[str] = None,
    ) -> Invoice:
        """Create the invoice for a work order; optionally mark it sent right away"""
        work_order = self.get_work_order(work_order_id)

        if work_order.status == WorkOrderStatus.CANCELLED.value:
            raise BadRequestError("Cannot generate an invoice for a cancelled work order")
        if work_order.invoice_id:
            raise ConflictError("Invoice already generated for this work order")

        existing = self.repo.get_invoice_for_work_order(self.db, work_order.id)
        if existing:
            # Invoice written but link lost: restore the link, still a repeat
            work_order.invoice_id = existing.id
            self.db.commit()
            logger.warning(f"⚠️ Re-linked work order {work_order.id} to invoice {existing.id}")
            raise ConflictError("Invoice already generated for this work order")

        invoice = self._attach_invoice(work_order, actor, notes, payment_terms)
        if send:
            invoice.status = InvoiceStatus.SENT.value
            invoice.sent_at = datetime.utcnow()

        self._commit_linked(work_order, "Invoice already generated for this work order")
        self.db.refresh(invoice)
        logger.info(
            f"🧾 Invoice {invoice.invoice_number} generated from work order "
            f"{work_order.work_order_number} (total {invoice.total:.2f})"
        )
        return invoice

    def delete_work_order(self, work_order_id: int) -> dict:
        work_order = self.get_work_order(work_order_id)

        if work_order.invoice_id:
            raise BadRequestError("Cannot delete work order with associated invoice")

        if work_order.appointment_id:
            appointment = self.repo.get_appointment(self.db, work_order.appointment_id)
            if appointment and appointment.work_order_id == work_order.id:
                appointment.work_order_id = None

        self.repo.delete(self.db, work_order)
        logger.info(f"🗑️ Work order {work_order_id} deleted")
        return {"message": "Work order deleted successfully"}
