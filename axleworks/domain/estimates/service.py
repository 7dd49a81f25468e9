"""Estimate service - Quote lifecycle and conversion to work orders"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...auth import Actor
from ...config import ShopSettings
from ...errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from ...models import LineItemKind
from ...models_appointment import Appointment
from ...models_estimate import EDITABLE_ESTIMATE_STATUSES, Estimate, EstimateLineItem, EstimateStatus
from ...models_work_order import JobStatus, WorkOrder, WorkOrderJob, WorkOrderPart, WorkOrderStatus
from ...schemas import LineItemCreate, LineItemUpdate
from ...services.status_automation import ESTIMATE_TRANSITIONS, can_transition
from ...shared.pagination import PageParams
from ...utils.sanitization import sanitize_string
from ..collaborators import get_customer, get_vehicle
from ..line_items import apply_line_item_update, build_line_item, find_line_item
from .repository import EstimateRepository
from .schemas import EstimateConvert, EstimateCreate, EstimateUpdate

logger = logging.getLogger(__name__)

JOB_LINE_KINDS = (LineItemKind.LABOUR.value, LineItemKind.SERVICE.value)
ALREADY_CONVERTED = "Estimate has already been converted to a work order"


def build_work_order_from_estimate(
    estimate: Estimate, seed: EstimateConvert, settings: ShopSettings, created_by: int
) -> WorkOrder:
    """
    Work order for an approved estimate.

    labour and service lines become pending jobs (hours = quantity), part lines
    become parts with a placeholder part number and a cost derived from the sell
    price. misc lines have no work order counterpart and are dropped.
    """
    work_order = WorkOrder(
        customer_id=estimate.customer_id,
        vehicle_id=estimate.vehicle_id,
        appointment_id=estimate.appointment_id,
        estimate_id=estimate.id,
        status=WorkOrderStatus.CREATED.value,
        priority=seed.priority.value,
        work_type=seed.work_type.value,
        mileage_in=seed.mileage_in,
        customer_concerns=sanitize_string(seed.customer_concerns),
        internal_notes=sanitize_string(seed.internal_notes),
        labour_rate=settings.labour_rate,
        tax_amount=0,
        created_by=created_by,
    )

    for item in estimate.line_items:
        if item.kind in JOB_LINE_KINDS:
            work_order.jobs.append(
                WorkOrderJob(
                    description=item.description,
                    estimated_hours=item.quantity,
                    status=JobStatus.PENDING.value,
                )
            )
        elif item.kind == LineItemKind.PART.value:
            work_order.parts.append(
                WorkOrderPart(
                    part_number="TBD",
                    description=item.description,
                    quantity=item.quantity,
                    unit_cost=item.unit_price * settings.parts_cost_factor,
                    unit_price=item.unit_price,
                    total=item.total,
                )
            )

    work_order.recalculate_totals()
    return work_order


class EstimateService:
    """Service layer for estimate business logic"""

    def __init__(self, db: Session, settings: ShopSettings):
        self.db = db
        self.settings = settings
        self.repo = EstimateRepository()

    def get_estimate(self, estimate_id: int) -> Estimate:
        estimate = self.repo.get_by_id(self.db, estimate_id)
        if not estimate:
            raise NotFoundError("Estimate not found")
        return estimate

    def list_estimates(
        self,
        page: PageParams,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Estimate]:
        return self.repo.list_estimates(self.db, page, customer_id, vehicle_id, status)

    def create_estimate(self, data: EstimateCreate, actor: Actor) -> Estimate:
        """Create a draft estimate"""
        logger.info(f"📝 Creating estimate for customer {data.customer_id}, vehicle {data.vehicle_id}")

        get_customer(self.db, data.customer_id)
        get_vehicle(self.db, data.vehicle_id, data.customer_id)
        if data.appointment_id and not self.db.get(Appointment, data.appointment_id):
            raise NotFoundError("Appointment not found")

        estimate = Estimate(
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            appointment_id=data.appointment_id,
            discount_amount=data.discount_amount,
            tax_rate=self.settings.tax_rate if data.tax_rate is None else data.tax_rate,
            valid_until=data.valid_until
            or datetime.utcnow() + timedelta(days=self.settings.estimate_valid_days),
            notes=sanitize_string(data.notes),
            terms=sanitize_string(data.terms),
            status=EstimateStatus.DRAFT.value,
            created_by=actor.id,
        )
        estimate.line_items = [build_line_item(EstimateLineItem, item) for item in data.line_items]

        estimate = self.repo.save(self.db, estimate)
        logger.info(f"✅ Estimate {estimate.estimate_number} created (total {estimate.total:.2f})")
        return estimate

    def _ensure_editable(self, estimate: Estimate) -> None:
        if estimate.status not in EDITABLE_ESTIMATE_STATUSES:
            logger.warning(f"⚠️ Estimate {estimate.id} is {estimate.status}, edit refused")
            raise BadRequestError(f"Cannot update an estimate that is {estimate.status}")

    def update_estimate(self, estimate_id: int, data: EstimateUpdate) -> Estimate:
        estimate = self.get_estimate(estimate_id)
        self._ensure_editable(estimate)

        updates = data.model_dump(exclude_unset=True)
        if data.line_items is not None:
            estimate.line_items = [build_line_item(EstimateLineItem, item) for item in data.line_items]
        if data.discount_amount is not None:
            estimate.discount_amount = data.discount_amount
        if data.tax_rate is not None:
            estimate.tax_rate = data.tax_rate
        if data.valid_until is not None:
            estimate.valid_until = data.valid_until
        if "notes" in updates:
            estimate.notes = sanitize_string(data.notes)
        if "terms" in updates:
            estimate.terms = sanitize_string(data.terms)

        return self.repo.save(self.db, estimate)

    def add_line_item(self, estimate_id: int, data: LineItemCreate) -> Estimate:
        estimate = self.get_estimate(estimate_id)
        self._ensure_editable(estimate)
        estimate.line_items.append(build_line_item(EstimateLineItem, data))
        return self.repo.save(self.db, estimate)

    def update_line_item(self, estimate_id: int, item_id: int, data: LineItemUpdate) -> Estimate:
        estimate = self.get_estimate(estimate_id)
        self._ensure_editable(estimate)
        apply_line_item_update(find_line_item(estimate.line_items, item_id), data)
        return self.repo.save(self.db, estimate)

    def remove_line_item(self, estimate_id: int, item_id: int) -> Estimate:
        estimate = self.get_estimate(estimate_id)
        self._ensure_editable(estimate)
        estimate.line_items.remove(find_line_item(estimate.line_items, item_id))
        return self.repo.save(self.db, estimate)

    def _transition(self, estimate: Estimate, target: EstimateStatus, message: str) -> None:
        current = estimate.status
        if not can_transition(ESTIMATE_TRANSITIONS, current, target.value):
            logger.warning(f"⚠️ Estimate {estimate.id}: rejected transition {current} → {target.value}")
            raise InvalidTransitionError("estimate", current, target.value, message)
        estimate.status = target.value

    def send_estimate(self, estimate_id: int) -> Estimate:
        """draft → sent"""
        estimate = self.get_estimate(estimate_id)
        self._transition(estimate, EstimateStatus.SENT, "Only draft estimates can be sent")
        estimate.sent_at = datetime.utcnow()
        estimate = self.repo.save(self.db, estimate)
        logger.info(f"📤 Estimate {estimate.id} sent")
        return estimate

    def approve_estimate(self, estimate_id: int) -> Estimate:
        """sent → approved"""
        estimate = self.get_estimate(estimate_id)
        self._transition(estimate, EstimateStatus.APPROVED, "Estimate cannot be approved from this state")
        estimate.approved_at = datetime.utcnow()
        estimate = self.repo.save(self.db, estimate)
        logger.info(f"✅ Estimate {estimate.id} approved")
        return estimate

    def reject_estimate(self, estimate_id: int, reason: str) -> Estimate:
        """sent → rejected"""
        estimate = self.get_estimate(estimate_id)
        self._transition(estimate, EstimateStatus.REJECTED, "Estimate cannot be rejected from this state")
        estimate.rejected_at = datetime.utcnow()
        estimate.rejection_reason = sanitize_string(reason)
        estimate = self.repo.save(self.db, estimate)
        logger.info(f"❌ Estimate {estimate.id} rejected")
        return estimate

    def convert_to_work_order(
        self, estimate_id: int, seed: EstimateConvert, actor: Actor
    ) -> WorkOrder:
        """
        Turn an approved estimate into a work order, exactly once.

        The work order insert and the estimate update commit in one transaction.
        work_orders.estimate_id is unique, so a concurrent or retried conversion
        fails on commit instead of creating a second work order.
        """
        estimate = self.get_estimate(estimate_id)

        if estimate.converted_to_work_order_id:
            logger.warning(f"⚠️ Estimate {estimate_id} already converted")
            raise ConflictError(ALREADY_CONVERTED)

        existing = self.repo.get_work_order_for_estimate(self.db, estimate.id)
        if existing:
            # Work order written but the estimate never recorded it: finish the link
            estimate.converted_to_work_order_id = existing.id
            estimate.status = EstimateStatus.CONVERTED.value
            self.repo.save(self.db, estimate)
            logger.warning(f"⚠️ Re-linked estimate {estimate_id} to work order {existing.id}")
            raise ConflictError(ALREADY_CONVERTED)

        self._transition(
            estimate, EstimateStatus.CONVERTED, "Only approved estimates can be converted"
        )

        try:
            work_order = build_work_order_from_estimate(estimate, seed, self.settings, actor.id)
            self.db.add(work_order)
            self.db.flush()

            estimate.converted_to_work_order_id = work_order.id
            if estimate.appointment_id:
                appointment = self.db.get(Appointment, estimate.appointment_id)
                if appointment and not appointment.work_order_id:
                    appointment.work_order_id = work_order.id

            estimate.recalculate_totals()
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"⚠️ Estimate {estimate_id} converted concurrently")
            raise ConflictError(ALREADY_CONVERTED) from None
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(work_order)
        logger.info(
            f"🔧 Estimate {estimate.estimate_number} converted to work order "
            f"{work_order.work_order_number}"
        )
        return work_order

    def delete_estimate(self, estimate_id: int) -> dict:
        estimate = self.get_estimate(estimate_id)

        if estimate.converted_to_work_order_id:
            raise ConflictError("Cannot delete an estimate that has been converted")
        if estimate.status not in EDITABLE_ESTIMATE_STATUSES:
            raise BadRequestError(f"Cannot delete an estimate that is {estimate.status}")

        self.repo.delete(self.db, estimate)
        logger.info(f"🗑️ Estimate {estimate_id} deleted")
        return {"message": "Estimate deleted successfully"}
