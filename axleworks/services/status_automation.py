"""
Document status rules and automated status transitions

Each document's legal transitions live in one table here; services ask
can_transition() before changing a status. The sweeps below move documents
whose dates have passed:
  invoices: sent/partial → overdue once due_date passes
  estimates: draft/sent/approved → expired once valid_until passes
"""

import logging
from datetime import datetime
from typing import Mapping, Optional

from sqlalchemy.orm import Session

from ..models_appointment import AppointmentStatus
from ..models_estimate import Estimate, EstimateStatus
from ..models_invoice import Invoice, InvoiceStatus
from ..models_work_order import WorkOrderStatus

logger = logging.getLogger(__name__)

Transitions = Mapping[str, frozenset]

ESTIMATE_TRANSITIONS: Transitions = {
    EstimateStatus.DRAFT.value: frozenset({EstimateStatus.SENT.value, EstimateStatus.EXPIRED.value}),
    EstimateStatus.SENT.value: frozenset(
        {EstimateStatus.APPROVED.value, EstimateStatus.REJECTED.value, EstimateStatus.EXPIRED.value}
    ),
    EstimateStatus.APPROVED.value: frozenset(
        {EstimateStatus.CONVERTED.value, EstimateStatus.EXPIRED.value}
    ),
    EstimateStatus.REJECTED.value: frozenset(),  # Terminal state
    EstimateStatus.EXPIRED.value: frozenset(),  # Terminal state
    EstimateStatus.CONVERTED.value: frozenset(),  # Terminal state
}

WORK_ORDER_TRANSITIONS: Transitions = {
    WorkOrderStatus.CREATED.value: frozenset(
        {WorkOrderStatus.IN_PROGRESS.value, WorkOrderStatus.CANCELLED.value}
    ),
    WorkOrderStatus.IN_PROGRESS.value: frozenset(
        {
            WorkOrderStatus.WAITING_PARTS.value,
            WorkOrderStatus.WAITING_APPROVAL.value,
            WorkOrderStatus.READY.value,
            WorkOrderStatus.CANCELLED.value,
        }
    ),
    WorkOrderStatus.WAITING_PARTS.value: frozenset(
        {WorkOrderStatus.IN_PROGRESS.value, WorkOrderStatus.CANCELLED.value}
    ),
    WorkOrderStatus.WAITING_APPROVAL.value: frozenset(
        {WorkOrderStatus.IN_PROGRESS.value, WorkOrderStatus.CANCELLED.value}
    ),
    WorkOrderStatus.READY.value: frozenset(
        {WorkOrderStatus.COMPLETED.value, WorkOrderStatus.IN_PROGRESS.value}
    ),
    WorkOrderStatus.COMPLETED.value: frozenset(),  # Terminal state
    WorkOrderStatus.CANCELLED.value: frozenset(),  # Terminal state
}

APPOINTMENT_TRANSITIONS: Transitions = {
    AppointmentStatus.PENDING.value: frozenset(
        {
            AppointmentStatus.CONFIRMED.value,
            AppointmentStatus.CANCELLED.value,
            AppointmentStatus.NO_SHOW.value,
        }
    ),
    AppointmentStatus.CONFIRMED.value: frozenset(
        {
            AppointmentStatus.IN_PROGRESS.value,
            AppointmentStatus.CANCELLED.value,
            AppointmentStatus.NO_SHOW.value,
        }
    ),
    AppointmentStatus.IN_PROGRESS.value: frozenset({AppointmentStatus.COMPLETED.value}),
    AppointmentStatus.COMPLETED.value: frozenset(),  # Terminal state
    AppointmentStatus.CANCELLED.value: frozenset(),  # Terminal state
    AppointmentStatus.NO_SHOW.value: frozenset(),  # Terminal state
}

OVERDUE_CANDIDATE_STATUSES = (InvoiceStatus.SENT.value, InvoiceStatus.PARTIAL.value)
EXPIRABLE_ESTIMATE_STATUSES = (
    EstimateStatus.DRAFT.value,
    EstimateStatus.SENT.value,
    EstimateStatus.APPROVED.value,
)


def can_transition(table: Transitions, current_status: str, new_status: str) -> bool:
    """
    Validate a status change against a transition table

    Unlike contract edits, a same-status "transition" is not a no-op here:
    staying put is only legal when the table lists it.

    Args:
        table: One of the *_TRANSITIONS tables above
        current_status: Current document status
        new_status: Desired new status

    Returns:
        bool: True if transition is valid, False otherwise
    """
    return new_status in table.get(current_status, frozenset())


def mark_overdue_invoices(db: Session, now: Optional[datetime] = None) -> int:
    """Move sent/partial invoices past their due date to overdue"""
    now = now or datetime.utcnow()
    try:
        invoices = (
            db.query(Invoice)
            .filter(
                Invoice.status.in_(OVERDUE_CANDIDATE_STATUSES),
                Invoice.due_date < now,
            )
            .all()
        )

        for invoice in invoices:
            previous = invoice.status
            invoice.status = InvoiceStatus.OVERDUE.value
            logger.info(f"✅ Invoice {invoice.id} transitioned: {previous} → overdue")

        if invoices:
            db.commit()
        return len(invoices)

    except Exception as e:
        logger.error(f"❌ Error marking overdue invoices: {str(e)}")
        db.rollback()
        raise


def expire_estimates(db: Session, now: Optional[datetime] = None) -> int:
    """Expire unconverted estimates whose validity window has closed"""
    now = now or datetime.utcnow()
    try:
        estimates = (
            db.query(Estimate)
            .filter(
                Estimate.status.in_(EXPIRABLE_ESTIMATE_STATUSES),
                Estimate.converted_to_work_order_id.is_(None),
                Estimate.valid_until < now,
            )
            .all()
        )

        for estimate in estimates:
            previous = estimate.status
            estimate.status = EstimateStatus.EXPIRED.value
            logger.info(f"✅ Estimate {estimate.id} transitioned: {previous} → expired")

        if estimates:
            db.commit()
        return len(estimates)

    except Exception as e:
        logger.error(f"❌ Error expiring estimates: {str(e)}")
        db.rollback()
        raise


def run_status_automation(db: Session) -> dict:
    """
    Run every date-driven sweep
    Should be run as a scheduled job (e.g., hourly cron)

    Returns:
        dict: Summary of status changes made
    """
    now = datetime.utcnow()
    summary = {
        "invoices_to_overdue": mark_overdue_invoices(db, now),
        "estimates_to_expired": expire_estimates(db, now),
    }
    summary["total_updated"] = summary["invoices_to_overdue"] + summary["estimates_to_expired"]

    if summary["total_updated"]:
        logger.info(f"📊 Status automation summary: {summary}")
    else:
        logger.debug("ℹ️ No document status updates needed")
    return summary
