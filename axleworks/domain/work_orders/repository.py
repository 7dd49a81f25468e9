"""Work order repository - Database operations for work orders"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case
from sqlalchemy.orm import Session

from ...models_appointment import Appointment
from ...models_invoice import Invoice
from ...models_work_order import PRIORITY_RANK, WorkOrder, WorkOrderStatus
from ...shared.pagination import PageParams

CLOSED_WORK_ORDER_STATUSES = (WorkOrderStatus.COMPLETED.value, WorkOrderStatus.CANCELLED.value)


class WorkOrderRepository:
    """Repository for work order database operations"""

    @staticmethod
    def get_by_id(db: Session, work_order_id: int) -> Optional[WorkOrder]:
        return db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()

    @staticmethod
    def list_work_orders(
        db: Session,
        page: PageParams,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        work_type: Optional[str] = None,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[WorkOrder]:
        """List work orders with optional filters, newest first"""
        query = db.query(WorkOrder)

        if status:
            query = query.filter(WorkOrder.status == status)
        if priority:
            query = query.filter(WorkOrder.priority == priority)
        if work_type:
            query = query.filter(WorkOrder.work_type == work_type)
        if customer_id:
            query = query.filter(WorkOrder.customer_id == customer_id)
        if vehicle_id:
            query = query.filter(WorkOrder.vehicle_id == vehicle_id)
        if created_from:
            query = query.filter(WorkOrder.created_at >= created_from)
        if created_to:
            query = query.filter(WorkOrder.created_at <= created_to)

        query = query.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc())
        return page.apply(query).all()

    @staticmethod
    def list_open(db: Session, technician_id: Optional[int] = None) -> list[WorkOrder]:
        """Open work orders, most urgent first, then oldest first"""
        priority_rank = case(PRIORITY_RANK, value=WorkOrder.priority, else_=len(PRIORITY_RANK))
        query = db.query(WorkOrder).filter(WorkOrder.status.notin_(CLOSED_WORK_ORDER_STATUSES))
        if technician_id:
            query = query.filter(WorkOrder.assigned_technician_id == technician_id)
        return query.order_by(priority_rank, WorkOrder.created_at.asc(), WorkOrder.id.asc()).all()

    @staticmethod
    def list_for_technician(db: Session, technician_id: int, status: str) -> list[WorkOrder]:
        priority_rank = case(PRIORITY_RANK, value=WorkOrder.priority, else_=len(PRIORITY_RANK))
        return (
            db.query(WorkOrder)
            .filter(
                WorkOrder.assigned_technician_id == technician_id,
                WorkOrder.status == status,
            )
            .order_by(priority_rank, WorkOrder.created_at.asc(), WorkOrder.id.asc())
            .all()
        )

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_invoice_for_work_order(db: Session, work_order_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.work_order_id == work_order_id).first()

    @staticmethod
    def save(db: Session, work_order: WorkOrder) -> WorkOrder:
        """Roll up totals and commit"""
        work_order.recalculate_totals()
        db.add(work_order)
        db.commit()
        db.refresh(work_order)
        return work_order

    @staticmethod
    def delete(db: Session, work_order: WorkOrder) -> None:
        db.delete(work_order)
        db.commit()
