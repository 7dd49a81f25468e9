"""Estimate repository - Database operations for estimates"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_estimate import Estimate
from ...models_work_order import WorkOrder
from ...shared.pagination import PageParams


class EstimateRepository:
    """Repository for estimate database operations"""

    @staticmethod
    def get_by_id(db: Session, estimate_id: int) -> Optional[Estimate]:
        return db.query(Estimate).filter(Estimate.id == estimate_id).first()

    @staticmethod
    def list_estimates(
        db: Session,
        page: PageParams,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Estimate]:
        """List estimates with optional filters, newest first"""
        query = db.query(Estimate)

        if customer_id:
            query = query.filter(Estimate.customer_id == customer_id)
        if vehicle_id:
            query = query.filter(Estimate.vehicle_id == vehicle_id)
        if status:
            query = query.filter(Estimate.status == status)

        query = query.order_by(Estimate.created_at.desc(), Estimate.id.desc())
        return page.apply(query).all()

    @staticmethod
    def get_work_order_for_estimate(db: Session, estimate_id: int) -> Optional[WorkOrder]:
        return db.query(WorkOrder).filter(WorkOrder.estimate_id == estimate_id).first()

    @staticmethod
    def save(db: Session, estimate: Estimate) -> Estimate:
        """Recompute totals and commit"""
        estimate.recalculate_totals()
        db.add(estimate)
        db.commit()
        db.refresh(estimate)
        return estimate

    @staticmethod
    def delete(db: Session, estimate: Estimate) -> None:
        db.delete(estimate)
        db.commit()
