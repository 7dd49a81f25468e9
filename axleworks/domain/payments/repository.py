"""Payment repository - Database operations for payments"""

from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from ...models import Customer
from ...models_invoice import Payment
from ...shared.pagination import PageParams


class PaymentRepository:
    """Repository for payment database operations"""

    @staticmethod
    def get_by_id(db: Session, payment_id: int) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.id == payment_id).first()

    @staticmethod
    def get_for_update(db: Session, payment_id: int) -> Optional[Payment]:
        """Fresh, row-locked read of a payment; take the invoice lock first"""
        return (
            db.query(Payment)
            .filter(Payment.id == payment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def list_payments(
        db: Session,
        page: PageParams,
        customer_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
        status: Optional[str] = None,
        method: Optional[str] = None,
        processed_from: Optional[datetime] = None,
        processed_to: Optional[datetime] = None,
    ) -> list[Payment]:
        """List payments with optional filters, most recent first"""
        query = db.query(Payment)

        if customer_id:
            query = query.filter(Payment.customer_id == customer_id)
        if invoice_id:
            query = query.filter(Payment.invoice_id == invoice_id)
        if status:
            query = query.filter(Payment.status == status)
        if method:
            query = query.filter(Payment.method == method)
        if processed_from:
            query = query.filter(Payment.processed_at >= processed_from)
        if processed_to:
            query = query.filter(Payment.processed_at <= processed_to)

        query = query.order_by(Payment.processed_at.desc(), Payment.id.desc())
        return page.apply(query).all()

    @staticmethod
    def record_customer_spend(db: Session, customer_id: int, amount: float, when: datetime) -> None:
        """Bump the customer's lifetime counters in one atomic UPDATE (no read-modify-write)"""
        db.execute(
            update(Customer)
            .where(Customer.id == customer_id)
            .values(
                total_spent=Customer.total_spent + amount,
                visit_count=Customer.visit_count + 1,
                last_visit=when,
            )
            .execution_options(synchronize_session=False)
        )
