"""Invoice repository - Database operations for invoices"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_invoice import Invoice
from ...models_work_order import WorkOrder
from ...shared.pagination import PageParams


class InvoiceRepository:
    """Repository for invoice database operations"""

    @staticmethod
    def get_by_id(db: Session, invoice_id: int) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id).first()

    @staticmethod
    def get_for_update(db: Session, invoice_id: int) -> Optional[Invoice]:
        """
        Fresh read of an invoice for a balance change.

        SELECT ... FOR UPDATE holds the row on PostgreSQL; populate_existing
        discards whatever stale copy the session had. On SQLite the version
        column still turns a lost race into a StaleDataError at commit.
        """
        return (
            db.query(Invoice)
            .filter(Invoice.id == invoice_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    @staticmethod
    def list_invoices(
        db: Session,
        page: PageParams,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Invoice]:
        """List invoices with optional filters, newest first"""
        query = db.query(Invoice)

        if customer_id:
            query = query.filter(Invoice.customer_id == customer_id)
        if vehicle_id:
            query = query.filter(Invoice.vehicle_id == vehicle_id)
        if status:
            query = query.filter(Invoice.status == status)

        query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        return page.apply(query).all()

    @staticmethod
    def get_work_order(db: Session, work_order_id: int) -> Optional[WorkOrder]:
        return db.query(WorkOrder).filter(WorkOrder.id == work_order_id).first()

    @staticmethod
    def save(db: Session, invoice: Invoice) -> Invoice:
        """Recompute totals, balance and status, then commit (conditional on version)"""
        invoice.recalculate_totals()
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def delete(db: Session, invoice: Invoice) -> None:
        db.delete(invoice)
        db.commit()
