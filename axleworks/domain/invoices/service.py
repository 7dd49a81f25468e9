"""Invoice service - Ledger operations on invoices"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...auth import Actor
from ...config import ShopSettings
from ...errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from ...models_invoice import Invoice, InvoiceLineItem, InvoiceStatus
from ...schemas import LineItemCreate, LineItemUpdate
from ...shared.pagination import PageParams
from ...utils.sanitization import sanitize_string
from ..collaborators import get_customer, get_vehicle
from ..line_items import apply_line_item_update, build_line_item, find_line_item
from .repository import InvoiceRepository
from .schemas import InvoiceCreate, InvoiceUpdate

logger = logging.getLogger(__name__)

NON_CANCELLABLE_STATUSES = frozenset(
    {InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value, InvoiceStatus.REFUNDED.value}
)
CONCURRENT_UPDATE_MESSAGE = "Invoice was modified by another request, please retry"


def save_invoice(db: Session, invoice: Invoice) -> Invoice:
    """Save an invoice, reporting a lost optimistic-lock race as a conflict"""
    invoice_id = invoice.id
    try:
        return InvoiceRepository.save(db, invoice)
    except StaleDataError:
        db.rollback()
        logger.warning(f"⚠️ Invoice {invoice_id}: concurrent update detected")
        raise ConflictError(CONCURRENT_UPDATE_MESSAGE) from None


class InvoiceService:
    """Service layer for invoice business logic"""

    def __init__(self, db: Session, settings: ShopSettings):
        self.db = db
        self.settings = settings
        self.repo = InvoiceRepository()

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.repo.get_by_id(self.db, invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")
        return invoice

    def list_invoices(
        self,
        page: PageParams,
        customer_id: Optional[int] = None,
        vehicle_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Invoice]:
        return self.repo.list_invoices(self.db, page, customer_id, vehicle_id, status)

    def create_invoice(self, data: InvoiceCreate, actor: Actor) -> Invoice:
        """Create a draft invoice that is not tied to a work order"""
        logger.info(f"🧾 Creating invoice for customer {data.customer_id}")

        get_customer(self.db, data.customer_id)
        get_vehicle(self.db, data.vehicle_id, data.customer_id)

        invoice = Invoice(
            customer_id=data.customer_id,
            vehicle_id=data.vehicle_id,
            discount_amount=data.discount_amount,
            tax_rate=self.settings.tax_rate if data.tax_rate is None else data.tax_rate,
            amount_paid=0,
            status=InvoiceStatus.DRAFT.value,
            due_date=data.due_date
            or datetime.utcnow() + timedelta(days=self.settings.invoice_due_days),
            notes=sanitize_string(data.notes),
            payment_terms=sanitize_string(data.payment_terms),
            created_by=actor.id,
        )
        invoice.line_items = [build_line_item(InvoiceLineItem, item) for item in data.line_items]

        invoice = self.repo.save(self.db, invoice)
        logger.info(f"✅ Invoice {invoice.invoice_number} created (total {invoice.total:.2f})")
        return invoice

    def _ensure_draft(self, invoice: Invoice, action: str) -> None:
        if invoice.status != InvoiceStatus.DRAFT.value:
            logger.warning(f"⚠️ Invoice {invoice.id} is {invoice.status}, {action} refused")
            raise BadRequestError(f"Only draft invoices can be {action}")

    def update_invoice(self, invoice_id: int, data: InvoiceUpdate) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        self._ensure_draft(invoice, "updated")

        updates = data.model_dump(exclude_unset=True)
        if data.line_items is not None:
            invoice.line_items = [build_line_item(InvoiceLineItem, item) for item in data.line_items]
        if data.discount_amount is not None:
            invoice.discount_amount = data.discount_amount
        if data.tax_rate is not None:
            invoice.tax_rate = data.tax_rate
        if data.due_date is not None:
            invoice.due_date = data.due_date
        if "notes" in updates:
            invoice.notes = sanitize_string(data.notes)
        if "payment_terms" in updates:
            invoice.payment_terms = sanitize_string(data.payment_terms)

        return save_invoice(self.db, invoice)

    def add_line_item(self, invoice_id: int, data: LineItemCreate) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        self._ensure_draft(invoice, "updated")
        invoice.line_items.append(build_line_item(InvoiceLineItem, data))
        return save_invoice(self.db, invoice)

    def update_line_item(self, invoice_id: int, item_id: int, data: LineItemUpdate) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        self._ensure_draft(invoice, "updated")
        apply_line_item_update(find_line_item(invoice.line_items, item_id), data)
        return save_invoice(self.db, invoice)

    def remove_line_item(self, invoice_id: int, item_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        self._ensure_draft(invoice, "updated")
        invoice.line_items.remove(find_line_item(invoice.line_items, item_id))
        return save_invoice(self.db, invoice)

    def send_invoice(self, invoice_id: int) -> Invoice:
        """draft → sent"""
        invoice = self.get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            logger.warning(f"⚠️ Invoice {invoice_id}: rejected transition {invoice.status} → sent")
            raise InvalidTransitionError(
                "invoice", invoice.status, InvoiceStatus.SENT.value, "Only draft invoices can be sent"
            )

        invoice.status = InvoiceStatus.SENT.value
        invoice.sent_at = datetime.utcnow()
        invoice = save_invoice(self.db, invoice)
        logger.info(f"📤 Invoice {invoice.id} sent")
        return invoice

    def cancel_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice.status in NON_CANCELLABLE_STATUSES:
            logger.warning(f"⚠️ Invoice {invoice_id}: rejected transition {invoice.status} → cancelled")
            raise InvalidTransitionError(
                "invoice",
                invoice.status,
                InvoiceStatus.CANCELLED.value,
                "Cannot cancel this invoice",
            )

        invoice.status = InvoiceStatus.CANCELLED.value
        invoice = save_invoice(self.db, invoice)
        logger.info(f"🚫 Invoice {invoice.id} cancelled")
        return invoice

    def delete_invoice(self, invoice_id: int) -> dict:
        invoice = self.get_invoice(invoice_id)
        self._ensure_draft(invoice, "deleted")

        # Let the work order be invoiced again
        if invoice.work_order_id:
            work_order = self.repo.get_work_order(self.db, invoice.work_order_id)
            if work_order and work_order.invoice_id == invoice.id:
                work_order.invoice_id = None

        self.repo.delete(self.db, invoice)
        logger.info(f"🗑️ Invoice {invoice_id} deleted")
        return {"message": "Invoice deleted successfully"}
