"""Payment service - The only writer of invoice balances after creation"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...auth import Actor
from ...errors import BadRequestError, ConflictError, NotFoundError
from ...models_invoice import (
    CLOSED_INVOICE_STATUSES,
    Invoice,
    InvoiceStatus,
    Payment,
    PaymentStatus,
)
from ...services.totals import MONEY_EPSILON, exceeds
from ...shared.pagination import PageParams
from ...utils.sanitization import sanitize_string
from ..invoices.repository import InvoiceRepository
from ..invoices.service import CONCURRENT_UPDATE_MESSAGE
from .repository import PaymentRepository
from .schemas import PaymentCreate

logger = logging.getLogger(__name__)


class PaymentService:
    """Service layer for applying and refunding payments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.invoices = InvoiceRepository()

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.repo.get_by_id(self.db, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def list_payments(self, page: PageParams, **filters) -> list[Payment]:
        return self.repo.list_payments(self.db, page, **filters)

    def _commit(self, invoice_id: int) -> None:
        try:
            self.db.commit()
        except StaleDataError:
            self.db.rollback()
            logger.warning(f"⚠️ Invoice {invoice_id}: concurrent balance change, payment rolled back")
            raise ConflictError(CONCURRENT_UPDATE_MESSAGE) from None
        except Exception:
            self.db.rollback()
            raise

    def apply_payment(self, data: PaymentCreate, actor: Actor) -> tuple[Payment, Invoice]:
        """
        Record a payment and reduce the invoice balance.

        The invoice is re-read under a row lock and written back conditionally on
        its version, so two concurrent payments can never both pass the
        amount <= amount_due check and overpay the invoice.
        """
        invoice = self.invoices.get_for_update(self.db, data.invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")

        if invoice.status in CLOSED_INVOICE_STATUSES:
            logger.warning(f"⚠️ Payment refused: invoice {invoice.id} is {invoice.status}")
            raise BadRequestError(f"Cannot add payment to a {invoice.status} invoice")

        if exceeds(data.amount, invoice.amount_due):
            logger.warning(
                f"⚠️ Payment refused: {data.amount:.2f} exceeds amount due "
                f"{invoice.amount_due:.2f} on invoice {invoice.id}"
            )
            raise BadRequestError("Payment amount exceeds amount due")

        now = datetime.utcnow()
        payment = Payment(
            invoice_id=invoice.id,
            customer_id=invoice.customer_id,
            amount=data.amount,
            method=data.method.value,
            status=PaymentStatus.COMPLETED.value,
            reference=sanitize_string(data.reference),
            notes=sanitize_string(data.notes),
            processed_at=now,
            processed_by=actor.id,
        )
        invoice.payments.append(payment)
        invoice.amount_paid = (invoice.amount_paid or 0) + data.amount
        invoice.recalculate_totals()

        self.repo.record_customer_spend(self.db, invoice.customer_id, data.amount, now)
        self._commit(invoice.id)

        self.db.refresh(payment)
        self.db.refresh(invoice)
        logger.info(
            f"💰 Payment {payment.payment_number} of {payment.amount:.2f} applied to invoice "
            f"{invoice.id} (due {invoice.amount_due:.2f}, {invoice.status})"
        )
        return payment, invoice

    def refund_payment(
        self, payment_id: int, reason: Optional[str], actor: Actor
    ) -> tuple[Payment, Invoice]:
        """
        Reverse a completed payment and give the amount back to the invoice balance.

        The invoice lock is taken first and the payment is re-read under it, so
        the completed-status check always sees the latest refund.
        """
        payment = self.get_payment(payment_id)

        invoice = self.invoices.get_for_update(self.db, payment.invoice_id)
        if not invoice:
            raise NotFoundError("Invoice not found")

        payment = self.repo.get_for_update(self.db, payment_id)
        if payment.status != PaymentStatus.COMPLETED.value:
            logger.warning(f"⚠️ Refund refused: payment {payment_id} is {payment.status}")
            self.db.rollback()
            raise BadRequestError("Can only refund completed payments")

        payment.status = PaymentStatus.REFUNDED.value
        payment.refunded_at = datetime.utcnow()
        payment.refund_reason = sanitize_string(reason)

        amount_paid = (invoice.amount_paid or 0) - payment.amount
        if abs(amount_paid) < MONEY_EPSILON:
            amount_paid = 0.0
        invoice.amount_paid = amount_paid
        if amount_paid <= 0:
            invoice.status = InvoiceStatus.REFUNDED.value
        else:
            invoice.status = InvoiceStatus.PARTIAL.value
        invoice.recalculate_totals()

        self._commit(invoice.id)

        self.db.refresh(payment)
        self.db.refresh(invoice)
        logger.info(
            f"↩️ Payment {payment.payment_number} refunded by actor {actor.id}; invoice "
            f"{invoice.id} now {invoice.status}"
        )
        return payment, invoice
