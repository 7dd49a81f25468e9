"""
Tests for the invoice ledger and the payment processor.

Validates:
- Draft-only editing, send / cancel / delete rules
- Partial and full payment reconciliation
- Overpayment and closed-invoice refusals
- Refunds and customer spend counters
"""

from datetime import datetime, timedelta

import pytest

from axleworks.domain.invoices.schemas import InvoiceUpdate
from axleworks.domain.payments.schemas import PaymentCreate
from axleworks.domain.work_orders.schemas import JobCreate
from axleworks.errors import BadRequestError, InvalidTransitionError, NotFoundError
from axleworks.models import LineItemKind
from axleworks.models_invoice import InvoiceStatus, PaymentMethod, PaymentStatus
from axleworks.services.status_automation import mark_overdue_invoices
from axleworks.shared.pagination import PageParams
from tests.helpers import line


@pytest.fixture
def sent_invoice(make_invoice, invoice_service, brake_job_lines):
    """237.30 owed"""
    invoice = make_invoice(line_items=brake_job_lines)
    return invoice_service.send_invoice(invoice.id)


def pay(payment_service, actor, invoice_id, amount, method=PaymentMethod.CASH):
    return payment_service.apply_payment(
        PaymentCreate(invoice_id=invoice_id, amount=amount, method=method), actor
    )


# =============================================================================
# Invoice ledger
# =============================================================================


class TestInvoiceLedger:
    def test_create_draft(self, make_invoice, brake_job_lines, settings):
        invoice = make_invoice(line_items=brake_job_lines)

        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.invoice_number.startswith("INV-")
        assert invoice.total == pytest.approx(237.30)
        assert invoice.amount_paid == 0
        assert invoice.amount_due == pytest.approx(237.30)
        assert invoice.due_date > datetime.utcnow() + timedelta(days=settings.invoice_due_days - 1)

    def test_draft_edits_recompute(self, make_invoice, invoice_service, brake_job_lines):
        invoice = make_invoice(line_items=brake_job_lines)

        invoice = invoice_service.add_line_item(
            invoice.id, line("Coolant", LineItemKind.PART, 1, 40)
        )
        assert invoice.subtotal == pytest.approx(250)

        invoice = invoice_service.update_invoice(invoice.id, InvoiceUpdate(discount_amount=50))
        assert invoice.tax_amount == pytest.approx(26)
        assert invoice.total == pytest.approx(226)
        assert invoice.amount_due == pytest.approx(226)

    def test_send_stamps_sent_at(self, sent_invoice):
        assert sent_invoice.status == InvoiceStatus.SENT.value
        assert sent_invoice.sent_at is not None

    def test_sent_invoice_is_locked(self, sent_invoice, invoice_service):
        with pytest.raises(BadRequestError):
            invoice_service.add_line_item(sent_invoice.id, line("Extra", LineItemKind.MISC, 1, 5))
        with pytest.raises(BadRequestError):
            invoice_service.update_invoice(sent_invoice.id, InvoiceUpdate(notes="late edit"))
        with pytest.raises(BadRequestError):
            invoice_service.delete_invoice(sent_invoice.id)

    def test_send_twice(self, sent_invoice, invoice_service):
        with pytest.raises(InvalidTransitionError):
            invoice_service.send_invoice(sent_invoice.id)

    def test_cancel(self, sent_invoice, invoice_service):
        invoice = invoice_service.cancel_invoice(sent_invoice.id)
        assert invoice.status == InvoiceStatus.CANCELLED.value

    def test_paid_invoice_cannot_be_cancelled(self, sent_invoice, invoice_service, payment_service, actor):
        pay(payment_service, actor, sent_invoice.id, 237.30)

        with pytest.raises(InvalidTransitionError):
            invoice_service.cancel_invoice(sent_invoice.id)

    def test_deleting_draft_releases_work_order(
        self, make_work_order, work_order_service, invoice_service, actor
    ):
        work_order = make_work_order(jobs=[JobCreate(description="Diagnose", estimated_hours=1)])
        invoice = work_order_service.generate_invoice(work_order.id, actor)

        invoice_service.delete_invoice(invoice.id)

        work_order = work_order_service.get_work_order(work_order.id)
        assert work_order.invoice_id is None
        # The work order can be invoiced again
        assert work_order_service.generate_invoice(work_order.id, actor).work_order_id == work_order.id

    def test_unknown_invoice(self, invoice_service):
        with pytest.raises(NotFoundError):
            invoice_service.get_invoice(404)


# =============================================================================
# Payments
# =============================================================================


class TestApplyPayment:
    def test_partial_then_full_payment(self, sent_invoice, payment_service, actor):
        payment, invoice = pay(payment_service, actor, sent_invoice.id, 100)

        assert payment.status == PaymentStatus.COMPLETED.value
        assert payment.processed_by == actor.id
        assert payment.processed_at is not None
        assert invoice.status == InvoiceStatus.PARTIAL.value
        assert invoice.amount_paid == pytest.approx(100)
        assert invoice.amount_due == pytest.approx(137.30)

        _, invoice = pay(payment_service, actor, sent_invoice.id, 137.30)

        assert invoice.status == InvoiceStatus.PAID.value
        assert invoice.amount_due == 0
        assert invoice.paid_at is not None

    def test_overpayment_refused(self, sent_invoice, payment_service, actor):
        with pytest.raises(BadRequestError, match="exceeds amount due"):
            pay(payment_service, actor, sent_invoice.id, 237.31)

    def test_overpayment_after_partial_refused(self, sent_invoice, payment_service, actor):
        pay(payment_service, actor, sent_invoice.id, 200)

        with pytest.raises(BadRequestError):
            pay(payment_service, actor, sent_invoice.id, 40)

    def test_paid_invoice_refuses_payment(self, sent_invoice, payment_service, actor):
        pay(payment_service, actor, sent_invoice.id, 237.30)

        with pytest.raises(BadRequestError):
            pay(payment_service, actor, sent_invoice.id, 1)

    def test_cancelled_invoice_refuses_payment(self, sent_invoice, invoice_service, payment_service, actor):
        invoice_service.cancel_invoice(sent_invoice.id)

        with pytest.raises(BadRequestError):
            pay(payment_service, actor, sent_invoice.id, 10)

    def test_unknown_invoice(self, payment_service, actor):
        with pytest.raises(NotFoundError):
            pay(payment_service, actor, 404, 10)

    def test_overdue_invoice_accepts_payment(self, db, sent_invoice, payment_service, actor):
        mark_overdue_invoices(db, now=datetime.utcnow() + timedelta(days=31))

        _, invoice = pay(payment_service, actor, sent_invoice.id, 37.30)

        assert invoice.status == InvoiceStatus.PARTIAL.value
        assert invoice.amount_due == pytest.approx(200)

    def test_customer_counters(self, db, customer, sent_invoice, payment_service, actor):
        pay(payment_service, actor, sent_invoice.id, 100)
        pay(payment_service, actor, sent_invoice.id, 137.30)

        db.refresh(customer)
        assert customer.total_spent == pytest.approx(237.30)
        assert customer.visit_count == 2
        assert customer.last_visit is not None

    def test_list_by_invoice(self, sent_invoice, make_invoice, payment_service, actor, brake_job_lines):
        other = make_invoice(line_items=brake_job_lines)
        pay(payment_service, actor, sent_invoice.id, 10)
        pay(payment_service, actor, sent_invoice.id, 20)
        pay(payment_service, actor, other.id, 30)

        payments = payment_service.list_payments(PageParams(), invoice_id=sent_invoice.id)

        assert sorted(payment.amount for payment in payments) == [10, 20]


class TestRefundPayment:
    def test_partial_refund_reopens_invoice(self, sent_invoice, payment_service, actor):
        first, _ = pay(payment_service, actor, sent_invoice.id, 100)
        pay(payment_service, actor, sent_invoice.id, 137.30)

        payment, invoice = payment_service.refund_payment(first.id, "Warranty credit", actor)

        assert payment.status == PaymentStatus.REFUNDED.value
        assert payment.refunded_at is not None
        assert payment.refund_reason == "Warranty credit"
        assert invoice.status == InvoiceStatus.PARTIAL.value
        assert invoice.amount_paid == pytest.approx(137.30)
        assert invoice.amount_due == pytest.approx(100)

    def test_full_refund_marks_refunded(self, sent_invoice, payment_service, actor):
        payment, _ = pay(payment_service, actor, sent_invoice.id, 237.30)

        _, invoice = payment_service.refund_payment(payment.id, "Duplicate charge", actor)

        assert invoice.status == InvoiceStatus.REFUNDED.value
        assert invoice.amount_paid == 0
        assert invoice.amount_due == pytest.approx(237.30)

    def test_refund_twice_refused(self, sent_invoice, payment_service, actor):
        payment, _ = pay(payment_service, actor, sent_invoice.id, 50)
        payment_service.refund_payment(payment.id, "Customer request", actor)

        with pytest.raises(BadRequestError, match="completed"):
            payment_service.refund_payment(payment.id, "Again", actor)

    def test_refund_keeps_customer_counters(self, db, customer, sent_invoice, payment_service, actor):
        payment, _ = pay(payment_service, actor, sent_invoice.id, 50)

        payment_service.refund_payment(payment.id, "Customer request", actor)

        db.refresh(customer)
        assert customer.total_spent == pytest.approx(50)
        assert customer.visit_count == 1

    def test_unknown_payment(self, payment_service, actor):
        with pytest.raises(NotFoundError):
            payment_service.refund_payment(404, "n/a", actor)
