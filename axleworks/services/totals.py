"""
Totals engine.

Pure money arithmetic shared by estimates, work orders and invoices. Nothing
here touches the database; models call these functions from their
recalculate_totals() right before a save.
"""

from dataclasses import dataclass
from typing import Iterable

# Residue below half a cent is float noise, not money owed
MONEY_EPSILON = 0.005


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: float
    tax_amount: float
    total: float


@dataclass(frozen=True)
class WorkOrderTotals:
    parts_total: float
    labour_total: float
    total: float


def line_item_total(quantity: float, unit_price: float, discount: float = 0) -> float:
    """quantity * unit_price - discount. Not clamped: a discount larger than the
    line subtotal yields a negative total."""
    return quantity * unit_price - (discount or 0)


def compute_document_totals(
    line_totals: Iterable[float], discount_amount: float, tax_rate: float
) -> DocumentTotals:
    """Subtotal, tax and grand total for a priced document.

    Tax applies to the discounted subtotal; tax_rate is a percentage.
    """
    subtotal = sum(line_totals, 0.0)
    discount_amount = discount_amount or 0
    tax_amount = (subtotal - discount_amount) * ((tax_rate or 0) / 100)
    total = subtotal - discount_amount + tax_amount
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=total)


def compute_work_order_totals(
    part_totals: Iterable[float],
    job_hours: Iterable[float],
    labour_rate: float,
    tax_amount: float = 0,
) -> WorkOrderTotals:
    """Parts and labour rollup for a work order"""
    parts_total = sum(part_totals, 0.0)
    labour_total = sum(job_hours, 0.0) * labour_rate
    total = parts_total + labour_total + (tax_amount or 0)
    return WorkOrderTotals(parts_total=parts_total, labour_total=labour_total, total=total)


def job_billable_hours(actual_hours, estimated_hours) -> float:
    """Actual hours once recorded, otherwise the estimate"""
    if actual_hours is not None:
        return actual_hours
    return estimated_hours or 0


def compute_balance(total: float, amount_paid: float) -> float:
    """Amount still owed on an invoice"""
    balance = (total or 0) - (amount_paid or 0)
    if abs(balance) < MONEY_EPSILON:
        return 0.0
    return balance


def exceeds(amount: float, limit: float) -> bool:
    """True when amount is larger than limit by at least half a cent"""
    return amount - limit >= MONEY_EPSILON


def derive_invoice_status(status: str, amount_paid: float, amount_due: float) -> str:
    """Status implied by an invoice's balance.

    cancelled and refunded are final and never derived over. A draft that has
    received nothing stays a draft even when its total is still zero.
    """
    if status in ("cancelled", "refunded"):
        return status
    if status == "draft" and (amount_paid or 0) <= 0:
        return status
    if amount_due <= 0:
        return "paid"
    if (amount_paid or 0) > 0:
        return "partial"
    return status
