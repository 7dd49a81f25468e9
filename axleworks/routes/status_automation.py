"""
API endpoint for status automation and analytics
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..database import get_db
from ..models_estimate import Estimate
from ..models_invoice import Invoice
from ..models_work_order import WorkOrder
from ..schemas import AutomationResult
from ..services.status_automation import run_status_automation as run_sweeps

router = APIRouter(prefix="/status", tags=["status"])


class StatusSummary(BaseModel):
    estimates: dict[str, int]
    work_orders: dict[str, int]
    invoices: dict[str, int]


def _count_by_status(db: Session, model) -> dict[str, int]:
    rows = db.query(model.status, func.count(model.id).label("count")).group_by(model.status).all()
    return {status: count for status, count in rows}


@router.get("/analytics", response_model=StatusSummary)
async def get_status_analytics(
    current_actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)
):
    """Get count of estimates, work orders and invoices by status"""
    return StatusSummary(
        estimates=_count_by_status(db, Estimate),
        work_orders=_count_by_status(db, WorkOrder),
        invoices=_count_by_status(db, Invoice),
    )


@router.post("/automation/run", response_model=AutomationResult)
async def run_status_automation(
    current_actor: Actor = Depends(get_current_actor), db: Session = Depends(get_db)
):
    """
    Manually trigger status automation
    (In production, this should be run via scheduled job/cron)
    """
    result = run_sweeps(db)
    return AutomationResult(**result)
