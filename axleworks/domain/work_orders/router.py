"""Work order router - FastAPI endpoints for work order operations"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...config import ShopSettings, get_shop_settings
from ...database import get_db
from ...models_work_order import WorkOrderPriority, WorkOrderStatus, WorkOrderType
from ...schemas import MessageResponse
from ...shared.pagination import PageParams, get_page_params
from ..invoices.schemas import InvoiceResponse
from .schemas import (
    GenerateInvoiceRequest,
    JobCreate,
    JobUpdate,
    PartCreate,
    PartUpdate,
    WorkOrderCreate,
    WorkOrderResponse,
    WorkOrderStatusUpdate,
    WorkOrderUpdate,
)
from .service import WorkOrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/work-orders", tags=["Work Orders"])


def get_work_order_service(
    db: Session = Depends(get_db),
    settings: ShopSettings = Depends(get_shop_settings),
) -> WorkOrderService:
    """Dependency injection for WorkOrderService"""
    return WorkOrderService(db, settings)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[WorkOrderResponse])
async def list_work_orders(
    status: Optional[WorkOrderStatus] = Query(None),
    priority: Optional[WorkOrderPriority] = Query(None),
    work_type: Optional[WorkOrderType] = Query(None),
    customer_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    created_from: Optional[datetime] = Query(None),
    created_to: Optional[datetime] = Query(None),
    page: PageParams = Depends(get_page_params),
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """List work orders with optional filters"""
    return service.list_work_orders(
        page,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        work_type=work_type.value if work_type else None,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        created_from=created_from,
        created_to=created_to,
    )


@router.get("/active", response_model=list[WorkOrderResponse])
async def get_active_work_orders(
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """Open work orders, most urgent and oldest first"""
    return service.get_active_work_orders()


@router.get("/technician/{technician_id}", response_model=list[WorkOrderResponse])
async def get_technician_work_orders(
    technician_id: int,
    status: Optional[WorkOrderStatus] = Query(None),
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """A technician's queue (open orders unless a status is given)"""
    return service.get_technician_work_orders(technician_id, status.value if status else None)


@router.get("/{work_order_id}", response_model=WorkOrderResponse)
async def get_work_order(
    work_order_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.get_work_order(work_order_id)


@router.post("", response_model=WorkOrderResponse, status_code=201)
async def create_work_order(
    data: WorkOrderCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """Open a work order without an estimate"""
    return service.create_work_order(data, current_actor)


@router.put("/{work_order_id}", response_model=WorkOrderResponse)
async def update_work_order(
    work_order_id: int,
    data: WorkOrderUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.update_work_order(work_order_id, data)


@router.patch("/{work_order_id}/status", response_model=WorkOrderResponse)
async def update_work_order_status(
    work_order_id: int,
    data: WorkOrderStatusUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """Move the work order to a new status"""
    return service.update_status(work_order_id, data.status, current_actor)


@router.delete("/{work_order_id}", response_model=MessageResponse)
async def delete_work_order(
    work_order_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """Delete a work order that has not been invoiced"""
    return service.delete_work_order(work_order_id)


# ============================================================================
# JOBS AND PARTS
# ============================================================================


@router.post("/{work_order_id}/jobs", response_model=WorkOrderResponse)
async def add_job(
    work_order_id: int,
    data: JobCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.add_job(work_order_id, data)


@router.put("/{work_order_id}/jobs/{job_id}", response_model=WorkOrderResponse)
async def update_job(
    work_order_id: int,
    job_id: int,
    data: JobUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.update_job(work_order_id, job_id, data)


@router.delete("/{work_order_id}/jobs/{job_id}", response_model=WorkOrderResponse)
async def remove_job(
    work_order_id: int,
    job_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.remove_job(work_order_id, job_id)


@router.post("/{work_order_id}/parts", response_model=WorkOrderResponse)
async def add_part(
    work_order_id: int,
    data: PartCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.add_part(work_order_id, data)


@router.put("/{work_order_id}/parts/{part_id}", response_model=WorkOrderResponse)
async def update_part(
    work_order_id: int,
    part_id: int,
    data: PartUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.update_part(work_order_id, part_id, data)


@router.delete("/{work_order_id}/parts/{part_id}", response_model=WorkOrderResponse)
async def remove_part(
    work_order_id: int,
    part_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    return service.remove_part(work_order_id, part_id)


# ============================================================================
# INVOICING
# ============================================================================


@router.post("/{work_order_id}/generate-invoice", response_model=InvoiceResponse, status_code=201)
async def generate_invoice(
    work_order_id: int,
    data: Optional[GenerateInvoiceRequest] = None,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkOrderService = Depends(get_work_order_service),
):
    """Generate the invoice for a work order"""
    data = data or GenerateInvoiceRequest()
    return service.generate_invoice(
        work_order_id, current_actor, data.send, data.notes, data.payment_terms
    )
