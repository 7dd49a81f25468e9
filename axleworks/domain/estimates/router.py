"""Estimate router - FastAPI endpoints for estimate operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...config import ShopSettings, get_shop_settings
from ...database import get_db
from ...models_estimate import EstimateStatus
from ...schemas import LineItemCreate, LineItemUpdate, MessageResponse
from ...shared.pagination import PageParams, get_page_params
from ..work_orders.schemas import WorkOrderResponse
from .schemas import (
    EstimateConvert,
    EstimateCreate,
    EstimateReject,
    EstimateResponse,
    EstimateUpdate,
)
from .service import EstimateService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/estimates", tags=["Estimates"])


def get_estimate_service(
    db: Session = Depends(get_db),
    settings: ShopSettings = Depends(get_shop_settings),
) -> EstimateService:
    """Dependency injection for EstimateService"""
    return EstimateService(db, settings)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[EstimateResponse])
async def list_estimates(
    customer_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    status: Optional[EstimateStatus] = Query(None),
    page: PageParams = Depends(get_page_params),
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    """List estimates, newest first"""
    return service.list_estimates(page, customer_id, vehicle_id, status.value if status else None)


@router.get("/{estimate_id}", response_model=EstimateResponse)
async def get_estimate(
    estimate_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.get_estimate(estimate_id)


@router.post("", response_model=EstimateResponse, status_code=201)
async def create_estimate(
    data: EstimateCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    """Create a draft estimate"""
    return service.create_estimate(data, current_actor)


@router.put("/{estimate_id}", response_model=EstimateResponse)
async def update_estimate(
    estimate_id: int,
    data: EstimateUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    """Update a draft or sent estimate"""
    return service.update_estimate(estimate_id, data)


@router.delete("/{estimate_id}", response_model=MessageResponse)
async def delete_estimate(
    estimate_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    """Delete an unconverted draft or sent estimate"""
    return service.delete_estimate(estimate_id)


# ============================================================================
# LINE ITEMS
# ============================================================================


@router.post("/{estimate_id}/items", response_model=EstimateResponse)
async def add_line_item(
    estimate_id: int,
    data: LineItemCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.add_line_item(estimate_id, data)


@router.put("/{estimate_id}/items/{item_id}", response_model=EstimateResponse)
async def update_line_item(
    estimate_id: int,
    item_id: int,
    data: LineItemUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.update_line_item(estimate_id, item_id, data)


@router.delete("/{estimate_id}/items/{item_id}", response_model=EstimateResponse)
async def remove_line_item(
    estimate_id: int,
    item_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.remove_line_item(estimate_id, item_id)


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/{estimate_id}/send", response_model=EstimateResponse)
async def send_estimate(
    estimate_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.send_estimate(estimate_id)


@router.post("/{estimate_id}/approve", response_model=EstimateResponse)
async def approve_estimate(
    estimate_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.approve_estimate(estimate_id)


@router.post("/{estimate_id}/reject", response_model=EstimateResponse)
async def reject_estimate(
    estimate_id: int,
    data: EstimateReject,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    return service.reject_estimate(estimate_id, data.reason)


@router.post("/{estimate_id}/convert", response_model=WorkOrderResponse, status_code=201)
async def convert_estimate(
    estimate_id: int,
    data: EstimateConvert,
    current_actor: Actor = Depends(get_current_actor),
    service: EstimateService = Depends(get_estimate_service),
):
    """Create the work order for an approved estimate"""
    return service.convert_to_work_order(estimate_id, data, current_actor)
