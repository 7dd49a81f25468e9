"""Invoice router - FastAPI endpoints for the invoice ledger"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...config import ShopSettings, get_shop_settings
from ...database import get_db
from ...models_invoice import InvoiceStatus
from ...schemas import LineItemCreate, LineItemUpdate, MessageResponse
from ...shared.pagination import PageParams, get_page_params
from .schemas import InvoiceCreate, InvoiceResponse, InvoiceUpdate
from .service import InvoiceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def get_invoice_service(
    db: Session = Depends(get_db),
    settings: ShopSettings = Depends(get_shop_settings),
) -> InvoiceService:
    """Dependency injection for InvoiceService"""
    return InvoiceService(db, settings)


@router.get("", response_model=list[InvoiceResponse])
async def list_invoices(
    customer_id: Optional[int] = Query(None),
    vehicle_id: Optional[int] = Query(None),
    status: Optional[InvoiceStatus] = Query(None),
    page: PageParams = Depends(get_page_params),
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    """List invoices, newest first"""
    return service.list_invoices(page, customer_id, vehicle_id, status.value if status else None)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.get_invoice(invoice_id)


@router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoiceCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Create a draft invoice directly"""
    return service.create_invoice(data, current_actor)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.update_invoice(invoice_id, data)


@router.post("/{invoice_id}/items", response_model=InvoiceResponse)
async def add_line_item(
    invoice_id: int,
    data: LineItemCreate,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.add_line_item(invoice_id, data)


@router.put("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def update_line_item(
    invoice_id: int,
    item_id: int,
    data: LineItemUpdate,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.update_line_item(invoice_id, item_id, data)


@router.delete("/{invoice_id}/items/{item_id}", response_model=InvoiceResponse)
async def remove_line_item(
    invoice_id: int,
    item_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.remove_line_item(invoice_id, item_id)


@router.post("/{invoice_id}/send", response_model=InvoiceResponse)
async def send_invoice(
    invoice_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.send_invoice(invoice_id)


@router.post("/{invoice_id}/cancel", response_model=InvoiceResponse)
async def cancel_invoice(
    invoice_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.cancel_invoice(invoice_id)


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: int,
    current_actor: Actor = Depends(get_current_actor),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Delete a draft invoice"""
    return service.delete_invoice(invoice_id)
