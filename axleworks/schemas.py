from typing import Optional

from pydantic import BaseModel, Field

from .models import LineItemKind


class MessageResponse(BaseModel):
    message: str


# Line item schemas (shared by estimates and invoices)
class LineItemCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    kind: LineItemKind
    quantity: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0)


class LineItemUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=200)
    kind: Optional[LineItemKind] = None
    quantity: Optional[float] = Field(None, ge=0)
    unit_price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0)


class LineItemResponse(BaseModel):
    id: int
    description: str
    kind: str
    quantity: float
    unit_price: float
    discount: float
    total: float

    class Config:
        from_attributes = True


class AutomationResult(BaseModel):
    invoices_to_overdue: int
    estimates_to_expired: int
    total_updated: int
