"""Line item editing shared by the estimate and invoice services"""

from typing import Iterable, TypeVar

from ..errors import NotFoundError
from ..models import LineItemColumns
from ..schemas import LineItemCreate, LineItemUpdate
from ..utils.sanitization import sanitize_string

ItemT = TypeVar("ItemT", bound=LineItemColumns)


def build_line_item(model_cls: type[ItemT], data: LineItemCreate) -> ItemT:
    item = model_cls(
        description=sanitize_string(data.description),
        kind=data.kind.value,
        quantity=data.quantity,
        unit_price=data.unit_price,
        discount=data.discount,
    )
    item.recalculate_total()
    return item


def apply_line_item_update(item: LineItemColumns, data: LineItemUpdate) -> None:
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    if "description" in updates:
        item.description = sanitize_string(updates["description"])
    if "kind" in updates:
        item.kind = updates["kind"].value
    for field in ("quantity", "unit_price", "discount"):
        if field in updates:
            setattr(item, field, updates[field])
    item.recalculate_total()


def find_line_item(items: Iterable[ItemT], item_id: int) -> ItemT:
    for item in items:
        if item.id == item_id:
            return item
    raise NotFoundError("Line item not found")
