"""Lookups for entities owned by other services (customers, vehicles)"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..errors import BadRequestError, NotFoundError
from ..models import Customer, Vehicle

logger = logging.getLogger(__name__)


def get_customer(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def get_vehicle(db: Session, vehicle_id: int, customer_id: Optional[int] = None) -> Vehicle:
    """Load a vehicle, optionally checking that it belongs to the given customer"""
    vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
    if not vehicle:
        raise NotFoundError("Vehicle not found")
    if customer_id is not None and vehicle.customer_id != customer_id:
        logger.warning(f"⚠️ Vehicle {vehicle_id} does not belong to customer {customer_id}")
        raise BadRequestError("Vehicle does not belong to this customer")
    return vehicle
