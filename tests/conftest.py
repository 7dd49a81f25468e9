"""
Pytest fixtures for the shop API test suite.

Provides:
- In-memory SQLite sessions (one fresh schema per test)
- Explicit ShopSettings so rates never come from the environment
- Customer / vehicle / document factories
- A FastAPI TestClient wired to the test session
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import all models so Base.metadata knows every table
from axleworks import (  # noqa: F401
    models,
    models_appointment,
    models_estimate,
    models_invoice,
    models_work_order,
)
from axleworks.auth import Actor
from axleworks.config import ShopSettings, get_shop_settings
from axleworks.database import Base, get_db
from axleworks.domain.estimates.schemas import EstimateConvert, EstimateCreate
from axleworks.domain.estimates.service import EstimateService
from axleworks.domain.invoices.schemas import InvoiceCreate
from axleworks.domain.invoices.service import InvoiceService
from axleworks.domain.payments.service import PaymentService
from axleworks.domain.scheduling.service import AppointmentService
from axleworks.domain.work_orders.schemas import WorkOrderCreate
from axleworks.domain.work_orders.service import WorkOrderService
from axleworks.main import app
from axleworks.models import Customer, LineItemKind, Vehicle
from tests.helpers import line

TEST_ACTOR_ID = 7


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def settings():
    return ShopSettings()


@pytest.fixture
def actor():
    return Actor(id=TEST_ACTOR_ID)


# =============================================================================
# Collaborator factories
# =============================================================================


@pytest.fixture
def make_customer(db):
    def _make(first_name="Dana", last_name="Reyes", phone="555-0100", **kwargs):
        customer = Customer(first_name=first_name, last_name=last_name, phone=phone, **kwargs)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    return _make


@pytest.fixture
def make_vehicle(db):
    def _make(customer, make="Toyota", model="Corolla", year=2018, **kwargs):
        vehicle = Vehicle(customer_id=customer.id, make=make, model=model, year=year, **kwargs)
        db.add(vehicle)
        db.commit()
        db.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def customer(make_customer):
    return make_customer()


@pytest.fixture
def vehicle(make_vehicle, customer):
    return make_vehicle(customer)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def estimate_service(db, settings):
    return EstimateService(db, settings)


@pytest.fixture
def work_order_service(db, settings):
    return WorkOrderService(db, settings)


@pytest.fixture
def invoice_service(db, settings):
    return InvoiceService(db, settings)


@pytest.fixture
def payment_service(db):
    return PaymentService(db)


@pytest.fixture
def appointment_service(db, settings):
    return AppointmentService(db, settings)


# =============================================================================
# Document factories
# =============================================================================


@pytest.fixture
def brake_job_lines():
    """Pads, an hour and a half of labour and a free shop line: subtotal 210.00"""
    return [
        line("Brake pads", LineItemKind.PART, 2, 45),
        line("Brake labour", LineItemKind.LABOUR, 1.5, 80),
        line("Shop supplies", LineItemKind.MISC, 1, 0),
    ]


@pytest.fixture
def make_estimate(estimate_service, customer, vehicle, actor):
    def _make(line_items=None, **kwargs):
        data = EstimateCreate(
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            line_items=line_items or [],
            **kwargs,
        )
        return estimate_service.create_estimate(data, actor)

    return _make


@pytest.fixture
def approved_estimate(make_estimate, estimate_service):
    estimate = make_estimate(
        line_items=[
            line("Front brake pads", LineItemKind.PART, 2, 50, discount=10),
            line("Replace pads", LineItemKind.LABOUR, 1.5, 80),
            line("Brake inspection", LineItemKind.SERVICE, 0.5, 80),
            line("Disposal fee", LineItemKind.MISC, 1, 15),
        ]
    )
    estimate_service.send_estimate(estimate.id)
    return estimate_service.approve_estimate(estimate.id)


@pytest.fixture
def make_work_order(work_order_service, customer, vehicle, actor):
    def _make(**kwargs):
        kwargs.setdefault("mileage_in", 84000)
        data = WorkOrderCreate(customer_id=customer.id, vehicle_id=vehicle.id, **kwargs)
        return work_order_service.create_work_order(data, actor)

    return _make


@pytest.fixture
def make_invoice(invoice_service, customer, vehicle, actor):
    def _make(line_items=None, **kwargs):
        data = InvoiceCreate(
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            line_items=line_items or [],
            **kwargs,
        )
        return invoice_service.create_invoice(data, actor)

    return _make


@pytest.fixture
def convert_seed():
    return EstimateConvert(mileage_in=84000)


@pytest.fixture
def next_monday():
    today = date.today()
    return today + timedelta(days=7 - today.weekday())


# =============================================================================
# HTTP client
# =============================================================================


@pytest.fixture
def client(db, settings):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_shop_settings] = lambda: settings

    client = TestClient(app, headers={"X-Actor-Id": str(TEST_ACTOR_ID)})
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(client):
    return TestClient(app)
