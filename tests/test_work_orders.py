"""
Tests for the work order state machine, job/part rollup and invoice generation.
"""

from datetime import datetime

import pytest

from axleworks.config import ShopSettings
from axleworks.domain.scheduling.schemas import AppointmentCreate
from axleworks.domain.work_orders.schemas import (
    JobCreate,
    JobUpdate,
    PartCreate,
    PartUpdate,
    WorkOrderCreate,
    WorkOrderUpdate,
)
from axleworks.domain.work_orders.service import WorkOrderService
from axleworks.errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from axleworks.models_invoice import Invoice, InvoiceStatus
from axleworks.models_work_order import JobStatus, WorkOrderPriority, WorkOrderStatus


@pytest.fixture
def work_order(make_work_order):
    """Two estimated hours of labour and two parts at 30.00: total 220.00"""
    return make_work_order(
        jobs=[JobCreate(description="Replace front struts", estimated_hours=2)],
        parts=[PartCreate(part_number="ST-220", description="Strut", quantity=2, unit_cost=18, unit_price=30)],
    )


def walk_to(service, work_order_id, actor, *statuses):
    for status in statuses:
        work_order = service.update_status(work_order_id, status, actor)
    return work_order


# =============================================================================
# Creation and rollup
# =============================================================================


class TestCreateWorkOrder:
    def test_rollup_on_create(self, work_order, settings):
        assert work_order.status == WorkOrderStatus.CREATED.value
        assert work_order.labour_rate == settings.labour_rate
        assert work_order.parts_total == pytest.approx(60)
        assert work_order.labour_total == pytest.approx(160)
        assert work_order.total == pytest.approx(220)
        assert work_order.work_order_number.startswith("WO-")

    def test_labour_rate_is_snapshotted(self, db, customer, vehicle, actor):
        service = WorkOrderService(db, ShopSettings(labour_rate=95))

        work_order = service.create_work_order(
            WorkOrderCreate(
                customer_id=customer.id,
                vehicle_id=vehicle.id,
                mileage_in=1000,
                jobs=[JobCreate(description="Diagnose", estimated_hours=1)],
            ),
            actor,
        )

        assert work_order.labour_rate == 95
        assert work_order.labour_total == pytest.approx(95)

    def test_unknown_appointment(self, make_work_order):
        with pytest.raises(NotFoundError):
            make_work_order(appointment_id=999)

    def test_appointment_is_linked(
        self, db, make_work_order, appointment_service, customer, vehicle, actor, next_monday
    ):
        appointment = appointment_service.create_appointment(
            AppointmentCreate(
                customer_id=customer.id,
                vehicle_id=vehicle.id,
                service_type="repair",
                scheduled_date=next_monday,
                scheduled_time="08:30",
            ),
            actor,
        )

        work_order = make_work_order(appointment_id=appointment.id)

        db.refresh(appointment)
        assert appointment.work_order_id == work_order.id


class TestJobsAndParts:
    def test_actual_hours_replace_estimate(self, work_order, work_order_service):
        job = work_order.jobs[0]

        work_order = work_order_service.update_job(work_order.id, job.id, JobUpdate(actual_hours=3))

        assert work_order.labour_total == pytest.approx(240)
        assert work_order.total == pytest.approx(300)

    def test_job_status_stamps(self, work_order, work_order_service):
        job_id = work_order.jobs[0].id

        work_order = work_order_service.update_job(
            work_order.id, job_id, JobUpdate(status=JobStatus.IN_PROGRESS)
        )
        assert work_order.jobs[0].started_at is not None

        work_order = work_order_service.update_job(
            work_order.id, job_id, JobUpdate(status=JobStatus.COMPLETED)
        )
        assert work_order.jobs[0].status == JobStatus.COMPLETED.value
        assert work_order.jobs[0].completed_at is not None

    def test_add_and_remove_job(self, work_order, work_order_service):
        work_order = work_order_service.add_job(
            work_order.id, JobCreate(description="Alignment", estimated_hours=1)
        )
        assert work_order.labour_total == pytest.approx(240)

        work_order = work_order_service.remove_job(work_order.id, work_order.jobs[-1].id)
        assert work_order.labour_total == pytest.approx(160)

    def test_part_edits_recompute_line_total(self, work_order, work_order_service):
        part_id = work_order.parts[0].id

        work_order = work_order_service.update_part(work_order.id, part_id, PartUpdate(quantity=4))

        assert work_order.parts[0].total == pytest.approx(120)
        assert work_order.parts_total == pytest.approx(120)

    def test_add_and_remove_part(self, work_order, work_order_service):
        work_order = work_order_service.add_part(
            work_order.id,
            PartCreate(part_number="MT-1", description="Mount", quantity=1, unit_price=45),
        )
        assert work_order.parts_total == pytest.approx(105)

        work_order = work_order_service.remove_part(work_order.id, work_order.parts[0].id)
        assert work_order.parts_total == pytest.approx(45)

    def test_unknown_job(self, work_order, work_order_service):
        with pytest.raises(NotFoundError):
            work_order_service.remove_job(work_order.id, 999)

    def test_tax_amount_added_to_total(self, work_order, work_order_service):
        work_order = work_order_service.update_work_order(work_order.id, WorkOrderUpdate(tax_amount=28.6))
        assert work_order.total == pytest.approx(248.6)


# =============================================================================
# State machine
# =============================================================================


class TestWorkOrderStatus:
    def test_start_stamps_started_at(self, work_order, work_order_service, actor):
        work_order = work_order_service.update_status(work_order.id, WorkOrderStatus.IN_PROGRESS, actor)

        assert work_order.status == WorkOrderStatus.IN_PROGRESS.value
        assert work_order.started_at is not None

    def test_waiting_parts_round_trip_keeps_started_at(self, work_order, work_order_service, actor):
        work_order = work_order_service.update_status(work_order.id, WorkOrderStatus.IN_PROGRESS, actor)
        started_at = work_order.started_at

        work_order = walk_to(
            work_order_service,
            work_order.id,
            actor,
            WorkOrderStatus.WAITING_PARTS,
            WorkOrderStatus.IN_PROGRESS,
        )

        assert work_order.started_at == started_at

    def test_cannot_skip_to_completed(self, work_order, work_order_service, actor):
        with pytest.raises(InvalidTransitionError) as exc_info:
            work_order_service.update_status(work_order.id, WorkOrderStatus.COMPLETED, actor)

        assert exc_info.value.current_state == "created"
        assert exc_info.value.target_state == "completed"

    def test_completed_is_terminal(self, work_order, work_order_service, actor):
        walk_to(
            work_order_service,
            work_order.id,
            actor,
            WorkOrderStatus.IN_PROGRESS,
            WorkOrderStatus.READY,
            WorkOrderStatus.COMPLETED,
        )

        with pytest.raises(InvalidTransitionError):
            work_order_service.update_status(work_order.id, WorkOrderStatus.IN_PROGRESS, actor)

    def test_completion_generates_invoice(self, db, work_order, work_order_service, actor):
        work_order = walk_to(
            work_order_service,
            work_order.id,
            actor,
            WorkOrderStatus.IN_PROGRESS,
            WorkOrderStatus.READY,
            WorkOrderStatus.COMPLETED,
        )

        assert work_order.completed_at is not None
        assert work_order.invoice_id is not None
        invoice = db.get(Invoice, work_order.invoice_id)
        assert invoice.work_order_id == work_order.id
        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.subtotal == pytest.approx(220)
        assert invoice.tax_amount == pytest.approx(28.6)
        assert invoice.total == pytest.approx(248.6)
        assert invoice.amount_due == pytest.approx(248.6)

    def test_completion_without_auto_invoice(self, db, work_order, actor):
        service = WorkOrderService(db, ShopSettings(auto_invoice_on_completion=False))

        work_order = walk_to(
            service,
            work_order.id,
            actor,
            WorkOrderStatus.IN_PROGRESS,
            WorkOrderStatus.READY,
            WorkOrderStatus.COMPLETED,
        )

        assert work_order.invoice_id is None
        assert db.query(Invoice).count() == 0


# =============================================================================
# Invoice generation
# =============================================================================


class TestGenerateInvoice:
    def test_invoice_mirrors_work_order(self, work_order, work_order_service, actor, settings):
        invoice = work_order_service.generate_invoice(work_order.id, actor)

        labour, part = invoice.line_items
        assert labour.kind == "labour"
        assert labour.description == "Replace front struts"
        assert labour.quantity == pytest.approx(2)
        assert labour.unit_price == pytest.approx(settings.labour_rate)
        assert part.kind == "part"
        assert part.quantity == pytest.approx(2)
        assert part.unit_price == pytest.approx(30)
        assert invoice.tax_rate == settings.tax_rate
        assert invoice.total == pytest.approx(248.6)
        assert invoice.amount_paid == 0

    def test_work_order_is_linked(self, work_order, work_order_service, actor):
        invoice = work_order_service.generate_invoice(work_order.id, actor)

        work_order = work_order_service.get_work_order(work_order.id)
        assert work_order.invoice_id == invoice.id

    def test_send_flag_marks_sent(self, work_order, work_order_service, actor):
        invoice = work_order_service.generate_invoice(work_order.id, actor, send=True)

        assert invoice.status == InvoiceStatus.SENT.value
        assert invoice.sent_at is not None

    def test_second_invoice_conflicts(self, db, work_order, work_order_service, actor):
        work_order_service.generate_invoice(work_order.id, actor)

        with pytest.raises(ConflictError):
            work_order_service.generate_invoice(work_order.id, actor)

        assert db.query(Invoice).count() == 1

    def test_cancelled_work_order_cannot_be_invoiced(self, work_order, work_order_service, actor):
        work_order_service.update_status(work_order.id, WorkOrderStatus.CANCELLED, actor)

        with pytest.raises(BadRequestError):
            work_order_service.generate_invoice(work_order.id, actor)

    def test_orphan_invoice_is_relinked(self, db, work_order, work_order_service, actor):
        orphan = Invoice(
            customer_id=work_order.customer_id,
            vehicle_id=work_order.vehicle_id,
            work_order_id=work_order.id,
            due_date=datetime.utcnow(),
            created_by=actor.id,
        )
        db.add(orphan)
        db.commit()

        with pytest.raises(ConflictError):
            work_order_service.generate_invoice(work_order.id, actor)

        work_order = work_order_service.get_work_order(work_order.id)
        assert work_order.invoice_id == orphan.id

    def test_discounted_estimate_part_keeps_its_total(
        self, approved_estimate, estimate_service, work_order_service, convert_seed, actor
    ):
        work_order = estimate_service.convert_to_work_order(approved_estimate.id, convert_seed, actor)

        invoice = work_order_service.generate_invoice(work_order.id, actor)

        part = next(item for item in invoice.line_items if item.kind == "part")
        assert part.discount == pytest.approx(10)
        assert part.total == pytest.approx(90)
        assert invoice.subtotal == pytest.approx(250)

    def test_invoiced_work_order_is_locked(self, work_order, work_order_service, actor):
        work_order_service.generate_invoice(work_order.id, actor)

        with pytest.raises(BadRequestError):
            work_order_service.add_job(work_order.id, JobCreate(description="Extra", estimated_hours=1))
        with pytest.raises(BadRequestError):
            work_order_service.update_work_order(work_order.id, WorkOrderUpdate(tax_amount=5))

    def test_notes_still_editable_after_invoicing(self, work_order, work_order_service, actor):
        work_order_service.generate_invoice(work_order.id, actor)

        work_order = work_order_service.update_work_order(
            work_order.id, WorkOrderUpdate(technician_notes="Struts replaced")
        )

        assert work_order.technician_notes == "Struts replaced"


# =============================================================================
# Queues and deletion
# =============================================================================


class TestQueues:
    def test_active_board_orders_by_priority_then_age(
        self, make_work_order, work_order_service, actor
    ):
        low = make_work_order(priority=WorkOrderPriority.LOW)
        urgent = make_work_order(priority=WorkOrderPriority.URGENT)
        normal = make_work_order()
        done = make_work_order(priority=WorkOrderPriority.URGENT)
        work_order_service.update_status(done.id, WorkOrderStatus.CANCELLED, actor)

        board = work_order_service.get_active_work_orders()

        assert [wo.id for wo in board] == [urgent.id, normal.id, low.id]

    def test_technician_queue(self, make_work_order, work_order_service, actor):
        mine = make_work_order(assigned_technician_id=11)
        make_work_order(assigned_technician_id=12)
        started = make_work_order(assigned_technician_id=11, priority=WorkOrderPriority.HIGH)
        work_order_service.update_status(started.id, WorkOrderStatus.IN_PROGRESS, actor)

        queue = work_order_service.get_technician_work_orders(11)
        assert [wo.id for wo in queue] == [started.id, mine.id]

        in_progress = work_order_service.get_technician_work_orders(11, "in_progress")
        assert [wo.id for wo in in_progress] == [started.id]


class TestDeleteWorkOrder:
    def test_delete(self, work_order, work_order_service):
        work_order_service.delete_work_order(work_order.id)

        with pytest.raises(NotFoundError):
            work_order_service.get_work_order(work_order.id)

    def test_invoiced_work_order_cannot_be_deleted(self, work_order, work_order_service, actor):
        work_order_service.generate_invoice(work_order.id, actor)

        with pytest.raises(BadRequestError):
            work_order_service.delete_work_order(work_order.id)
