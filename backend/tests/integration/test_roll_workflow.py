"""
Integration tests for the roll workflow service against a real session.

Walks rolls through film → printing → cutting → done and checks the
side effects on the production order and the event timeline.
"""
from decimal import Decimal

import pytest

from app.exceptions import (
    ConcurrencyError,
    InvalidInputError,
    InvalidTransitionError,
    MachineInactiveError,
    NotFoundError,
    RemainingQuantityExceededError,
)
from app.models import ProductionEvent, ProductionOrder, Roll
from app.services import roll_workflow
from app.services.notification_service import ProductionNotifier
from tests.factories import (
    create_test_customer_product,
    create_test_machine,
    create_test_order,
    create_test_production_order,
    create_test_roll,
    create_test_user,
)


@pytest.fixture
def floor(db_session):
    """Machines, an operator and a 1000 kg production order (final 1030 kg)"""
    order = create_test_order(db_session, status="for_production")
    product = create_test_customer_product(db_session, customer=order.customer, punching="NON")
    po = create_test_production_order(
        db_session, order=order, customer_product=product,
        quantity_kg=1000, final_quantity_kg=1030,
    )
    floor = {
        "po": po,
        "extruder": create_test_machine(db_session, "extruder"),
        "printer": create_test_machine(db_session, "printer"),
        "cutter": create_test_machine(db_session, "cutter"),
        "user": create_test_user(db_session),
    }
    db_session.commit()
    return floor


def _create(db, floor, weight, **kwargs):
    return roll_workflow.create_roll(
        db,
        production_order_id=floor["po"].id,
        weight_kg=weight,
        film_machine_id=kwargs.pop("machine_id", floor["extruder"].id),
        created_by=floor["user"].id,
        **kwargs
    )


class TestCreateRoll:

    @pytest.mark.integration
    def test_first_roll_starts_production_order(self, db_session, floor):
        notifier = ProductionNotifier()
        roll = _create(db_session, floor, "400", notifier=notifier)

        po = db_session.get(ProductionOrder, floor["po"].id)
        assert roll.stage == "film"
        assert roll.roll_seq == 1
        assert roll.roll_number == f"{po.production_order_number}-R001"
        assert po.status == "in_progress"
        assert Decimal(po.produced_quantity_kg) == Decimal("400")

        event_types = [e.event_type for e in db_session.query(ProductionEvent).all()]
        assert "production_order_status_changed" in event_types
        assert "roll_created" in event_types
        assert notifier.events_recorded == 2

    @pytest.mark.integration
    def test_sequence_numbers_increase(self, db_session, floor):
        first = _create(db_session, floor, "100")
        second = _create(db_session, floor, "100")
        assert (first.roll_seq, second.roll_seq) == (1, 2)
        assert second.roll_number.endswith("-R002")

    @pytest.mark.integration
    def test_overrun_rejected_then_last_roll_accepted(self, db_session, floor):
        _create(db_session, floor, "1000")
        _create(db_session, floor, "20")

        with pytest.raises(RemainingQuantityExceededError) as exc_info:
            _create(db_session, floor, "15")
        assert exc_info.value.remaining == Decimal("10")

        roll = _create(db_session, floor, "15", is_last_roll=True)
        assert roll.is_last_roll is True
        assert db_session.query(Roll).count() == 3

    @pytest.mark.integration
    def test_no_rolls_after_last_roll(self, db_session, floor):
        _create(db_session, floor, "1030")
        last = _create(db_session, floor, "900", is_last_roll=True)

        with pytest.raises(InvalidTransitionError) as exc_info:
            _create(db_session, floor, "900", is_last_roll=True)
        assert exc_info.value.details["last_roll_number"] == last.roll_number

        with pytest.raises(InvalidTransitionError):
            _create(db_session, floor, "1")
        assert db_session.query(Roll).count() == 2

    @pytest.mark.integration
    def test_closed_production_order_rejects_rolls(self, db_session, floor):
        floor["po"].status = "completed"
        db_session.commit()

        with pytest.raises(InvalidTransitionError):
            _create(db_session, floor, "10")

    @pytest.mark.integration
    def test_machine_checks(self, db_session, floor):
        down = create_test_machine(db_session, "extruder", status="down")
        db_session.commit()

        with pytest.raises(MachineInactiveError):
            _create(db_session, floor, "10", machine_id=down.id)
        with pytest.raises(InvalidInputError):
            _create(db_session, floor, "10", machine_id=floor["printer"].id)
        with pytest.raises(NotFoundError):
            _create(db_session, floor, "10", machine_id="M999")

    @pytest.mark.integration
    def test_unknown_production_order(self, db_session, floor):
        with pytest.raises(NotFoundError):
            roll_workflow.create_roll(
                db_session, production_order_id=9999, weight_kg="10",
                film_machine_id=floor["extruder"].id, created_by=floor["user"].id,
            )

    @pytest.mark.integration
    def test_weight_limit(self, db_session, floor):
        with pytest.raises(InvalidInputError):
            _create(db_session, floor, "2000.001", is_last_roll=True)


class TestStageFlow:

    @pytest.mark.integration
    def test_full_lifecycle(self, db_session, floor):
        user_id = floor["user"].id
        roll = _create(db_session, floor, "100")

        roll = roll_workflow.start_printing(
            db_session, roll.id, printing_machine_id=floor["printer"].id, printed_by=user_id
        )
        assert roll.stage == "printing"
        assert roll.printed_by == user_id
        assert roll.printed_at is not None

        roll = roll_workflow.start_cutting(
            db_session, roll.id, cutting_machine_id=floor["cutter"].id, cut_by=user_id
        )
        assert roll.stage == "cutting"
        assert roll.cut_started_at is not None

        roll_workflow.record_cut(db_session, roll_id=roll.id, cut_weight_kg="60", pieces_count=1200)
        roll_workflow.record_cut(db_session, roll_id=roll.id, cut_weight_kg="35", performed_by=user_id)

        roll = roll_workflow.complete_roll(db_session, roll.id, user_id=user_id)
        assert roll.stage == "done"
        assert Decimal(roll.cut_weight_total_kg) == Decimal("95")
        assert Decimal(roll.waste_kg) == Decimal("5")
        assert roll.cut_completed_at is not None
        assert roll.completed_at is not None

        po = db_session.get(ProductionOrder, floor["po"].id)
        assert Decimal(po.net_quantity_kg) == Decimal("95")
        assert Decimal(po.waste_quantity_kg) == Decimal("5")
        assert Decimal(po.printed_quantity_kg) == Decimal("100")

    @pytest.mark.integration
    def test_unprinted_roll_goes_straight_to_cutting(self, db_session, floor):
        product = create_test_customer_product(
            db_session, customer=floor["po"].order.customer, is_printed=False
        )
        floor["po"].customer_product_id = product.id
        db_session.commit()

        roll = _create(db_session, floor, "50")
        roll = roll_workflow.start_cutting(
            db_session, roll.id, cutting_machine_id=floor["cutter"].id, cut_by=floor["user"].id
        )
        assert roll.stage == "cutting"
        assert roll.printed_at is None

    @pytest.mark.integration
    def test_printed_roll_cannot_skip_printing(self, db_session, floor):
        roll = _create(db_session, floor, "50")
        with pytest.raises(InvalidTransitionError):
            roll_workflow.start_cutting(
                db_session, roll.id, cutting_machine_id=floor["cutter"].id, cut_by=floor["user"].id
            )

    @pytest.mark.integration
    def test_complete_blocked_by_uncut_residual(self, db_session, floor):
        roll = create_test_roll(
            db_session, floor["po"], weight_kg=100, stage="cutting", cut_weight_total_kg=80
        )
        db_session.commit()

        with pytest.raises(InvalidTransitionError) as exc_info:
            roll_workflow.complete_roll(db_session, roll.id)
        assert exc_info.value.details["residual_kg"] == 20.0
        assert exc_info.value.details["allowed_waste_kg"] == 10.0

    @pytest.mark.integration
    def test_cut_requires_cutting_stage(self, db_session, floor):
        roll = create_test_roll(db_session, floor["po"], weight_kg=100, stage="printing")
        db_session.commit()

        with pytest.raises(InvalidTransitionError):
            roll_workflow.record_cut(db_session, roll_id=roll.id, cut_weight_kg="10")

    @pytest.mark.integration
    def test_cut_cannot_exceed_roll(self, db_session, floor):
        roll = create_test_roll(
            db_session, floor["po"], weight_kg=100, stage="cutting", cut_weight_total_kg=95
        )
        db_session.commit()

        with pytest.raises(RemainingQuantityExceededError) as exc_info:
            roll_workflow.record_cut(db_session, roll_id=roll.id, cut_weight_kg="6")
        assert exc_info.value.remaining == Decimal("5")

    @pytest.mark.integration
    def test_printer_in_maintenance(self, db_session, floor):
        roll = _create(db_session, floor, "50")
        floor["printer"].status = "maintenance"
        db_session.commit()

        with pytest.raises(MachineInactiveError):
            roll_workflow.start_printing(
                db_session, roll.id, printing_machine_id=floor["printer"].id, printed_by=floor["user"].id
            )
        assert db_session.get(Roll, roll.id).stage == "film"

    @pytest.mark.integration
    def test_cutter_down_blocks_completion(self, db_session, floor):
        user_id = floor["user"].id
        roll = _create(db_session, floor, "100")
        roll_workflow.start_printing(
            db_session, roll.id, printing_machine_id=floor["printer"].id, printed_by=user_id
        )
        roll_workflow.start_cutting(
            db_session, roll.id, cutting_machine_id=floor["cutter"].id, cut_by=user_id
        )
        roll_workflow.record_cut(db_session, roll_id=roll.id, cut_weight_kg="100")
        floor["cutter"].status = "down"
        db_session.commit()

        with pytest.raises(MachineInactiveError):
            roll_workflow.complete_roll(db_session, roll.id, user_id=user_id)

        roll = db_session.get(Roll, roll.id)
        assert roll.stage == "cutting"
        assert roll.completed_at is None


class TestCompareAndSet:

    @pytest.mark.integration
    def test_stale_stage_raises_concurrency_error(self, db_session, floor):
        """A request that read 'film' loses when the roll already moved on"""
        roll = create_test_roll(db_session, floor["po"], weight_kg=100, stage="printing")
        db_session.commit()

        with pytest.raises(ConcurrencyError):
            roll_workflow._advance_stage(db_session, roll, "film", "printing")

        assert db_session.get(Roll, roll.id).stage == "printing"

    @pytest.mark.integration
    def test_matching_stage_advances(self, db_session, floor):
        roll = create_test_roll(db_session, floor["po"], weight_kg=100, stage="film")
        db_session.commit()

        roll_workflow._advance_stage(db_session, roll, "film", "printing")
        assert roll.stage == "printing"
