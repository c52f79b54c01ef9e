"""Tests for StockItem — balance changes and their movement records."""

import pytest
from orderdesk.errors import InsufficientStockError
from orderdesk.inventory.events import StockMovementRecorded
from orderdesk.inventory.movement import ItemKind, MovementAction, MovementSource
from orderdesk.inventory.stock_item import StockItem


def _make_item(quantity=10):
    return StockItem.register("APPLE-RAW", ItemKind.MATERIAL, name="Raw apple", initial_quantity=quantity)


class TestRegistration:
    def test_opening_balance(self):
        item = _make_item(100)
        assert item.initial_quantity == 100
        assert item.current_quantity == 100
        assert item.item_kind == ItemKind.MATERIAL.value


class TestRecordMovement:
    def test_deduction_records_before_and_after(self):
        item = _make_item(10)
        movement = item.record_movement(-4, MovementAction.OUT, MovementSource.ORDER, related_order_id="ord-1")

        assert item.current_quantity == 6
        assert movement.delta == -4
        assert movement.before_balance == 10
        assert movement.after_balance == 6
        assert movement.action_kind == "out"
        assert movement.source == "order"
        assert movement.item_name == "Raw apple"

    def test_credit(self):
        item = _make_item(0)
        movement = item.record_movement(5, MovementAction.IN, MovementSource.MANUAL, actor_id="admin-1")

        assert item.current_quantity == 5
        assert movement.after_balance == 5
        assert movement.actor_id == "admin-1"

    def test_deduction_to_exactly_zero_is_allowed(self):
        item = _make_item(4)
        item.record_movement(-4, MovementAction.OUT, MovementSource.ORDER)
        assert item.current_quantity == 0

    def test_deduction_below_zero_is_rejected(self):
        item = _make_item(3)
        with pytest.raises(InsufficientStockError) as exc:
            item.record_movement(-4, MovementAction.OUT, MovementSource.ORDER)

        assert exc.value.item_code == "APPLE-RAW"
        assert exc.value.available == 3
        assert exc.value.requested == 4
        assert item.current_quantity == 3

    def test_allow_negative_adjustment(self):
        item = _make_item(1)
        movement = item.record_movement(
            -3, MovementAction.ADJUST, MovementSource.MANUAL, reason="Count correction", allow_negative=True
        )
        assert item.current_quantity == -2
        assert movement.after_balance == -2

    def test_movement_raises_event(self):
        item = _make_item(10)
        movement = item.record_movement(-2, MovementAction.OUT, MovementSource.ORDER)

        event = next(e for e in item._events if isinstance(e, StockMovementRecorded))
        assert event.movement_id == str(movement.id)
        assert event.delta == -2
        assert event.after_balance == 8
