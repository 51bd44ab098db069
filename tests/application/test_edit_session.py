"""Integration tests for the edit session.

Drives the session the way the CLI does, through specs and drafts.
"""

from datetime import date
from decimal import Decimal

import pytest

from order_edit.application.dto import DeliverySlotEdit, ItemEditSpec, NewItemSpec
from order_edit.application.edit_session import (
    EditSession,
    begin_edit_session,
    build_payload,
    reset_session,
    stage_add_item,
    stage_field_edit,
    stage_item_edit,
    stage_remove_item,
)
from order_edit.domain.exceptions import SaveInProgressError, ValidationError
from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.order import Order, OrderItem

D = Decimal


def _order() -> Order:
    """Order #1001: item 55 fully delivered, item 56 scheduled."""
    return Order(
        id=1001,
        po_number="PO-77",
        contact_person_name="John",
        items=(
            OrderItem(
                id=55,
                product_id=12,
                quantity=D("4"),
                deliveries=(
                    DeliverySlot(id=1, quantity=D("4"), date=date(2025, 2, 1), status=DeliveryStatus.DELIVERED),
                ),
                product_name="Washed Sand",
            ),
            OrderItem(
                id=56,
                product_id=13,
                quantity=D("6"),
                deliveries=(DeliverySlot(id=2, quantity=D("6"), date=date(2025, 3, 1), time="08:00:00"),),
                product_name="Road Base",
            ),
        ),
    )


def _session(is_admin: bool = False) -> EditSession:
    return begin_edit_session(_order(), is_admin=is_admin)


class TestItemEdits:

    def test_increase_delivered_item(self):
        session = _session()
        result = stage_item_edit(
            session, 55, ItemEditSpec("10", [DeliverySlotEdit("6", "2025-03-01")])
        )
        assert result.staged
        assert result.errors == []
        assert build_payload(session) == {
            "items_update": [
                {
                    "order_item_id": 55,
                    "quantity": 10,
                    "deliveries": [
                        {"id": None, "quantity": 6, "delivery_date": "2025-03-01", "delivery_time": None},
                    ],
                },
            ],
        }

    def test_under_allocation_is_not_staged(self):
        session = _session()
        result = stage_item_edit(
            session, 55, ItemEditSpec("10", [DeliverySlotEdit("5", "2025-03-01")])
        )
        assert not result.staged
        assert result.allocation.remaining == D("1")
        assert any("1 remaining to allocate" in e for e in result.errors)
        assert build_payload(session) is None

    def test_quantity_only_keeps_slots(self):
        session = _session()
        result = stage_item_edit(session, 56, ItemEditSpec("7"))
        assert not result.staged
        assert result.errors[0].startswith("1 remaining to allocate")

    def test_quantity_beyond_decimal_precision(self):
        session = _session()
        huge = "1" + "0" * 29
        result = stage_item_edit(
            session, 56, ItemEditSpec(huge, [DeliverySlotEdit(huge, "2025-03-01", id=2)])
        )
        assert result.staged, result.errors
        update = build_payload(session)["items_update"][0]
        assert update["quantity"] == 10 ** 29
        assert update["deliveries"][0]["quantity"] == 10 ** 29

    def test_huge_quantity_left_unallocated(self):
        session = _session()
        result = stage_item_edit(session, 56, ItemEditSpec("1e30"))
        assert not result.staged
        assert "remaining to allocate" in result.errors[0]

    def test_clamped_quantity_reported_as_notice(self):
        session = _session()
        result = stage_item_edit(session, 55, ItemEditSpec("1", []))
        assert result.notices[0] == (
            "Quantity cannot be less than delivered amount (4). Minimum enforced."
        )
        assert not result.staged
        assert result.notices[-1] == "No changes made"

    def test_malformed_date_is_a_result_error(self):
        session = _session()
        result = stage_item_edit(
            session, 56, ItemEditSpec("6", [DeliverySlotEdit("6", "2025-13-40", id=2)])
        )
        assert not result.staged
        assert result.errors == ["Invalid delivery date: '2025-13-40'"]

    def test_editing_back_to_original_drops_update(self):
        session = _session()
        stage_item_edit(session, 56, ItemEditSpec("6", [DeliverySlotEdit("6", "2025-03-02", id=2)]))
        assert session.has_pending_changes()

        result = stage_item_edit(
            session, 56, ItemEditSpec("6", [DeliverySlotEdit("6", "2025-03-01", time="08:00", id=2)])
        )
        assert not result.staged
        assert result.notices == ["No changes made"]
        assert not session.has_pending_changes()

    def test_reopened_draft_shows_staged_update(self):
        session = _session()
        stage_item_edit(session, 56, ItemEditSpec("8", [
            DeliverySlotEdit("6", "2025-03-01", id=2),
            DeliverySlotEdit("2", "2025-03-08"),
        ]))
        draft = session.begin_item_edit(56)
        assert draft.quantity == D("8")
        assert len(draft.slots.editable_slots) == 2

    def test_item_marked_for_removal_cannot_be_edited(self):
        session = _session()
        session.stage_remove_item(56)
        with pytest.raises(ValidationError, match="marked for removal"):
            session.begin_item_edit(56)


class TestRemovals:

    def test_remove_scheduled_item(self):
        session = _session()
        assert stage_remove_item(session, 56) is True
        assert build_payload(session) == {"items_remove": [56]}

    def test_remove_delivered_item_refused(self):
        session = _session()
        assert stage_remove_item(session, 55) is False
        assert session.ledger.items_to_remove == frozenset()
        assert build_payload(session) is None

    def test_undo_removal(self):
        session = _session()
        session.stage_remove_item(56)
        assert session.undo_removal(56) is True
        assert not session.has_pending_changes()


class TestAdditions:

    def test_add_new_product(self):
        session = _session()
        result = stage_add_item(
            session,
            NewItemSpec(20, "3", [DeliverySlotEdit("3", "2025-03-05", time="7:30")], "Blue Metal"),
        )
        assert result.staged
        assert result.notices == []
        assert build_payload(session)["items_add"] == [
            {
                "product_id": 20,
                "quantity": 3,
                "deliveries": [
                    {"id": None, "quantity": 3, "delivery_date": "2025-03-05", "delivery_time": "07:30"},
                ],
            },
        ]

    def test_duplicate_product_staged_with_notice(self):
        session = _session()
        result = stage_add_item(
            session, NewItemSpec(12, "1", [DeliverySlotEdit("1", "2025-03-05")], "Washed Sand")
        )
        assert result.staged
        assert result.notices == [
            "Washed Sand is already on this order; it will be added as a separate line."
        ]

    def test_new_item_without_split_not_staged(self):
        session = _session()
        result = stage_add_item(session, NewItemSpec(20, "3"))
        assert not result.staged
        assert "At least one delivery slot is required." in result.errors

    def test_new_item_cannot_reuse_slot_ids(self):
        session = _session()
        result = stage_add_item(session, NewItemSpec(20, "1", [DeliverySlotEdit("1", "2025-03-05", id=2)]))
        assert not result.staged
        assert result.errors

    def test_unstage_new_item(self):
        session = _session()
        stage_add_item(session, NewItemSpec(20, "1", [DeliverySlotEdit("1", "2025-03-05")]))
        assert session.unstage_new_item(0).product_id == 20
        assert not session.has_pending_changes()


class TestFieldsAndState:

    def test_field_edit_round_trip_leaves_nothing(self):
        session = _session()
        assert stage_field_edit(session, "contact_person_name", "Jane") is True
        assert stage_field_edit(session, "contact_person_name", "John") is False
        assert build_payload(session) is None

    def test_reset_is_idempotent(self):
        session = _session()
        stage_field_edit(session, "site_instructions", "Gate 4")
        stage_remove_item(session, 56)
        reset_session(session)
        reset_session(session)
        assert build_payload(session) is None
        assert session.pending_change_count() == 0

    def test_summary(self):
        session = _session()
        stage_field_edit(session, "contact_person_number", "0411 111 111")
        stage_remove_item(session, 56)
        assert session.summary() == ["Contact information updated", "1 item(s) to remove"]

    def test_items_override_order_items(self):
        order = _order()
        session = begin_edit_session(order, items=order.items[1:])
        assert [i.id for i in session.order.items] == [56]

    def test_admin_payload_carries_costs(self):
        session = _session(is_admin=True)
        stage_item_edit(session, 56, ItemEditSpec("6", [
            DeliverySlotEdit("6", "2025-03-01", id=2, truck_type="semi", delivery_cost="85"),
        ]))
        delivery = build_payload(session)["items_update"][0]["deliveries"][0]
        assert delivery["truck_type"] == "semi"
        assert delivery["delivery_cost"] == 85

    def test_client_payload_never_carries_costs(self):
        session = _session()
        stage_item_edit(session, 56, ItemEditSpec("6", [
            DeliverySlotEdit("6", "2025-03-01", id=2, delivery_cost="85"),
        ]))
        assert build_payload(session) is None


class TestSaveGuard:

    def test_no_staging_while_saving(self):
        session = _session()
        with session.saving():
            assert session.is_saving
            with pytest.raises(SaveInProgressError):
                session.stage_field_edit("contact_person_name", "Jane")
            with pytest.raises(SaveInProgressError):
                session.stage_remove_item(56)
        assert not session.is_saving

    def test_nested_save_rejected(self):
        session = _session()
        with session.saving():
            with pytest.raises(SaveInProgressError):
                with session.saving():
                    pass
