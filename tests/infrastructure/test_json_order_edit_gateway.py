"""Tests for the JSON stand-in of the order-edit endpoint."""

from datetime import date
from decimal import Decimal

import pytest

from order_edit.domain.exceptions import SaveFailedError
from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.order import Order, OrderItem
from order_edit.infrastructure.persistence.json_order_edit_gateway import JsonOrderEditGateway
from order_edit.infrastructure.persistence.json_order_repository import JsonOrderRepository

D = Decimal


def _setup(tmp_path) -> tuple[JsonOrderEditGateway, JsonOrderRepository]:
    repo = JsonOrderRepository(tmp_path / "orders.json")
    repo.save(Order(
        id=1001,
        contact_person_name="John",
        items=(
            OrderItem(
                id=55,
                product_id=12,
                quantity=D("4"),
                deliveries=(
                    DeliverySlot(id=1, quantity=D("4"), date=date(2025, 2, 1), status=DeliveryStatus.DELIVERED),
                ),
            ),
            OrderItem(
                id=56,
                product_id=13,
                quantity=D("6"),
                deliveries=(DeliverySlot(id=2, quantity=D("6"), date=date(2025, 3, 1)),),
            ),
        ),
    ))
    return JsonOrderEditGateway(repo), repo


class TestApply:

    def test_full_batch(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        saved = gateway.apply(1001, {
            "order": {"contact_person_name": "Jane"},
            "items_add": [{
                "product_id": 20,
                "quantity": 2,
                "deliveries": [
                    {"id": None, "quantity": 2, "delivery_date": "2025-04-01", "delivery_time": "07:30"},
                ],
            }],
            "items_update": [{
                "order_item_id": 55,
                "quantity": 10,
                "deliveries": [
                    {"id": None, "quantity": 6, "delivery_date": "2025-03-01", "delivery_time": None},
                ],
            }],
            "items_remove": [56],
        })

        assert saved.contact_person_name == "Jane"
        assert [i.id for i in saved.items] == [55, 57]
        sand = saved.find_item(55)
        assert sand.quantity == D("10")
        assert [(s.id, s.status) for s in sand.deliveries] == [
            (1, DeliveryStatus.DELIVERED),
            (3, DeliveryStatus.SCHEDULED),
        ]
        assert saved.find_item(57).deliveries[0].id == 4
        assert repo.get_by_id(1001) == saved

    def test_existing_slot_keeps_id(self, tmp_path):
        gateway, _ = _setup(tmp_path)
        saved = gateway.apply(1001, {
            "items_update": [{
                "order_item_id": 56,
                "quantity": 6,
                "deliveries": [{"id": 2, "quantity": 6, "delivery_date": "2025-03-09", "delivery_time": None}],
            }],
        })
        slot = saved.find_item(56).deliveries[0]
        assert (slot.id, slot.date) == (2, date(2025, 3, 9))


class TestRejected:

    def _assert_unchanged(self, repo: JsonOrderRepository) -> None:
        order = repo.get_by_id(1001)
        assert order.contact_person_name == "John"
        assert [i.id for i in order.items] == [55, 56]

    def test_delivered_item_removal(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        with pytest.raises(SaveFailedError) as excinfo:
            gateway.apply(1001, {"order": {"contact_person_name": "Jane"}, "items_remove": [55]})
        assert "items_remove" in excinfo.value.errors
        self._assert_unchanged(repo)

    def test_unbalanced_update(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        with pytest.raises(SaveFailedError) as excinfo:
            gateway.apply(1001, {
                "items_update": [{
                    "order_item_id": 55,
                    "quantity": 10,
                    "deliveries": [{"id": None, "quantity": 5, "delivery_date": "2025-03-01"}],
                }],
            })
        assert excinfo.value.first_error.startswith("Item #55: 1 remaining to allocate")
        self._assert_unchanged(repo)

    def test_locked_slot_in_update(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        with pytest.raises(SaveFailedError) as excinfo:
            gateway.apply(1001, {
                "items_update": [{
                    "order_item_id": 55,
                    "quantity": 4,
                    "deliveries": [{"id": 1, "quantity": 4, "delivery_date": "2025-02-01"}],
                }],
            })
        assert excinfo.value.errors["items_update"][0] == "Delivery #1 cannot be edited on item #55"
        self._assert_unchanged(repo)

    def test_non_editable_field(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        with pytest.raises(SaveFailedError) as excinfo:
            gateway.apply(1001, {"order": {"po_number": "PO-1"}})
        assert excinfo.value.errors == {"order": ["Fields cannot be edited: po_number"]}
        self._assert_unchanged(repo)

    def test_unknown_order(self, tmp_path):
        gateway, _ = _setup(tmp_path)
        with pytest.raises(SaveFailedError, match="Order #9 not found"):
            gateway.apply(9, {"items_remove": [1]})

    def test_malformed_date(self, tmp_path):
        gateway, repo = _setup(tmp_path)
        with pytest.raises(SaveFailedError, match="Invalid delivery date"):
            gateway.apply(1001, {
                "items_add": [{
                    "product_id": 20,
                    "quantity": 1,
                    "deliveries": [{"id": None, "quantity": 1, "delivery_date": "soon"}],
                }],
            })
        self._assert_unchanged(repo)
