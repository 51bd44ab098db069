"""Integration tests for the read-side use cases: show, begin edit, search."""

from datetime import date
from decimal import Decimal

import pytest

from order_edit.application.begin_order_edit import BeginOrderEditHandler
from order_edit.application.search_products import SearchProductsHandler
from order_edit.application.show_order import ShowOrderHandler
from order_edit.domain.exceptions import EntityNotFoundError
from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.order import Order, OrderItem
from order_edit.domain.model.product import ProductRecord
from tests.fakes import FakeOrderRepository, FakeProductCatalog


def _order_repo() -> FakeOrderRepository:
    return FakeOrderRepository([
        Order(
            id=1001,
            po_number="PO-77",
            status="processing",
            contact_person_name="John",
            items=(
                OrderItem(
                    id=55,
                    product_id=12,
                    quantity=Decimal("10.50"),
                    deliveries=(
                        DeliverySlot(
                            id=1,
                            quantity=Decimal("4"),
                            date=date(2025, 2, 1),
                            time="08:00",
                            status=DeliveryStatus.DELIVERED,
                            truck_type="semi",
                        ),
                        DeliverySlot(id=2, quantity=Decimal("6.50"), date=None),
                    ),
                ),
            ),
        ),
    ])


def _catalog() -> FakeProductCatalog:
    products = [
        ProductRecord(id=i, name=f"Sand grade {i}", product_type="sand", price=Decimal("15"))
        for i in range(1, 11)
    ]
    products.append(ProductRecord(id=20, name="Blue Metal 20mm", product_type="aggregate"))
    return FakeProductCatalog(products)


class TestShowOrder:

    def test_order_rendered_for_display(self):
        dto = ShowOrderHandler(_order_repo()).handle(1001)
        assert dto.po_number == "PO-77"
        assert dto.contact_person_number == ""
        item = dto.items[0]
        assert item.product_name == "Product #12"
        assert item.quantity == "10.5"
        assert item.delivered_quantity == "4"
        assert not item.can_be_removed
        delivered, scheduled = item.deliveries
        assert delivered.locked and delivered.status == "delivered"
        assert delivered.truck_type == "semi"
        assert not scheduled.locked
        assert scheduled.date == ""

    def test_unknown_order_rejected(self):
        with pytest.raises(EntityNotFoundError, match="Order #9 not found"):
            ShowOrderHandler(_order_repo()).handle(9)


class TestBeginOrderEdit:

    def test_opens_session_on_stored_order(self):
        session = BeginOrderEditHandler(_order_repo()).handle(1001, is_admin=True)
        assert session.order.id == 1001
        assert session.is_admin
        assert not session.has_pending_changes()

    def test_unknown_order_rejected(self):
        with pytest.raises(EntityNotFoundError):
            BeginOrderEditHandler(_order_repo()).handle(9)


class TestSearchProducts:

    def test_first_page(self):
        page = SearchProductsHandler(_catalog()).handle("sand")
        assert page.total == 10
        assert page.last_page == 2
        assert len(page.items) == 8
        assert page.items[0].price == "$15.00"

    def test_second_page(self):
        page = SearchProductsHandler(_catalog()).handle("sand", page=2)
        assert [p.id for p in page.items] == [9, 10]

    def test_filter_by_type(self):
        page = SearchProductsHandler(_catalog()).handle(product_type="aggregate")
        assert [p.name for p in page.items] == ["Blue Metal 20mm"]
        assert page.items[0].price == ""

    def test_no_matches(self):
        page = SearchProductsHandler(_catalog()).handle("  gravel  ")
        assert page.items == []
        assert page.last_page == 1
