"""JSON-file-backed implementation of OrderRepository.

The file mirrors the order-detail response of the backend: amounts are
strings, dates ``YYYY-MM-DD`` and times as the server stores them.
"""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.order import Order, OrderItem
from order_edit.domain.model.value_objects import format_quantity, parse_date
from order_edit.domain.repository.order_repository import OrderRepository


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def save(self, order: Order) -> None:
        orders = self._load_raw()

        # Upsert: replace if exists, otherwise append
        replaced = False
        for i, raw in enumerate(orders):
            if raw["id"] == order.id:
                orders[i] = self._to_raw(order)
                replaced = True
                break
        if not replaced:
            orders.append(self._to_raw(order))

        self._persist_raw(orders)

    # --- Id generation --------------------------------------------------------

    def next_item_id(self) -> int:
        ids = [item["id"] for o in self._load_raw() for item in o.get("items", [])]
        return max(ids, default=0) + 1

    def next_delivery_id(self) -> int:
        ids = [
            d["id"]
            for o in self._load_raw()
            for item in o.get("items", [])
            for d in item.get("deliveries", [])
            if d.get("id") is not None
        ]
        return max(ids, default=0) + 1

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "po_number": order.po_number,
            "order_status": order.status,
            "contact_person_name": order.contact_person_name,
            "contact_person_number": order.contact_person_number,
            "site_instructions": order.site_instructions,
            "items": [
                {
                    "id": item.id,
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "unit_of_measure": item.unit_of_measure,
                    "quantity": format_quantity(item.quantity),
                    "supplier_id": item.supplier_id,
                    "deliveries": [
                        {
                            "id": d.id,
                            "quantity": format_quantity(d.quantity),
                            "delivery_date": d.date.isoformat() if d.date else None,
                            "delivery_time": d.time,
                            "status": d.status.value,
                            "truck_type": d.truck_type,
                            "delivery_cost": (
                                str(d.delivery_cost) if d.delivery_cost is not None else None
                            ),
                        }
                        for d in item.deliveries
                    ],
                }
                for item in order.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        items = tuple(
            OrderItem(
                id=i["id"],
                product_id=i["product_id"],
                quantity=Decimal(str(i["quantity"])),
                product_name=i.get("product_name", ""),
                unit_of_measure=i.get("unit_of_measure", ""),
                supplier_id=i.get("supplier_id"),
                deliveries=tuple(
                    DeliverySlot(
                        id=d.get("id"),
                        quantity=Decimal(str(d["quantity"])),
                        date=parse_date(d.get("delivery_date")),
                        time=d.get("delivery_time"),
                        status=DeliveryStatus(d.get("status", "scheduled")),
                        truck_type=d.get("truck_type"),
                        delivery_cost=(
                            Decimal(str(d["delivery_cost"]))
                            if d.get("delivery_cost") is not None
                            else None
                        ),
                    )
                    for d in i.get("deliveries", [])
                ),
            )
            for i in raw.get("items", [])
        )
        return Order(
            id=raw["id"],
            po_number=raw.get("po_number", ""),
            status=raw.get("order_status", ""),
            contact_person_name=raw.get("contact_person_name"),
            contact_person_number=raw.get("contact_person_number"),
            site_instructions=raw.get("site_instructions"),
            items=items,
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        self._file_path.write_text(
            json.dumps(orders, indent=2) + "\n", encoding="utf-8"
        )

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
