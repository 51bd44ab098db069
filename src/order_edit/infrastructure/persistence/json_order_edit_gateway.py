"""JSON-file-backed implementation of OrderEditGateway.

Stands in for the backend's ``POST /order-edit/{order}`` endpoint when the
engine is driven from the CLI.  The batch is applied to an in-memory copy of
the order and written back only if every section applies; otherwise
nothing changes and a SaveFailedError lists what was rejected, keyed by
payload section.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from decimal import Decimal

from order_edit.domain.exceptions import SaveFailedError, ValidationError
from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.order import EDITABLE_ORDER_FIELDS, Order, OrderItem
from order_edit.domain.model.value_objects import parse_date, to_decimal
from order_edit.domain.repository.order_edit_gateway import OrderEditGateway
from order_edit.domain.service.allocation import check_allocation
from order_edit.infrastructure.persistence.json_order_repository import JsonOrderRepository

logger = logging.getLogger(__name__)


class JsonOrderEditGateway(OrderEditGateway):

    def __init__(self, order_repo: JsonOrderRepository) -> None:
        self._order_repo = order_repo
        self._next_item_id = 1
        self._next_delivery_id = 1

    def apply(self, order_id: int, payload: dict) -> Order:
        try:
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                raise SaveFailedError(f"Order #{order_id} not found")
            self._next_item_id = self._order_repo.next_item_id()
            self._next_delivery_id = self._order_repo.next_delivery_id()

            errors: dict[str, list[str]] = {}
            updated = self._apply(order, payload, errors)
            if errors:
                raise SaveFailedError("The given data was invalid.", errors)

            self._order_repo.save(updated)
        except ValidationError as exc:
            raise SaveFailedError(str(exc)) from exc
        except (OSError, json.JSONDecodeError) as exc:
            raise SaveFailedError(f"Order store unavailable: {exc}") from exc

        logger.info("Applied batch edit to order #%s", order_id)
        return updated

    # --- Sections -------------------------------------------------------------

    def _apply(self, order: Order, payload: dict, errors: dict[str, list[str]]) -> Order:
        fields = payload.get("order") or {}
        unknown = sorted(set(fields) - set(EDITABLE_ORDER_FIELDS))
        if unknown:
            errors.setdefault("order", []).append(
                f"Fields cannot be edited: {', '.join(unknown)}"
            )

        items = {item.id: item for item in order.items}

        for item_id in payload.get("items_remove", []):
            item = items.get(item_id)
            if item is None:
                errors.setdefault("items_remove", []).append(f"Item #{item_id} not found")
            elif not item.can_be_removed:
                errors.setdefault("items_remove", []).append(
                    f"Item #{item_id} has delivered quantities and cannot be removed"
                )
            else:
                del items[item_id]

        for raw in payload.get("items_update", []):
            item_id = raw.get("order_item_id")
            item = items.get(item_id)
            if item is None:
                errors.setdefault("items_update", []).append(f"Item #{item_id} not found")
                continue
            items[item_id] = self._update_item(item, raw, errors)

        added = [self._new_item(raw, errors) for raw in payload.get("items_add", [])]

        return replace(
            order,
            items=tuple(items.values()) + tuple(added),
            **{name: value for name, value in fields.items() if name in EDITABLE_ORDER_FIELDS},
        )

    def _update_item(self, item: OrderItem, raw: dict, errors: dict[str, list[str]]) -> OrderItem:
        quantity = to_decimal(raw.get("quantity"))
        editable = {d.id: d for d in item.editable_slots}
        slots: list[DeliverySlot] = []
        for d in raw.get("deliveries", []):
            slot_id = d.get("id")
            if slot_id is not None and slot_id not in editable:
                errors.setdefault("items_update", []).append(
                    f"Delivery #{slot_id} cannot be edited on item #{item.id}"
                )
                continue
            status = editable[slot_id].status if slot_id is not None else DeliveryStatus.SCHEDULED
            slots.append(self._slot(d, slot_id, status))

        self._check_allocation(
            "items_update", f"Item #{item.id}", quantity, item.delivered_quantity, slots, errors
        )
        return replace(item, quantity=quantity, deliveries=tuple(item.locked_slots + slots))

    def _new_item(self, raw: dict, errors: dict[str, list[str]]) -> OrderItem:
        quantity = to_decimal(raw.get("quantity"))
        slots = [self._slot(d, None, DeliveryStatus.SCHEDULED) for d in raw.get("deliveries", [])]
        item_id = self._next_item_id
        self._next_item_id += 1
        self._check_allocation(
            "items_add", f"Product #{raw.get('product_id')}", quantity, Decimal("0"), slots, errors
        )
        return OrderItem(
            id=item_id,
            product_id=raw.get("product_id"),
            quantity=quantity,
            deliveries=tuple(slots),
        )

    # --- Helpers --------------------------------------------------------------

    def _slot(self, raw: dict, slot_id: int | None, status: DeliveryStatus) -> DeliverySlot:
        if slot_id is None:
            slot_id = self._next_delivery_id
            self._next_delivery_id += 1
        cost = raw.get("delivery_cost")
        return DeliverySlot(
            id=slot_id,
            quantity=to_decimal(raw.get("quantity")),
            date=parse_date(raw.get("delivery_date")),
            time=raw.get("delivery_time"),
            status=status,
            truck_type=raw.get("truck_type"),
            delivery_cost=to_decimal(cost) if cost is not None else None,
        )

    @staticmethod
    def _check_allocation(
        section: str,
        label: str,
        quantity: Decimal,
        delivered: Decimal,
        slots: list[DeliverySlot],
        errors: dict[str, list[str]],
    ) -> None:
        if quantity < delivered:
            errors.setdefault(section, []).append(
                f"{label}: quantity cannot be less than delivered amount"
            )
            return
        result = check_allocation(quantity, delivered, [s.quantity for s in slots])
        if not result.is_valid:
            errors.setdefault(section, []).append(
                f"{label}: {result.message or 'delivery quantities must be positive'}"
            )
        if any(s.date is None for s in slots):
            errors.setdefault(section, []).append(f"{label}: every delivery needs a date")
