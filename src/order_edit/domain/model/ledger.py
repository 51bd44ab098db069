"""Staging ledger — every pending change of one edit session.

The ledger holds the *net* difference between the order as loaded and the
order as the operator wants it:

- ``field_edits``      contact fields whose value differs from the baseline
- ``items_to_add``     new lines, in the order they were staged
- ``items_to_update``  one instruction per existing item id
- ``items_to_remove``  existing item ids

Invariants:
- an item id is never both updated and removed
- an item with delivered history is never removed
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from order_edit.domain.exceptions import (
    EntityNotFoundError,
    RemovalBlockedError,
    ValidationError,
)
from order_edit.domain.model.order import EDITABLE_ORDER_FIELDS, Order
from order_edit.domain.model.value_objects import wire_number


@dataclass(frozen=True)
class DeliveryInstruction:
    """An editable slot as it will be sent: date required, time canonical."""

    id: int | None
    quantity: Decimal
    date: date
    time: str | None = None
    truck_type: str | None = None
    delivery_cost: Decimal | None = None

    def to_wire(self, include_cost: bool = False) -> dict:
        wire = {
            "id": self.id,
            "quantity": wire_number(self.quantity),
            "delivery_date": self.date.isoformat(),
            "delivery_time": self.time,
        }
        if self.truck_type:
            wire["truck_type"] = self.truck_type
        if include_cost:
            cost = self.delivery_cost if self.delivery_cost is not None else Decimal("0")
            wire["delivery_cost"] = wire_number(cost)
        return wire


@dataclass(frozen=True)
class ItemUpdateInstruction:
    item_id: int
    quantity: Decimal
    deliveries: tuple[DeliveryInstruction, ...] = ()

    def to_wire(self, include_cost: bool = False) -> dict:
        return {
            "order_item_id": self.item_id,
            "quantity": wire_number(self.quantity),
            "deliveries": [d.to_wire(include_cost) for d in self.deliveries],
        }


@dataclass(frozen=True)
class NewItemRequest:
    product_id: int
    quantity: Decimal
    deliveries: tuple[DeliveryInstruction, ...] = ()
    product_name: str = ""

    def __post_init__(self) -> None:
        if any(d.id is not None for d in self.deliveries):
            raise ValidationError("Deliveries of a new item cannot reference existing slots")

    def to_wire(self, include_cost: bool = False) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": wire_number(self.quantity),
            "deliveries": [d.to_wire(include_cost) for d in self.deliveries],
        }


class StagingLedger:

    def __init__(self, order: Order) -> None:
        self._order = order
        self._baseline = order.field_values()
        self._field_edits: dict[str, str] = {}
        self._items_to_add: list[NewItemRequest] = []
        self._items_to_update: dict[int, ItemUpdateInstruction] = {}
        self._items_to_remove: set[int] = set()

    # --- Read access ----------------------------------------------------------

    @property
    def order(self) -> Order:
        return self._order

    @property
    def field_edits(self) -> dict[str, str]:
        return dict(self._field_edits)

    @property
    def items_to_add(self) -> list[NewItemRequest]:
        return list(self._items_to_add)

    @property
    def items_to_update(self) -> dict[int, ItemUpdateInstruction]:
        return dict(self._items_to_update)

    @property
    def items_to_remove(self) -> frozenset[int]:
        return frozenset(self._items_to_remove)

    def staged_update(self, item_id: int) -> ItemUpdateInstruction | None:
        return self._items_to_update.get(item_id)

    def is_staged_for_removal(self, item_id: int) -> bool:
        return item_id in self._items_to_remove

    def field_value(self, field_name: str) -> str:
        """Value the field will have after saving."""
        self._check_field(field_name)
        return self._field_edits.get(field_name, self._baseline[field_name])

    def existing_product_ids(self) -> list[int]:
        """Products on the order or already pending addition."""
        return self._order.product_ids + [r.product_id for r in self._items_to_add]

    # --- Item updates ---------------------------------------------------------

    def stage_item_update(self, instruction: ItemUpdateInstruction) -> None:
        """Insert or overwrite the update for an item.

        A later update supersedes a stale removal marker for the same id.
        """
        self._order.find_item(instruction.item_id)
        self._items_to_update[instruction.item_id] = instruction
        self._items_to_remove.discard(instruction.item_id)

    def discard_item_update(self, item_id: int) -> bool:
        return self._items_to_update.pop(item_id, None) is not None

    # --- Removals -------------------------------------------------------------

    def stage_item_removal(self, item_id: int) -> None:
        item = self._order.find_item(item_id)
        if not item.can_be_removed:
            raise RemovalBlockedError(
                f"{item.label} has delivered quantities "
                f"({item.delivered_quantity}) and cannot be removed"
            )
        self._items_to_remove.add(item_id)
        self._items_to_update.pop(item_id, None)

    def undo_removal(self, item_id: int) -> bool:
        if item_id not in self._items_to_remove:
            return False
        self._items_to_remove.remove(item_id)
        return True

    # --- Additions ------------------------------------------------------------

    def stage_new_item(self, request: NewItemRequest) -> int:
        """Append a new line and return its position in the pending list."""
        self._items_to_add.append(request)
        return len(self._items_to_add) - 1

    def unstage_new_item(self, index: int) -> NewItemRequest:
        # A pending addition has no server id; dropping it is the undo.
        if not 0 <= index < len(self._items_to_add):
            raise EntityNotFoundError(f"No pending item at position {index}")
        return self._items_to_add.pop(index)

    # --- Order fields ---------------------------------------------------------

    def stage_field_edit(self, field_name: str, value: str | None) -> bool:
        """Record a field change; returns True while the field differs.

        Editing a field back to its loaded value removes the entry.
        """
        self._check_field(field_name)
        value = value or ""
        if value == self._baseline[field_name]:
            self._field_edits.pop(field_name, None)
            return False
        self._field_edits[field_name] = value
        return True

    # --- Aggregate state ------------------------------------------------------

    def has_pending_changes(self) -> bool:
        return bool(
            self._field_edits
            or self._items_to_add
            or self._items_to_update
            or self._items_to_remove
        )

    def pending_change_count(self) -> int:
        return (
            len(self._field_edits)
            + len(self._items_to_add)
            + len(self._items_to_update)
            + len(self._items_to_remove)
        )

    def summary(self) -> list[str]:
        """Banner lines describing what a save would send."""
        lines: list[str] = []
        if self._field_edits:
            lines.append("Contact information updated")
        if self._items_to_add:
            lines.append(f"{len(self._items_to_add)} item(s) to add")
        if self._items_to_update:
            lines.append(f"{len(self._items_to_update)} item(s) updated")
        if self._items_to_remove:
            lines.append(f"{len(self._items_to_remove)} item(s) to remove")
        return lines

    def reset(self, order: Order | None = None) -> None:
        """Drop every pending change.

        When *order* is given (the server's state after a save) it becomes
        the new baseline for field comparisons and removal checks.
        """
        if order is not None:
            self._order = order
        self._baseline = self._order.field_values()
        self._field_edits.clear()
        self._items_to_add.clear()
        self._items_to_update.clear()
        self._items_to_remove.clear()

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _check_field(field_name: str) -> None:
        if field_name not in EDITABLE_ORDER_FIELDS:
            raise ValidationError(
                f"Order field '{field_name}' cannot be edited "
                f"(expected one of {', '.join(EDITABLE_ORDER_FIELDS)})"
            )
