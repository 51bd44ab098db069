"""Delivery slot manager — the slot list of one item while it is edited.

Locked (delivered) slots are carried along for display but are read-only:
every mutation on them is rejected and they never count towards the
editable allocation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from order_edit.domain.exceptions import (
    EntityNotFoundError,
    LockedSlotError,
    ValidationError,
)
from order_edit.domain.model.delivery import DeliverySlot, DeliveryStatus
from order_edit.domain.model.value_objects import (
    DEFAULT_DELIVERY_TIME,
    ZERO,
    parse_date,
    to_decimal,
)

EDITABLE_SLOT_FIELDS = ("quantity", "date", "time", "truck_type", "delivery_cost")


class DeliverySlotManager:
    """Owns the slots of one draft.

    ``min_editable_slots`` is 1 in the add-item flow (a new line always has
    somewhere to go) and 0 when editing an existing item, where history may
    already cover the whole quantity.
    """

    def __init__(
        self,
        slots: Iterable[DeliverySlot] = (),
        *,
        min_editable_slots: int = 0,
    ) -> None:
        # Copies, so the server baseline is never touched.
        self._slots: list[DeliverySlot] = [replace(s) for s in slots]
        self._min_editable_slots = min_editable_slots

    # --- Queries --------------------------------------------------------------

    @property
    def slots(self) -> list[DeliverySlot]:
        return list(self._slots)

    @property
    def locked_slots(self) -> list[DeliverySlot]:
        return [s for s in self._slots if s.is_locked]

    @property
    def editable_slots(self) -> list[DeliverySlot]:
        return [s for s in self._slots if not s.is_locked]

    @property
    def editable_quantities(self) -> list[Decimal]:
        return [s.quantity for s in self.editable_slots]

    @property
    def delivered_quantity(self) -> Decimal:
        return sum((s.quantity for s in self.locked_slots), ZERO)

    def get(self, local_ref: str) -> DeliverySlot:
        for slot in self._slots:
            if slot.local_ref == local_ref:
                return slot
        raise EntityNotFoundError(f"Delivery slot '{local_ref}' not found")

    # --- Mutations ------------------------------------------------------------

    def add_slot(self, default_quantity: Decimal | None = None) -> DeliverySlot:
        """Append a transient slot.

        The caller passes the unallocated remainder as *default_quantity*;
        anything not positive falls back to 1.
        """
        quantity = default_quantity if default_quantity and default_quantity > ZERO else Decimal("1")
        slot = DeliverySlot(
            id=None,
            quantity=quantity,
            date=None,
            time=DEFAULT_DELIVERY_TIME,
            status=DeliveryStatus.SCHEDULED,
        )
        self._slots.append(slot)
        return slot

    def remove_slot(self, local_ref: str) -> bool:
        """Remove an editable slot.

        Returns False without removing when that would leave fewer editable
        slots than the flow allows.
        """
        slot = self.get(local_ref)
        if slot.is_locked:
            raise LockedSlotError("Delivered slots cannot be removed")
        if len(self.editable_slots) <= self._min_editable_slots:
            return False
        self._slots = [s for s in self._slots if s is not slot]
        return True

    def update_slot(self, local_ref: str, field_name: str, value: object) -> DeliverySlot:
        """Set one field of an editable slot from (possibly typed) input."""
        slot = self.get(local_ref)
        if slot.is_locked:
            raise LockedSlotError("Delivered slots are read-only")

        if field_name == "quantity":
            slot.quantity = to_decimal(value)
        elif field_name == "date":
            slot.date = parse_date(value)
        elif field_name == "time":
            slot.time = None if value is None else str(value)
        elif field_name == "truck_type":
            text = str(value).strip() if value is not None else ""
            slot.truck_type = text or None
        elif field_name == "delivery_cost":
            slot.delivery_cost = to_decimal(value)
        else:
            raise ValidationError(
                f"Unknown delivery field '{field_name}' "
                f"(expected one of {', '.join(EDITABLE_SLOT_FIELDS)})"
            )
        return slot

    def replace_editable(self, slots: Iterable[DeliverySlot]) -> None:
        """Swap the whole editable set; locked history is kept as is."""
        new_slots = list(slots)
        if any(s.is_locked for s in new_slots):
            raise LockedSlotError("Delivered slots cannot be staged as edits")
        self._slots = self.locked_slots + new_slots
