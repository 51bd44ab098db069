"""Delivery slots — the split of an item's quantity across dates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from order_edit.domain.model.value_objects import canonical_time, round2


class DeliveryStatus(Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_locked(self) -> bool:
        return self in LOCKED_STATUSES


# Terminal "already fulfilled" statuses.  Slots in these states are history.
LOCKED_STATUSES = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.COMPLETED})


TRUCK_TYPES: dict[str, str] = {
    "tipper_light": "Tipper Truck Light (3-6 tonnes)",
    "tipper_medium": "Tipper Truck Medium (6-11 tonnes)",
    "tipper_heavy": "Tipper Truck Heavy (11-14 tonnes)",
    "light_rigid": "Light Rigid Truck (3.5 tonnes)",
    "medium_rigid": "Medium Rigid Trucks (7 tonnes)",
    "heavy_rigid": "Heavy Rigid Trucks (16-49 tonnes)",
    "mini_body": "Mini Body Truck (8 tonnes)",
    "body_truck": "Body Truck (12 tonnes)",
    "eight_wheeler": "Eight-Wheeler Body Truck (16 tonnes)",
    "semi": "Semi (28 tonnes)",
    "truck_dog": "Truck and Dog (38 tonnes)",
}


def _new_local_ref() -> str:
    return uuid4().hex


@dataclass
class DeliverySlot:
    """One scheduled or historical fulfilment of part of an item.

    ``id`` is None until the backend persists the slot.  ``local_ref``
    identifies the slot inside a draft regardless of its server id and is
    ignored by equality.  ``time`` holds what was typed; it is only
    canonicalised when the slot leaves the draft.
    """

    id: int | None
    quantity: Decimal
    date: date | None = None
    time: str | None = None
    status: DeliveryStatus = DeliveryStatus.SCHEDULED
    truck_type: str | None = None
    delivery_cost: Decimal | None = None
    local_ref: str = field(default_factory=_new_local_ref, compare=False)

    @property
    def is_locked(self) -> bool:
        return self.status.is_locked

    def signature(self, include_cost: bool = False) -> tuple:
        """Value used to decide whether an editable slot list changed."""
        sig = (
            self.id,
            round2(self.quantity),
            self.date,
            canonical_time(self.time),
            self.truck_type or None,
        )
        if include_cost:
            cost = round2(self.delivery_cost) if self.delivery_cost is not None else None
            sig += (cost,)
        return sig
