"""Data Transfer Objects for the edit use cases.

Input specs carry what the operator typed into the session; output DTOs
carry formatted orders and products back to the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from order_edit.domain.service.allocation import AllocationResult


# --- Input ----------------------------------------------------------------------


@dataclass(frozen=True)
class DeliverySlotEdit:
    """Input: one editable delivery slot as the operator wants it.

    Values are taken as typed (strings are fine); ``id`` is None for a slot
    that does not exist on the server yet.
    """

    quantity: object
    date: object = None
    time: str | None = None
    id: int | None = None
    truck_type: str | None = None
    delivery_cost: object = None


@dataclass(frozen=True)
class ItemEditSpec:
    """Input: new total and the complete list of editable slots for an item.

    ``deliveries=None`` keeps the editable slots as they are.
    """

    quantity: object
    deliveries: list[DeliverySlotEdit] | None = None


@dataclass(frozen=True)
class NewItemSpec:
    """Input: a product to add, with its delivery split."""

    product_id: int
    quantity: object
    deliveries: list[DeliverySlotEdit] = field(default_factory=list)
    product_name: str = ""


# --- Output ---------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of staging one change.

    ``errors`` block the change; ``notices`` are informational (a clamped
    quantity, a duplicate product, an unchanged item).
    """

    errors: list[str] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    allocation: AllocationResult | None = None
    staged: bool = False

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class DeliveryDTO:
    id: int | None
    quantity: str
    date: str
    time: str
    status: str
    truck_type: str
    locked: bool


@dataclass(frozen=True)
class OrderItemDTO:
    id: int
    product_id: int
    product_name: str
    unit_of_measure: str
    quantity: str
    delivered_quantity: str
    can_be_removed: bool
    deliveries: list[DeliveryDTO]


@dataclass(frozen=True)
class OrderDTO:
    id: int
    po_number: str
    status: str
    contact_person_name: str
    contact_person_number: str
    site_instructions: str
    items: list[OrderItemDTO]


@dataclass(frozen=True)
class ProductDTO:
    id: int
    name: str
    product_type: str
    unit_of_measure: str
    price: str  # formatted, e.g. "$15.00", or "" when unpriced


@dataclass(frozen=True)
class ProductPageDTO:
    items: list[ProductDTO]
    page: int
    last_page: int
    total: int
