"""Order aggregate as loaded from the backend — the baseline of an edit.

Orders and items are frozen: an edit session never mutates what the server
sent.  Drafts copy the slots they need and the ledger records differences.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from order_edit.domain.exceptions import EntityNotFoundError
from order_edit.domain.model.delivery import DeliverySlot

EDITABLE_ORDER_FIELDS = (
    "contact_person_name",
    "contact_person_number",
    "site_instructions",
)


@dataclass(frozen=True)
class OrderItem:
    """One product line within an order.

    Invariants (enforced by drafts, trusted on load):
    - ``quantity >= delivered_quantity``
    - editable slot quantities sum to ``quantity - delivered_quantity``
    """

    id: int
    product_id: int
    quantity: Decimal
    deliveries: tuple[DeliverySlot, ...] = ()
    product_name: str = ""
    unit_of_measure: str = ""
    supplier_id: int | None = None

    @property
    def locked_slots(self) -> list[DeliverySlot]:
        return [d for d in self.deliveries if d.is_locked]

    @property
    def editable_slots(self) -> list[DeliverySlot]:
        return [d for d in self.deliveries if not d.is_locked]

    @property
    def delivered_quantity(self) -> Decimal:
        return sum((d.quantity for d in self.locked_slots), Decimal("0"))

    @property
    def has_deliveries(self) -> bool:
        return bool(self.locked_slots)

    @property
    def can_be_removed(self) -> bool:
        """Items with delivered history stay on the order."""
        return not self.locked_slots

    @property
    def label(self) -> str:
        return self.product_name or f"Product #{self.product_id}"


@dataclass(frozen=True)
class Order:
    """An order with the contact fields that an edit may change."""

    id: int
    po_number: str = ""
    status: str = ""
    contact_person_name: str | None = None
    contact_person_number: str | None = None
    site_instructions: str | None = None
    items: tuple[OrderItem, ...] = field(default_factory=tuple)

    def field_values(self) -> dict[str, str]:
        """Editable fields with missing values normalised to ``""``."""
        return {name: getattr(self, name) or "" for name in EDITABLE_ORDER_FIELDS}

    def find_item(self, item_id: int) -> OrderItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise EntityNotFoundError(f"Item #{item_id} not found in order #{self.id}")

    @property
    def product_ids(self) -> list[int]:
        return [item.product_id for item in self.items]
