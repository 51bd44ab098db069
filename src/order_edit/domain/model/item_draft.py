"""Item drafts — working copies of one line while it is being edited.

``ItemEditDraft`` edits an existing order item and is diffed against the
server's version of it.  ``NewItemDraft`` configures a product being added.
Both recompute allocation on demand and report problems as an ordered list
of messages; only converting an invalid draft into an instruction raises.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from decimal import Decimal

from order_edit.domain.exceptions import (
    AllocationMismatchError,
    EntityNotFoundError,
    LockedSlotError,
    ValidationError,
)
from order_edit.domain.model.delivery import TRUCK_TYPES, DeliverySlot, DeliveryStatus
from order_edit.domain.model.ledger import (
    DeliveryInstruction,
    ItemUpdateInstruction,
    NewItemRequest,
)
from order_edit.domain.model.order import OrderItem
from order_edit.domain.model.slot_manager import DeliverySlotManager
from order_edit.domain.model.value_objects import (
    ZERO,
    canonical_time,
    format_quantity,
    quantities_equal,
    to_decimal,
)
from order_edit.domain.service.allocation import AllocationResult, check_allocation

MIN_NEW_ITEM_QUANTITY = Decimal("0.01")

MISSING_DATE_MESSAGE = "All delivery slots must have a delivery date."
NON_POSITIVE_SLOT_MESSAGE = "All delivery slots must have quantity greater than 0."


class _SlotDraft:
    """Behaviour shared by both drafts: slots, allocation, validation."""

    def __init__(
        self,
        quantity: Decimal,
        slots: Iterable[DeliverySlot],
        *,
        min_editable_slots: int,
        include_costs: bool,
    ) -> None:
        self.quantity = quantity
        self.slots = DeliverySlotManager(slots, min_editable_slots=min_editable_slots)
        self.include_costs = include_costs
        self._notices: list[str] = []

    # --- Derived state --------------------------------------------------------

    @property
    def delivered_quantity(self) -> Decimal:
        return self.slots.delivered_quantity

    @property
    def allocation(self) -> AllocationResult:
        return check_allocation(
            self.quantity, self.delivered_quantity, self.slots.editable_quantities
        )

    @property
    def notices(self) -> list[str]:
        """Informational messages from the last quantity change."""
        return list(self._notices)

    @property
    def is_valid(self) -> bool:
        return not self.validate()

    # --- Slot operations ------------------------------------------------------

    def add_slot(self, quantity: Decimal | None = None) -> DeliverySlot:
        """Add a slot pre-filled with whatever is still unallocated."""
        if quantity is None:
            quantity = max(self.allocation.remaining, ZERO)
        return self.slots.add_slot(quantity)

    def remove_slot(self, local_ref: str) -> bool:
        return self.slots.remove_slot(local_ref)

    def update_slot(self, local_ref: str, field_name: str, value: object) -> DeliverySlot:
        return self.slots.update_slot(local_ref, field_name, value)

    # --- Validation -----------------------------------------------------------

    def validate(self) -> list[str]:
        """Every current problem, in display order."""
        errors: list[str] = []
        delivered = self.delivered_quantity
        if self.quantity < delivered:
            errors.append(
                f"Quantity cannot be less than delivered amount ({format_quantity(delivered)})"
            )

        message = self.allocation.message
        if message:
            errors.append(message)

        editable = self.slots.editable_slots
        if any(s.date is None for s in editable):
            errors.append(MISSING_DATE_MESSAGE)
        if any(s.quantity <= ZERO for s in editable):
            errors.append(NON_POSITIVE_SLOT_MESSAGE)

        unknown = sorted({s.truck_type for s in editable if s.truck_type and s.truck_type not in TRUCK_TYPES})
        for truck_type in unknown:
            errors.append(f"Unknown truck type '{truck_type}'.")

        if self.include_costs and any(
            s.delivery_cost is not None and s.delivery_cost < ZERO for s in editable
        ):
            errors.append("Delivery cost cannot be negative.")
        return errors

    # --- Internal helpers -----------------------------------------------------

    def _delivery_instructions(self) -> tuple[DeliveryInstruction, ...]:
        return tuple(
            DeliveryInstruction(
                id=s.id,
                quantity=s.quantity,
                date=s.date,  # type: ignore[arg-type]  # validated non-empty
                time=canonical_time(s.time),
                truck_type=s.truck_type or None,
                delivery_cost=s.delivery_cost if self.include_costs else None,
            )
            for s in self.slots.editable_slots
        )


class ItemEditDraft(_SlotDraft):
    """Working copy of an existing item.

    When the ledger already holds an update for the item, the draft starts
    from that update so re-opening an item shows what is staged.  The
    original item stays the reference for change detection.
    """

    def __init__(
        self,
        item: OrderItem,
        *,
        include_costs: bool = False,
        staged: ItemUpdateInstruction | None = None,
    ) -> None:
        self.original = item
        if staged is None:
            quantity = item.quantity
            slots = list(item.deliveries)
        else:
            quantity = staged.quantity
            slots = item.locked_slots + [self._slot_from_instruction(d) for d in staged.deliveries]
        super().__init__(
            quantity, slots, min_editable_slots=0, include_costs=include_costs
        )

    @property
    def item_id(self) -> int:
        return self.original.id

    def set_quantity(self, value: object) -> Decimal:
        """Set the total, never below what has already been delivered.

        Lower values are raised to the floor and a notice is recorded.
        """
        floor = self.delivered_quantity
        quantity = to_decimal(value, fallback=floor)
        self._notices = []
        if quantity < floor:
            quantity = floor
            self._notices.append(
                f"Quantity cannot be less than delivered amount "
                f"({format_quantity(floor)}). Minimum enforced."
            )
        self.quantity = quantity
        return quantity

    def replace_slots(self, slots: Iterable[DeliverySlot]) -> None:
        """Replace the editable slots with *slots*.

        Slots that carry an id must be editable slots of this item.
        """
        new_slots = list(slots)
        seen: set[int] = set()
        for slot in new_slots:
            if slot.id is None:
                continue
            if slot.id in seen:
                raise ValidationError(f"Delivery #{slot.id} appears more than once")
            seen.add(slot.id)
            existing = self._original_slot(slot.id)
            if existing.is_locked:
                raise LockedSlotError(
                    f"Delivery #{slot.id} has been delivered and cannot be edited"
                )
            slot.status = existing.status
        self.slots.replace_editable(new_slots)

    @property
    def is_changed(self) -> bool:
        if not quantities_equal(self.quantity, self.original.quantity):
            return True
        current = [s.signature(self.include_costs) for s in self.slots.editable_slots]
        before = [s.signature(self.include_costs) for s in self.original.editable_slots]
        return current != before

    def to_update_instruction(self) -> ItemUpdateInstruction:
        errors = self.validate()
        if errors:
            raise AllocationMismatchError(errors)
        return ItemUpdateInstruction(
            item_id=self.original.id,
            quantity=self.quantity,
            deliveries=self._delivery_instructions(),
        )

    # --- Internal helpers -----------------------------------------------------

    def _original_slot(self, slot_id: int) -> DeliverySlot:
        for slot in self.original.deliveries:
            if slot.id == slot_id:
                return slot
        raise EntityNotFoundError(
            f"Delivery #{slot_id} does not belong to {self.original.label}"
        )

    def _slot_from_instruction(self, instruction: DeliveryInstruction) -> DeliverySlot:
        status = DeliveryStatus.SCHEDULED
        if instruction.id is not None:
            status = self._original_slot(instruction.id).status
        return DeliverySlot(
            id=instruction.id,
            quantity=instruction.quantity,
            date=instruction.date,
            time=instruction.time,
            status=status,
            truck_type=instruction.truck_type,
            delivery_cost=instruction.delivery_cost,
        )


class NewItemDraft(_SlotDraft):
    """Configuration of a product being added to the order.

    Nothing has shipped yet, so all of the quantity must be allocated.  The
    draft starts with a single slot and never drops below one.
    """

    def __init__(
        self,
        product_id: int,
        *,
        product_name: str = "",
        quantity: object = Decimal("1"),
        include_costs: bool = False,
    ) -> None:
        super().__init__(
            Decimal("1"), (), min_editable_slots=1, include_costs=include_costs
        )
        self.product_id = product_id
        self.product_name = product_name
        self.set_quantity(quantity)
        self.slots.add_slot(self.quantity)

    def set_quantity(self, value: object) -> Decimal:
        quantity = to_decimal(value, fallback=MIN_NEW_ITEM_QUANTITY)
        self._notices = []
        if quantity < MIN_NEW_ITEM_QUANTITY:
            quantity = MIN_NEW_ITEM_QUANTITY
            self._notices.append(
                f"Quantity must be at least {format_quantity(MIN_NEW_ITEM_QUANTITY)}."
            )
        self.quantity = quantity
        return quantity

    def replace_slots(self, slots: Iterable[DeliverySlot]) -> None:
        new_slots = list(slots)
        if any(s.id is not None for s in new_slots):
            raise ValidationError("Deliveries of a new item cannot reference existing slots")
        self.slots.replace_editable(
            [replace(s, status=DeliveryStatus.SCHEDULED) for s in new_slots]
        )

    def validate(self) -> list[str]:
        errors: list[str] = []
        if not self.product_id:
            errors.append("Please select a product.")
        if not self.slots.editable_slots:
            errors.append("At least one delivery slot is required.")
        return errors + super().validate()

    def to_new_item_request(self) -> NewItemRequest:
        errors = self.validate()
        if errors:
            raise AllocationMismatchError(errors)
        return NewItemRequest(
            product_id=self.product_id,
            quantity=self.quantity,
            deliveries=self._delivery_instructions(),
            product_name=self.product_name,
        )
