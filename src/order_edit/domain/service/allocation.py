"""Domain service: delivery allocation.

An item's editable delivery slots must together carry exactly the part of
the item that has not been delivered yet::

    sum(editable slot quantities) == quantity - delivered quantity

The check never raises.  It returns a structured result that both the
input-level feedback and the save-time validation read, so the same rule
decides both.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, localcontext

from order_edit.domain.model.value_objects import (
    ALLOCATION_EPSILON,
    ZERO,
    format_quantity,
    round2,
)


@dataclass(frozen=True)
class AllocationResult:
    allocated: Decimal
    required: Decimal
    remaining: Decimal
    is_valid: bool
    has_non_positive_slot: bool = False

    @property
    def is_balanced(self) -> bool:
        """True when the sums agree, whatever the individual slots hold."""
        return abs(self.remaining) < ALLOCATION_EPSILON

    @property
    def is_over_allocated(self) -> bool:
        return not self.is_balanced and self.remaining < ZERO

    @property
    def progress(self) -> Decimal:
        """Allocated share of the required quantity, capped at 1."""
        if self.required <= ZERO:
            return Decimal("1")
        return min(Decimal("1"), max(ZERO, self.allocated / self.required))

    @property
    def message(self) -> str | None:
        """Over/under allocation message, or None when the sums agree."""
        if self.is_balanced:
            return None
        if self.remaining > ZERO:
            return (
                f"{format_quantity(self.remaining)} remaining to allocate. "
                "Please distribute all quantity across deliveries."
            )
        return (
            f"Over-allocated by {format_quantity(-self.remaining)}. "
            "Please reduce delivery quantities."
        )


def _working_precision(*values: Decimal) -> int:
    """Digits needed to add and subtract *values* exactly down to the cent."""
    largest = max((v.adjusted() for v in values if v), default=0)
    return max(28, largest + len(str(len(values))) + 12)


def check_allocation(
    total_quantity: Decimal,
    delivered_quantity: Decimal,
    slot_quantities: Iterable[Decimal],
) -> AllocationResult:
    """Compare what the editable slots carry with what they must carry.

    A total below the delivered quantity, or any slot at or below zero,
    makes the result invalid regardless of the sums.
    """
    quantities = list(slot_quantities)
    with localcontext() as ctx:
        ctx.prec = _working_precision(total_quantity, delivered_quantity, *quantities)
        allocated = round2(sum(quantities, ZERO))
        required = round2(total_quantity - delivered_quantity)
        remaining = round2(required - allocated)

    has_non_positive = any(q <= ZERO for q in quantities)
    is_valid = (
        abs(remaining) < ALLOCATION_EPSILON
        and not has_non_positive
        and total_quantity >= delivered_quantity
    )
    return AllocationResult(
        allocated=allocated,
        required=required,
        remaining=remaining,
        is_valid=is_valid,
        has_non_positive_slot=has_non_positive,
    )
