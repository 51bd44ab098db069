"""Value helpers shared across the domain.

Quantities are ``Decimal`` throughout so that sums such as 0.1 + 0.2 are
exact.  Every comparison of two quantities goes through ``round2`` and
``ALLOCATION_EPSILON`` so that the add-item and edit-item flows can never
reach different verdicts for the same numbers.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from order_edit.domain.exceptions import ValidationError

ALLOCATION_EPSILON = Decimal("0.0001")
DEFAULT_DELIVERY_TIME = "08:00"

_CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: object, fallback: Decimal = ZERO) -> Decimal:
    """Coerce user or wire input to a finite Decimal.

    Blank, malformed and non-finite input yields *fallback* instead of
    raising; the draft validator then reports the bad quantity.
    """
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return fallback
        try:
            result = Decimal(text)
        except InvalidOperation:
            return fallback
    if not result.is_finite():
        return fallback
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places, whatever the magnitude."""
    with localcontext() as ctx:
        # Integer digits plus two places must fit in the working precision.
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def quantities_equal(a: Decimal, b: Decimal) -> bool:
    return abs(round2(a) - round2(b)) < ALLOCATION_EPSILON


def format_quantity(value: Decimal) -> str:
    """Render a quantity without trailing zeros (``Decimal("1.50")`` -> ``1.5``)."""
    if value == ZERO:
        return "0"
    return format(value.normalize(), "f")


def wire_number(value: Decimal) -> int | float:
    """JSON-friendly number: int when integral, float otherwise."""
    rounded = round2(value)
    whole = int(rounded)
    if rounded == whole:
        return whole
    return float(rounded)


# ---------------------------------------------------------------------------
# Dates and times
# ---------------------------------------------------------------------------


def parse_date(value: object) -> date | None:
    """Parse a calendar date from a ``date`` or ``YYYY-MM-DD`` string.

    ISO datetimes are truncated at ``T``; blank input means "no date".
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    text = text.split("T")[0].split(" ")[0]
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid delivery date: {value!r}") from exc


def canonical_time(value: str | None) -> str | None:
    """Normalise a typed time to zero-padded ``HH:MM`` or None.

    Accepts partial input such as ``"8:5"`` and server values such as
    ``"08:00:00"``; anything without an hour and a minute is treated as
    blank.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    text = text.split("T")[-1]
    parts = text.split(":")
    if len(parts) < 2:
        return None
    hours, minutes = parts[0].strip(), parts[1].strip()
    if not (hours.isdigit() and minutes.isdigit()):
        return None
    if int(hours) > 23 or int(minutes) > 59:
        return None
    return f"{hours.zfill(2)}:{minutes.zfill(2)}"
