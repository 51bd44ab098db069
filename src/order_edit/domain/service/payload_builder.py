"""Domain service: batch-edit payload.

Flattens a staging ledger into the request body of the order-edit endpoint::

    {
      "order":        {<changed fields only>},
      "items_add":    [{product_id, quantity, deliveries}],
      "items_update": [{order_item_id, quantity, deliveries}],
      "items_remove": [order_item_id, ...],
    }

The backend reads the presence of a key as "apply these operations", so a
section with nothing in it is left out rather than sent empty.
"""

from __future__ import annotations

from order_edit.domain.model.ledger import StagingLedger


def build_payload(ledger: StagingLedger, *, include_delivery_costs: bool = False) -> dict | None:
    """Return the sparse payload, or None when nothing is pending.

    ``include_delivery_costs`` is set for admin sessions only; clients never
    send per-slot costs.
    """
    if not ledger.has_pending_changes():
        return None

    payload: dict = {}

    field_edits = ledger.field_edits
    if field_edits:
        payload["order"] = field_edits

    items_add = ledger.items_to_add
    if items_add:
        payload["items_add"] = [r.to_wire(include_delivery_costs) for r in items_add]

    items_update = ledger.items_to_update
    if items_update:
        payload["items_update"] = [
            instruction.to_wire(include_delivery_costs)
            for instruction in items_update.values()
        ]

    items_remove = ledger.items_to_remove
    if items_remove:
        payload["items_remove"] = sorted(items_remove)

    return payload
