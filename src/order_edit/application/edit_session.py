"""Application service: the edit session of one order.

An ``EditSession`` is the handle the rest of the application holds while an
operator edits an order.  It hands out drafts, folds committed drafts into
the staging ledger and builds the batch payload on demand.  Nothing here
talks to the backend; see ``SaveOrderEditHandler`` for that.

The module-level functions at the bottom are the flat entry points used by
callers that do not need interactive drafts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace

from order_edit.application.dto import (
    DeliverySlotEdit,
    ItemEditSpec,
    NewItemSpec,
    ValidationResult,
)
from order_edit.domain.exceptions import (
    RemovalBlockedError,
    SaveInProgressError,
    ValidationError,
)
from order_edit.domain.model.delivery import DeliverySlot
from order_edit.domain.model.item_draft import ItemEditDraft, NewItemDraft
from order_edit.domain.model.ledger import NewItemRequest, StagingLedger
from order_edit.domain.model.order import Order, OrderItem
from order_edit.domain.model.value_objects import parse_date, to_decimal
from order_edit.domain.service.payload_builder import build_payload as _build_payload

logger = logging.getLogger(__name__)


class EditSession:

    def __init__(self, order: Order, *, is_admin: bool = False) -> None:
        self.is_admin = is_admin
        self.ledger = StagingLedger(order)
        self._saving = False

    @property
    def order(self) -> Order:
        return self.ledger.order

    @property
    def is_saving(self) -> bool:
        return self._saving

    # --- Existing items -------------------------------------------------------

    def begin_item_edit(self, item_id: int) -> ItemEditDraft:
        """Open a draft of an item, seeded with any update already staged."""
        self._ensure_idle()
        item = self.order.find_item(item_id)
        if self.ledger.is_staged_for_removal(item_id):
            raise ValidationError(f"{item.label} is marked for removal; undo the removal first")
        return ItemEditDraft(
            item,
            include_costs=self.is_admin,
            staged=self.ledger.staged_update(item_id),
        )

    def commit_item_draft(self, draft: ItemEditDraft) -> ValidationResult:
        """Fold a draft into the ledger.

        Invalid drafts are left out and their problems returned.  A draft
        equal to the server's item drops any update staged for it, so the
        ledger only ever holds real differences.
        """
        self._ensure_idle()
        allocation = draft.allocation
        errors = draft.validate()
        if errors:
            return ValidationResult(errors, draft.notices, allocation, staged=False)

        if not draft.is_changed:
            self.ledger.discard_item_update(draft.item_id)
            logger.debug("Item #%s unchanged; nothing staged", draft.item_id)
            return ValidationResult([], draft.notices + ["No changes made"], allocation, staged=False)

        self.ledger.stage_item_update(draft.to_update_instruction())
        logger.debug("Staged update for item #%s", draft.item_id)
        return ValidationResult([], draft.notices, allocation, staged=True)

    def stage_item_edit(self, item_id: int, spec: ItemEditSpec) -> ValidationResult:
        draft = self.begin_item_edit(item_id)
        draft.set_quantity(spec.quantity)
        if spec.deliveries is not None:
            try:
                draft.replace_slots(_to_slots(spec.deliveries))
            except ValidationError as exc:
                return ValidationResult([str(exc)], draft.notices, draft.allocation, staged=False)
        return self.commit_item_draft(draft)

    def stage_remove_item(self, item_id: int) -> bool:
        """Mark an item for removal; False when delivered history blocks it."""
        self._ensure_idle()
        try:
            self.ledger.stage_item_removal(item_id)
        except RemovalBlockedError as exc:
            logger.warning("Removal of item #%s blocked: %s", item_id, exc)
            return False
        logger.debug("Item #%s marked for removal", item_id)
        return True

    def undo_removal(self, item_id: int) -> bool:
        self._ensure_idle()
        return self.ledger.undo_removal(item_id)

    # --- New items ------------------------------------------------------------

    def begin_new_item(self, product_id: int, product_name: str = "") -> NewItemDraft:
        self._ensure_idle()
        return NewItemDraft(
            product_id, product_name=product_name, include_costs=self.is_admin
        )

    def commit_new_item(self, draft: NewItemDraft) -> ValidationResult:
        self._ensure_idle()
        allocation = draft.allocation
        errors = draft.validate()
        if errors:
            return ValidationResult(errors, draft.notices, allocation, staged=False)

        notices = draft.notices
        if draft.product_id in self.ledger.existing_product_ids():
            notices.append(
                f"{draft.product_name or f'Product #{draft.product_id}'} "
                "is already on this order; it will be added as a separate line."
            )
        self.ledger.stage_new_item(draft.to_new_item_request())
        logger.debug("Staged new item for product #%s", draft.product_id)
        return ValidationResult([], notices, allocation, staged=True)

    def stage_add_item(self, spec: NewItemSpec) -> ValidationResult:
        draft = self.begin_new_item(spec.product_id, spec.product_name)
        draft.set_quantity(spec.quantity)
        try:
            draft.replace_slots(_to_slots(spec.deliveries))
        except ValidationError as exc:
            return ValidationResult([str(exc)], draft.notices, draft.allocation, staged=False)
        return self.commit_new_item(draft)

    def unstage_new_item(self, index: int) -> NewItemRequest:
        self._ensure_idle()
        return self.ledger.unstage_new_item(index)

    # --- Order fields ---------------------------------------------------------

    def stage_field_edit(self, field_name: str, value: str | None) -> bool:
        self._ensure_idle()
        return self.ledger.stage_field_edit(field_name, value)

    # --- Aggregate state ------------------------------------------------------

    def has_pending_changes(self) -> bool:
        return self.ledger.has_pending_changes()

    def pending_change_count(self) -> int:
        return self.ledger.pending_change_count()

    def summary(self) -> list[str]:
        return self.ledger.summary()

    def build_payload(self) -> dict | None:
        return _build_payload(self.ledger, include_delivery_costs=self.is_admin)

    def reset(self, order: Order | None = None) -> None:
        """Discard every pending change, rebaselining on *order* if given."""
        self._ensure_idle()
        self.ledger.reset(order)
        logger.info("Edit session for order #%s reset", self.order.id)

    # --- Save coordination ----------------------------------------------------

    @contextmanager
    def saving(self) -> Iterator[None]:
        """Mark the session busy while one save is in flight."""
        if self._saving:
            raise SaveInProgressError("A save is already in progress for this order")
        self._saving = True
        try:
            yield
        finally:
            self._saving = False

    def _ensure_idle(self) -> None:
        if self._saving:
            raise SaveInProgressError(
                "Changes cannot be staged while a save is in progress"
            )


def _to_slots(edits: Iterable[DeliverySlotEdit]) -> list[DeliverySlot]:
    return [
        DeliverySlot(
            id=edit.id,
            quantity=to_decimal(edit.quantity),
            date=parse_date(edit.date),
            time=edit.time,
            truck_type=edit.truck_type or None,
            delivery_cost=(
                to_decimal(edit.delivery_cost) if edit.delivery_cost is not None else None
            ),
        )
        for edit in edits
    ]


# ---------------------------------------------------------------------------
# Flat entry points
# ---------------------------------------------------------------------------


def begin_edit_session(
    order: Order,
    items: Iterable[OrderItem] | None = None,
    *,
    is_admin: bool = False,
) -> EditSession:
    """Open a session on *order*; *items* overrides the order's own items."""
    if items is not None:
        order = replace(order, items=tuple(items))
    logger.info(
        "Edit session opened for order #%s (%d items, admin=%s)",
        order.id, len(order.items), is_admin,
    )
    return EditSession(order, is_admin=is_admin)


def stage_item_edit(session: EditSession, item_id: int, spec: ItemEditSpec) -> ValidationResult:
    return session.stage_item_edit(item_id, spec)


def stage_add_item(session: EditSession, spec: NewItemSpec) -> ValidationResult:
    return session.stage_add_item(spec)


def stage_remove_item(session: EditSession, item_id: int) -> bool:
    return session.stage_remove_item(item_id)


def stage_field_edit(session: EditSession, field_name: str, value: str | None) -> bool:
    return session.stage_field_edit(field_name, value)


def build_payload(session: EditSession) -> dict | None:
    return session.build_payload()


def reset_session(session: EditSession) -> None:
    session.reset()
