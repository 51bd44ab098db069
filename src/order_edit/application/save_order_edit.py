"""Application service: Save Order Edit use case.

Sends the session's batch payload to the backend of record.  The ledger is
reset only after the backend accepts the batch; on any failure it is left
exactly as it was so the operator can correct and retry without re-entering
anything.  Failures are surfaced, never retried here.
"""

from __future__ import annotations

import logging

from order_edit.application.dto import OrderDTO
from order_edit.application.edit_session import EditSession
from order_edit.application.show_order import order_to_dto
from order_edit.domain.exceptions import SaveFailedError
from order_edit.domain.repository.order_edit_gateway import OrderEditGateway

logger = logging.getLogger(__name__)


class SaveOrderEditHandler:

    def __init__(self, gateway: OrderEditGateway) -> None:
        self._gateway = gateway

    def handle(self, session: EditSession) -> OrderDTO | None:
        """Save all pending changes; returns None when there is nothing to save."""
        payload = session.build_payload()
        if payload is None:
            logger.info("Order #%s has no pending changes; nothing saved", session.order.id)
            return None

        order_id = session.order.id
        with session.saving():
            try:
                saved = self._gateway.apply(order_id, payload)
            except SaveFailedError as exc:
                logger.warning("Saving order #%s failed: %s", order_id, exc)
                raise

        count = session.pending_change_count()
        session.reset(saved)
        logger.info("Order #%s saved (%d change(s))", order_id, count)
        return order_to_dto(saved)
