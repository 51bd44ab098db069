"""Application service: Begin Order Edit use case.

Loads the order as the backend currently has it and opens an edit session
whose baseline is that state.
"""

from __future__ import annotations

from order_edit.application.edit_session import EditSession, begin_edit_session
from order_edit.domain.exceptions import EntityNotFoundError
from order_edit.domain.repository.order_repository import OrderRepository


class BeginOrderEditHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int, is_admin: bool = False) -> EditSession:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return begin_edit_session(order, is_admin=is_admin)
