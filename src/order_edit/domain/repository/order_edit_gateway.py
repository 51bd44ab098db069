"""Abstract gateway to the backend's batch order-edit endpoint."""

from __future__ import annotations

from abc import ABC, abstractmethod

from order_edit.domain.model.order import Order


class OrderEditGateway(ABC):

    @abstractmethod
    def apply(self, order_id: int, payload: dict) -> Order:
        """Apply a batch edit atomically and return the order as saved.

        Raises SaveFailedError when the backend rejects the payload or
        cannot be reached; nothing is applied in that case.
        """
