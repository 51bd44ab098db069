"""Abstract repository for the Order aggregate (the order-detail source).

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (JSON, HTTP, in-memory)
live in the infrastructure layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from order_edit.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order with its items and deliveries, or None if not found."""
