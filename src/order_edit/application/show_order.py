"""Application service: Show Order use case (query)."""

from __future__ import annotations

from order_edit.application.dto import DeliveryDTO, OrderDTO, OrderItemDTO
from order_edit.domain.exceptions import EntityNotFoundError
from order_edit.domain.model.order import Order
from order_edit.domain.model.value_objects import format_quantity
from order_edit.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,
        po_number=order.po_number,
        status=order.status,
        contact_person_name=order.contact_person_name or "",
        contact_person_number=order.contact_person_number or "",
        site_instructions=order.site_instructions or "",
        items=[
            OrderItemDTO(
                id=item.id,
                product_id=item.product_id,
                product_name=item.label,
                unit_of_measure=item.unit_of_measure,
                quantity=format_quantity(item.quantity),
                delivered_quantity=format_quantity(item.delivered_quantity),
                can_be_removed=item.can_be_removed,
                deliveries=[
                    DeliveryDTO(
                        id=d.id,
                        quantity=format_quantity(d.quantity),
                        date=d.date.isoformat() if d.date else "",
                        time=d.time or "",
                        status=d.status.value,
                        truck_type=d.truck_type or "",
                        locked=d.is_locked,
                    )
                    for d in item.deliveries
                ],
            )
            for item in order.items
        ],
    )
