"""Order shipment tracking: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class MarkShipped:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkDelivered:
    order_id = Identifier(required=True)


@marketplace.command(part_of="Order")
class MarkCompleted:
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Order)
class OrderFulfillmentHandler:
    @handle(MarkShipped)
    def mark_shipped(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_shipped()
        repo.add(order)
        logger.info("Order shipped", order_id=str(order.id))

    @handle(MarkDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_delivered()
        repo.add(order)
        logger.info("Order delivered", order_id=str(order.id), delivered_at=str(order.delivery_date))

    @handle(MarkCompleted)
    def mark_completed(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.mark_completed()
        repo.add(order)
        logger.info("Order completed", order_id=str(order.id))
