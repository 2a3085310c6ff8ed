"""Return requests: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.client.client import Client
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.shared.quantity import Quantity

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Client")
class RequestReturn:
    """Ask to send units back. ``seller_id`` may be omitted when only one seller sold the product."""

    client_id = Identifier(required=True)
    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    seller_id = Identifier()


@marketplace.command_handler(part_of=Client)
class ReturnRequestHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        client = current_domain.repository_for(Client).get(command.client_id)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        client.request_return(
            order,
            command.product_id,
            Quantity(value=command.quantity),
            seller_id=command.seller_id,
        )
        order_repo.add(order)

        logger.info(
            "Return requested",
            order_id=str(order.id),
            product_id=str(command.product_id),
            quantity=command.quantity,
        )
