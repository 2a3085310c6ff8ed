"""Order placement: commands and handler.

Both commands return the id of the new pending order.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.client.client import Client
from marketplace.domain import marketplace
from marketplace.order.order import Order
from marketplace.product.product import Product
from marketplace.shared.quantity import Quantity

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Client")
class PlaceSelectedOrder:
    """Check out every selected line of the client's cart."""

    client_id = Identifier(required=True)


@marketplace.command(part_of="Client")
class PlaceDirectOrder:
    """Order a product straight away, bypassing the cart."""

    client_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command_handler(part_of=Client)
class CheckoutHandler:
    @handle(PlaceSelectedOrder)
    def place_selected_order(self, command):
        client_repo = current_domain.repository_for(Client)
        cart_repo = current_domain.repository_for(Cart)
        product_repo = current_domain.repository_for(Product)

        client = client_repo.get(command.client_id)
        cart = cart_repo.get(client.cart_id)
        products = {str(line.product_id): product_repo.get(line.product_id) for line in cart.selected_lines}

        order = client.place_selected_order_from_cart(cart, products)

        current_domain.repository_for(Order).add(order)
        client_repo.add(client)
        cart_repo.add(cart)

        logger.info(
            "Order placed from cart",
            order_id=str(order.id),
            client_id=str(client.id),
            line_count=len(order.lines),
            total_amount=order.total_amount.amount,
        )
        return str(order.id)

    @handle(PlaceDirectOrder)
    def place_direct_order(self, command):
        client_repo = current_domain.repository_for(Client)

        client = client_repo.get(command.client_id)
        product = current_domain.repository_for(Product).get(command.product_id)

        order = client.place_direct_order(product, Quantity(value=command.quantity))

        current_domain.repository_for(Order).add(order)
        client_repo.add(client)

        logger.info(
            "Direct order placed",
            order_id=str(order.id),
            client_id=str(client.id),
            product_id=str(product.id),
            quantity=command.quantity,
        )
        return str(order.id)
