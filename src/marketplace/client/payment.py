"""Order payment and cancellation: commands and handler.

Each command moves money between the client and every seller on the order
and adjusts product stock. All touched aggregates are persisted in the same
unit of work, so a refused step leaves every balance and stock unchanged.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from marketplace.client.client import Client
from marketplace.domain import marketplace
from marketplace.exceptions import MarketplaceRuleViolation
from marketplace.order.order import Order
from marketplace.product.product import Product
from marketplace.seller.seller import Seller
from marketplace.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Client")
class PayForOrder:
    client_id = Identifier(required=True)
    order_id = Identifier(required=True)


@marketplace.command(part_of="Client")
class CancelOrder:
    client_id = Identifier(required=True)
    order_id = Identifier(required=True)


def load_order_parties(order):
    """Fetch the products and sellers behind every line of an order, keyed by id."""
    product_repo = current_domain.repository_for(Product)
    seller_repo = current_domain.repository_for(Seller)

    products = {}
    sellers = {}
    for line in order.lines:
        if str(line.product_id) not in products:
            products[str(line.product_id)] = product_repo.get(line.product_id)
        if str(line.seller_id) not in sellers:
            sellers[str(line.seller_id)] = seller_repo.get(line.seller_id)
    return products, sellers


def persist(client, order, products, sellers):
    current_domain.repository_for(Client).add(client)
    current_domain.repository_for(Order).add(order)

    product_repo = current_domain.repository_for(Product)
    for product in products.values():
        product_repo.add(product)

    seller_repo = current_domain.repository_for(Seller)
    for seller in sellers.values():
        seller_repo.add(seller)


@marketplace.command_handler(part_of=Client)
class OrderPaymentHandler:
    @handle(PayForOrder)
    def pay_for_order(self, command):
        add_context(order_id=str(command.order_id), client_id=str(command.client_id))
        try:
            client = current_domain.repository_for(Client).get(command.client_id)
            order = current_domain.repository_for(Order).get(command.order_id)
            products, sellers = load_order_parties(order)

            try:
                amount = client.pay(order, products, sellers)
            except MarketplaceRuleViolation as exc:
                logger.warning("Payment refused", errors=exc.messages)
                raise

            persist(client, order, products, sellers)
            logger.info("Order paid", amount=amount.amount, seller_count=len(sellers))
        finally:
            clear_context()

    @handle(CancelOrder)
    def cancel_order(self, command):
        add_context(order_id=str(command.order_id), client_id=str(command.client_id))
        try:
            client = current_domain.repository_for(Client).get(command.client_id)
            order = current_domain.repository_for(Order).get(command.order_id)
            products, sellers = load_order_parties(order)

            try:
                refund = client.cancel(order, products, sellers)
            except MarketplaceRuleViolation as exc:
                logger.warning("Cancellation refused", errors=exc.messages)
                raise

            persist(client, order, products, sellers)
            logger.info("Order cancelled", refunded_amount=refund.amount)
        finally:
            clear_context()
