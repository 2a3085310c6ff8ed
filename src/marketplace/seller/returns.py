"""Seller decisions on return requests: commands and handler."""

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

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Seller")
class ApproveReturn:
    seller_id = Identifier(required=True)
    order_id = Identifier(required=True)


@marketplace.command(part_of="Seller")
class RejectReturn:
    seller_id = Identifier(required=True)
    order_id = Identifier(required=True)


@marketplace.command_handler(part_of=Seller)
class ReturnDecisionHandler:
    @handle(ApproveReturn)
    def approve_return(self, command):
        seller_repo = current_domain.repository_for(Seller)
        order_repo = current_domain.repository_for(Order)
        client_repo = current_domain.repository_for(Client)
        product_repo = current_domain.repository_for(Product)

        seller = seller_repo.get(command.seller_id)
        order = order_repo.get(command.order_id)
        client = client_repo.get(order.client_id)
        products = {str(row.product_id): product_repo.get(row.product_id) for row in order.return_rows_for(seller.id)}

        try:
            refund = seller.approve_order_return(order, client, products)
        except MarketplaceRuleViolation as exc:
            logger.warning(
                "Return approval refused",
                order_id=str(command.order_id),
                seller_id=str(command.seller_id),
                errors=exc.messages,
            )
            raise

        seller_repo.add(seller)
        client_repo.add(client)
        order_repo.add(order)
        for product in products.values():
            product_repo.add(product)

        logger.info(
            "Return refunded",
            order_id=str(order.id),
            seller_id=str(seller.id),
            client_id=str(client.id),
            amount=refund.amount,
        )

    @handle(RejectReturn)
    def reject_return(self, command):
        seller = current_domain.repository_for(Seller).get(command.seller_id)
        order_repo = current_domain.repository_for(Order)
        order = order_repo.get(command.order_id)

        seller.reject_order_return(order)
        order_repo.add(order)

        logger.info("Return rejected", order_id=str(order.id), seller_id=str(seller.id))
