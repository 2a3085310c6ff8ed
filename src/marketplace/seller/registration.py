"""Seller registration: commands and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.seller.seller import Seller
from marketplace.shared.text import Username

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Seller")
class RegisterSeller:
    username = String(required=True, max_length=100)


@marketplace.command(part_of="Seller")
class ChangeSellerUsername:
    seller_id = Identifier(required=True)
    username = String(required=True, max_length=100)


@marketplace.command_handler(part_of=Seller)
class SellerAccountHandler:
    @handle(RegisterSeller)
    def register_seller(self, command):
        seller = Seller.register(Username(value=command.username))
        current_domain.repository_for(Seller).add(seller)

        logger.info("Seller registered", seller_id=str(seller.id))
        return str(seller.id)

    @handle(ChangeSellerUsername)
    def change_username(self, command):
        repo = current_domain.repository_for(Seller)
        seller = repo.get(command.seller_id)
        if seller.change_username(Username(value=command.username)):
            repo.add(seller)
