"""Client registration and balance top-up: commands and handler."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.client.client import Client
from marketplace.domain import marketplace
from marketplace.shared.money import Money
from marketplace.shared.text import Username

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Client")
class RegisterClient:
    """Create a buyer account together with its empty cart."""

    username = String(required=True, max_length=100)


@marketplace.command(part_of="Client")
class TopUpBalance:
    client_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)


@marketplace.command(part_of="Client")
class ChangeClientUsername:
    client_id = Identifier(required=True)
    username = String(required=True, max_length=100)


@marketplace.command_handler(part_of=Client)
class ClientAccountHandler:
    @handle(RegisterClient)
    def register_client(self, command):
        client = Client.register(Username(value=command.username))
        cart = client.open_cart()

        current_domain.repository_for(Client).add(client)
        current_domain.repository_for(Cart).add(cart)

        logger.info("Client registered", client_id=str(client.id), cart_id=str(cart.id))
        return str(client.id)

    @handle(TopUpBalance)
    def top_up_balance(self, command):
        repo = current_domain.repository_for(Client)
        client = repo.get(command.client_id)
        client.top_up_balance(Money.of(command.amount))
        repo.add(client)

        logger.info("Client balance topped up", client_id=str(client.id), balance=client.balance.amount)

    @handle(ChangeClientUsername)
    def change_username(self, command):
        repo = current_domain.repository_for(Client)
        client = repo.get(command.client_id)
        if client.change_username(Username(value=command.username)):
            repo.add(client)
