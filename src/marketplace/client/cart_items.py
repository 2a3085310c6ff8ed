"""Cart management on behalf of a client: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.client.client import Client
from marketplace.domain import marketplace
from marketplace.product.product import Product
from marketplace.shared.quantity import Quantity


@marketplace.command(part_of="Client")
class AddToCart:
    client_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.command(part_of="Client")
class RemoveFromCart:
    client_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Client")
class ClearCart:
    client_id = Identifier(required=True)


@marketplace.command(part_of="Client")
class SelectForOrder:
    client_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command(part_of="Client")
class UnselectForOrder:
    client_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.command_handler(part_of=Client)
class ManageCartHandler:
    def _load(self, client_id):
        client = current_domain.repository_for(Client).get(client_id)
        cart = current_domain.repository_for(Cart).get(client.cart_id)
        return client, cart

    @handle(AddToCart)
    def add_to_cart(self, command):
        client, cart = self._load(command.client_id)
        product = current_domain.repository_for(Product).get(command.product_id)
        client.add_to_cart(cart, product, Quantity(value=command.quantity))
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        client, cart = self._load(command.client_id)
        client.remove_from_cart(cart, command.product_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        client, cart = self._load(command.client_id)
        client.clear_cart(cart)
        current_domain.repository_for(Cart).add(cart)

    @handle(SelectForOrder)
    def select_for_order(self, command):
        client, cart = self._load(command.client_id)
        client.select_for_order(cart, command.product_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(UnselectForOrder)
    def unselect_for_order(self, command):
        client, cart = self._load(command.client_id)
        client.unselect_for_order(cart, command.product_id)
        current_domain.repository_for(Cart).add(cart)
