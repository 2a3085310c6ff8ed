"""Domain events for the Client aggregate."""

from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Client")
class ClientRegistered:
    __version__ = 1

    client_id = Identifier(required=True)
    username = String(required=True, max_length=100)


@marketplace.event(part_of="Client")
class ClientUsernameChanged:
    __version__ = 1

    client_id = Identifier(required=True)
    previous_username = String(required=True, max_length=100)
    new_username = String(required=True, max_length=100)


@marketplace.event(part_of="Client")
class CartOpened:
    __version__ = 1

    client_id = Identifier(required=True)
    cart_id = Identifier(required=True)


@marketplace.event(part_of="Client")
class ClientBalanceChanged:
    """Money moved in or out of the client's balance."""

    __version__ = 1

    client_id = Identifier(required=True)
    delta = Float(required=True)
    new_balance = Float(required=True)
    reason = String(required=True, max_length=50)
    reference_id = Identifier()


@marketplace.event(part_of="Client")
class PurchaseRecorded:
    """A newly placed order was appended to the client's purchase history."""

    __version__ = 1

    client_id = Identifier(required=True)
    order_id = Identifier(required=True)
    placed_at = DateTime(required=True)
