"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A client placed a new order, either from selected cart lines or directly."""

    __version__ = 1

    order_id = Identifier(required=True)
    client_id = Identifier(required=True)
    lines = Text(required=True)  # JSON array of {product_id, seller_id, quantity}
    total_amount = Float(required=True)
    ordered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderPaid:
    __version__ = 1

    order_id = Identifier(required=True)
    client_id = Identifier(required=True)
    amount = Float(required=True)


@marketplace.event(part_of="Order")
class OrderShipped:
    __version__ = 1

    order_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCompleted:
    __version__ = 1

    order_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """A paid order was cancelled and its charges reversed."""

    __version__ = 1

    order_id = Identifier(required=True)
    client_id = Identifier(required=True)
    refunded_amount = Float(required=True)


@marketplace.event(part_of="Order")
class ReturnRequested:
    __version__ = 1

    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.event(part_of="Order")
class ReturnApproved:
    __version__ = 1

    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class ReturnRejected:
    __version__ = 1

    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)


@marketplace.event(part_of="Order")
class ReturnRefunded:
    """Returned units went back into stock for one seller's share of the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    restocked_units = Integer(required=True)
