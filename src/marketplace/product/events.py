"""Domain events for the Product aggregate."""

from protean.fields import Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class ProductCreated:
    """A new product was added to the catalogue."""

    __version__ = 1

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True)
    stock = Integer(required=True)


@marketplace.event(part_of="Product")
class ProductAssignedToSeller:
    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)


@marketplace.event(part_of="Product")
class ProductPriceChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)


@marketplace.event(part_of="Product")
class StockAdjusted:
    """Stock went up or down, either by the seller or by an order."""

    __version__ = 1

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    delta = Integer(required=True)
    new_stock = Integer(required=True)
    reason = String(required=True, max_length=50)


@marketplace.event(part_of="Product")
class ListingStatusChanged:
    __version__ = 1

    product_id = Identifier(required=True)
    listing_status = String(required=True, max_length=20)
