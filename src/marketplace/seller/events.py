"""Domain events for the Seller aggregate."""

from protean.fields import Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Seller")
class SellerRegistered:
    __version__ = 1

    seller_id = Identifier(required=True)
    username = String(required=True, max_length=100)


@marketplace.event(part_of="Seller")
class SellerUsernameChanged:
    __version__ = 1

    seller_id = Identifier(required=True)
    previous_username = String(required=True, max_length=100)
    new_username = String(required=True, max_length=100)


@marketplace.event(part_of="Seller")
class SellerBalanceChanged:
    """Money moved in or out of the seller's business balance."""

    __version__ = 1

    seller_id = Identifier(required=True)
    delta = Float(required=True)
    new_balance = Float(required=True)
    reason = String(required=True, max_length=50)
    reference_id = Identifier()


@marketplace.event(part_of="Seller")
class SellerProductAdded:
    __version__ = 1

    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.event(part_of="Seller")
class SellerProductDeleted:
    __version__ = 1

    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
