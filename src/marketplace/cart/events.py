"""Domain events for the Cart aggregate."""

from protean.fields import Boolean, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartLineAdded:
    """Units of a product were added to the cart, merged into any existing line."""

    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartLineSelectionChanged:
    __version__ = 1

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selection = String(required=True, max_length=20)


@marketplace.event(part_of="Cart")
class CartCleared:
    """Cart lines were dropped, either all of them or only the selected ones."""

    __version__ = 1

    cart_id = Identifier(required=True)
    removed_count = Integer(required=True)
    selected_only = Boolean(default=False)
