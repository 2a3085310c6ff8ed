"""Cart aggregate: a client's staging area before checkout.

One line per distinct product. Lines carry a selection flag; checkout of the
selected lines consumes them and leaves the rest in place.
"""

from enum import Enum

from protean.fields import HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCleared, CartLineAdded, CartLineRemoved, CartLineSelectionChanged
from marketplace.domain import marketplace
from marketplace.exceptions import CartRuleViolation, InsufficientStock
from marketplace.shared.money import Money, total
from marketplace.shared.quantity import Quantity


class LineSelection(Enum):
    UNSELECTED = "Unselected"
    SELECTED = "Selected"


@marketplace.entity(part_of="Cart")
class CartLine:
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    selection = String(choices=LineSelection, default=LineSelection.UNSELECTED.value)

    @property
    def is_selected(self) -> bool:
        return self.selection == LineSelection.SELECTED.value


@marketplace.aggregate
class Cart:
    client_id = Identifier(required=True)
    lines = HasMany(CartLine)

    @classmethod
    def create(cls, client_id):
        return cls(client_id=client_id)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def line_for(self, product_id):
        return next((line for line in self.lines if str(line.product_id) == str(product_id)), None)

    def line_for_or_raise(self, product_id) -> CartLine:
        line = self.line_for(product_id)
        if line is None:
            raise CartRuleViolation({"product_id": [f"Product {product_id} is not in the cart"]})
        return line

    @property
    def selected_lines(self):
        return [line for line in self.lines if line.is_selected]

    def total_price(self, products) -> Money:
        """Sum of current product price times quantity over every line."""
        return total(products[str(line.product_id)].price * line.quantity for line in self.lines)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_product(self, product, quantity: Quantity):
        """Add units of a product, merging into an existing line.

        Existing holdings plus the new units may not exceed the product's
        current stock.
        """
        existing = self.line_for(product.id)
        held = existing.quantity if existing else 0
        if held + quantity.value > product.stock:
            raise InsufficientStock(
                {
                    "quantity": [
                        f"Cart would hold {held + quantity.value} units of product {product.id} "
                        f"but only {product.stock} in stock"
                    ]
                }
            )

        if existing:
            existing.quantity += quantity.value
            line_quantity = existing.quantity
        else:
            self.add_lines(CartLine(product_id=product.id, quantity=quantity.value))
            line_quantity = quantity.value

        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                product_id=str(product.id),
                quantity=quantity.value,
                line_quantity=line_quantity,
            )
        )

    def remove_product(self, product_id):
        line = self.line_for_or_raise(product_id)
        self.remove_lines(line)
        self.raise_(CartLineRemoved(cart_id=str(self.id), product_id=str(product_id)))

    # -------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------
    def select_for_buy(self, product_id):
        self._set_selection(self.line_for_or_raise(product_id), LineSelection.SELECTED)

    def unselect_for_buy(self, product_id):
        self._set_selection(self.line_for_or_raise(product_id), LineSelection.UNSELECTED)

    def select_all(self):
        for line in self.lines:
            self._set_selection(line, LineSelection.SELECTED)

    def unselect_all(self):
        for line in self.lines:
            self._set_selection(line, LineSelection.UNSELECTED)

    def _set_selection(self, line: CartLine, selection: LineSelection):
        if line.selection == selection.value:
            return
        line.selection = selection.value
        self.raise_(
            CartLineSelectionChanged(
                cart_id=str(self.id),
                product_id=str(line.product_id),
                selection=selection.value,
            )
        )

    # -------------------------------------------------------------------
    # Clearing
    # -------------------------------------------------------------------
    def clear_selected(self):
        """Drop only the selected lines, as after a checkout."""
        self._drop(self.selected_lines, selected_only=True)

    def clear(self):
        self._drop(list(self.lines), selected_only=False)

    def _drop(self, lines, selected_only: bool):
        for line in lines:
            self.remove_lines(line)
        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                removed_count=len(lines),
                selected_only=selected_only,
            )
        )
