"""Tests for cart line management and selection."""

import pytest
from marketplace.cart.cart import Cart, LineSelection
from marketplace.cart.events import CartCleared, CartLineAdded, CartLineRemoved, CartLineSelectionChanged
from marketplace.exceptions import CartRuleViolation, InsufficientStock
from marketplace.product.product import Product
from marketplace.seller.seller import Seller
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Description, ProductName, Username


def _make_product(name="Mug", price=12.5, stock=5):
    seller = Seller.register(Username(value="potter"))
    product = Product.create(
        name=ProductName(value=name),
        description=Description(value=f"{name} for sale"),
        price=Money.of(price),
        stock=stock,
    )
    seller.add_product(product)
    return product


def _make_cart():
    return Cart.create(client_id="client-001")


class TestAddProduct:
    def test_add_creates_line(self):
        cart = _make_cart()
        product = _make_product()
        cart.add_product(product, Quantity(value=2))
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2
        assert cart.lines[0].selection == LineSelection.UNSELECTED.value

    def test_add_same_product_merges(self):
        cart = _make_cart()
        product = _make_product()
        cart.add_product(product, Quantity(value=2))
        cart.add_product(product, Quantity(value=3))
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 5

    def test_existing_holdings_count_against_stock(self):
        cart = _make_cart()
        product = _make_product(stock=5)
        cart.add_product(product, Quantity(value=4))
        with pytest.raises(InsufficientStock):
            cart.add_product(product, Quantity(value=2))
        assert cart.lines[0].quantity == 4

    def test_add_raises_event(self):
        cart = _make_cart()
        product = _make_product()
        cart.add_product(product, Quantity(value=1))
        cart.add_product(product, Quantity(value=2))
        events = [e for e in cart._events if isinstance(e, CartLineAdded)]
        assert [(e.quantity, e.line_quantity) for e in events] == [(1, 1), (2, 3)]

    @pytest.mark.parametrize("adds", [[1, 1, 1], [2, 3], [5], [1, 4, 1, 2]])
    def test_line_never_exceeds_stock(self, adds):
        cart = _make_cart()
        product = _make_product(stock=5)
        for quantity in adds:
            try:
                cart.add_product(product, Quantity(value=quantity))
            except InsufficientStock:
                pass
            assert cart.line_for(product.id).quantity <= product.stock


class TestRemoveProduct:
    def test_remove(self):
        cart = _make_cart()
        product = _make_product()
        cart.add_product(product, Quantity(value=1))
        cart.remove_product(product.id)
        assert len(cart.lines) == 0
        assert any(isinstance(e, CartLineRemoved) for e in cart._events)

    def test_remove_missing_line_fails(self):
        cart = _make_cart()
        with pytest.raises(CartRuleViolation):
            cart.remove_product("prod-missing")


class TestSelection:
    def test_select_and_unselect(self):
        cart = _make_cart()
        product = _make_product()
        cart.add_product(product, Quantity(value=1))
        cart.select_for_buy(product.id)
        assert cart.line_for(product.id).is_selected
        cart.unselect_for_buy(product.id)
        assert not cart.line_for(product.id).is_selected
        events = [e.selection for e in cart._events if isinstance(e, CartLineSelectionChanged)]
        assert events == ["Selected", "Unselected"]

    def test_select_missing_line_fails(self):
        with pytest.raises(CartRuleViolation):
            _make_cart().select_for_buy("prod-missing")

    def test_select_all_and_unselect_all(self):
        cart = _make_cart()
        mug, plate = _make_product("Mug"), _make_product("Plate")
        cart.add_product(mug, Quantity(value=1))
        cart.add_product(plate, Quantity(value=1))
        cart.select_all()
        assert len(cart.selected_lines) == 2
        cart.unselect_all()
        assert cart.selected_lines == []


class TestClearing:
    def test_clear_selected_keeps_unselected(self):
        cart = _make_cart()
        mug, plate = _make_product("Mug"), _make_product("Plate")
        cart.add_product(mug, Quantity(value=1))
        cart.add_product(plate, Quantity(value=2))
        cart.select_for_buy(mug.id)
        cart.clear_selected()
        assert len(cart.lines) == 1
        assert str(cart.lines[0].product_id) == str(plate.id)
        event = [e for e in cart._events if isinstance(e, CartCleared)][-1]
        assert event.removed_count == 1
        assert event.selected_only is True

    def test_clear_removes_everything(self):
        cart = _make_cart()
        cart.add_product(_make_product("Mug"), Quantity(value=1))
        cart.add_product(_make_product("Plate"), Quantity(value=1))
        cart.clear()
        assert len(cart.lines) == 0


class TestTotalPrice:
    def test_total_uses_current_prices(self):
        cart = _make_cart()
        mug = _make_product("Mug", price=12.5)
        plate = _make_product("Plate", price=3.1)
        cart.add_product(mug, Quantity(value=2))
        cart.add_product(plate, Quantity(value=3))
        products = {str(mug.id): mug, str(plate.id): plate}
        assert cart.total_price(products) == Money.of(34.3)

        mug.price = Money.of(10)
        assert cart.total_price(products) == Money.of(29.3)
