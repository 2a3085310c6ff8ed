"""Tests for the Product aggregate: ownership, stock and listing."""

import pytest
from marketplace.exceptions import InsufficientStock, OwnershipViolation
from marketplace.product.events import (
    ListingStatusChanged,
    ProductCreated,
    ProductPriceChanged,
    StockAdjusted,
)
from marketplace.product.product import ListingStatus, Product
from marketplace.seller.seller import Seller
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Description, ProductName, Username


def _make_seller(name="acme"):
    return Seller.register(Username(value=name))


def _make_product(seller=None, price=100.0, stock=10):
    product = Product.create(
        name=ProductName(value="Headphones"),
        description=Description(value="Over-ear, noise cancelling"),
        price=Money.of(price),
        stock=stock,
    )
    if seller is not None:
        seller.add_product(product)
    return product


class TestProductCreation:
    def test_new_product_is_listed(self):
        product = _make_product()
        assert product.listing_status == ListingStatus.LISTED.value
        assert product.is_listed
        assert product.seller_id is None

    def test_creation_raises_event(self):
        product = _make_product(price=49.5, stock=3)
        events = [e for e in product._events if isinstance(e, ProductCreated)]
        assert len(events) == 1
        assert events[0].price == 49.5
        assert events[0].stock == 3

    def test_negative_stock_rejected(self):
        from protean.exceptions import ValidationError

        with pytest.raises(ValidationError):
            _make_product(stock=-1)


class TestSellerAssignment:
    def test_assign_to_seller(self):
        seller = _make_seller()
        product = _make_product(seller)
        assert product.is_owned_by(seller.id)

    def test_reassign_to_same_seller_is_noop(self):
        seller = _make_seller()
        product = _make_product(seller)
        product.assign_to_seller(seller.id)
        assert product.is_owned_by(seller.id)

    def test_assign_to_different_seller_fails(self):
        product = _make_product(_make_seller("first"))
        with pytest.raises(OwnershipViolation):
            product.assign_to_seller(_make_seller("second").id)


class TestSellerStockChanges:
    def test_increase_stock(self):
        seller = _make_seller()
        product = _make_product(seller, stock=2)
        product.increase_stock(seller, Quantity(value=5))
        assert product.stock == 7

    def test_decrease_stock_to_zero_allowed(self):
        seller = _make_seller()
        product = _make_product(seller, stock=2)
        product.decrease_stock(seller, Quantity(value=2))
        assert product.stock == 0

    def test_decrease_below_zero_fails(self):
        seller = _make_seller()
        product = _make_product(seller, stock=2)
        with pytest.raises(InsufficientStock):
            product.decrease_stock(seller, Quantity(value=3))
        assert product.stock == 2

    def test_other_seller_cannot_change_stock(self):
        product = _make_product(_make_seller("owner"), stock=2)
        with pytest.raises(OwnershipViolation):
            product.increase_stock(_make_seller("intruder"), Quantity(value=1))
        assert product.stock == 2

    def test_stock_change_raises_event(self):
        seller = _make_seller()
        product = _make_product(seller, stock=2)
        product.increase_stock(seller, Quantity(value=4))
        event = [e for e in product._events if isinstance(e, StockAdjusted)][-1]
        assert event.delta == 4
        assert event.new_stock == 6
        assert event.reason == "Replenished"


class TestOrderStockChanges:
    def test_remove_and_refund_for_order(self):
        seller = _make_seller()
        product = _make_product(seller, stock=5)
        product.remove_stock_for_order(seller.id, Quantity(value=3))
        assert product.stock == 2
        product.refund_stock_for_order(seller.id, Quantity(value=3))
        assert product.stock == 5

    def test_remove_more_than_stock_fails(self):
        seller = _make_seller()
        product = _make_product(seller, stock=1)
        with pytest.raises(InsufficientStock):
            product.remove_stock_for_order(seller.id, Quantity(value=2))

    def test_captured_seller_must_match(self):
        product = _make_product(_make_seller("owner"), stock=5)
        with pytest.raises(OwnershipViolation):
            product.remove_stock_for_order("someone-else", Quantity(value=1))


class TestListingAndPrice:
    def test_unlist_and_relist(self):
        seller = _make_seller()
        product = _make_product(seller)
        product.unlist(seller)
        assert product.listing_status == ListingStatus.UNLISTED.value
        product.relist(seller)
        assert product.is_listed
        changes = [e.listing_status for e in product._events if isinstance(e, ListingStatusChanged)]
        assert changes == ["Unlisted", "Listed"]

    def test_only_owner_can_unlist(self):
        product = _make_product(_make_seller("owner"))
        with pytest.raises(OwnershipViolation):
            product.unlist(_make_seller("intruder"))

    def test_change_price(self):
        seller = _make_seller()
        product = _make_product(seller, price=100)
        product.change_price(Money.of(120), seller)
        assert product.price == Money.of(120)
        event = [e for e in product._events if isinstance(e, ProductPriceChanged)][-1]
        assert event.previous_price == 100.0
        assert event.new_price == 120.0

    def test_only_owner_can_change_price(self):
        product = _make_product(_make_seller("owner"), price=100)
        with pytest.raises(OwnershipViolation):
            product.change_price(Money.of(1), _make_seller("intruder"))
        assert product.price == Money.of(100)
