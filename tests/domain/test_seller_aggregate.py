"""Tests for the Seller aggregate: catalogue management and return decisions."""

import pytest
from marketplace.client.client import Client
from marketplace.exceptions import (
    InsufficientFunds,
    MarketplaceRuleViolation,
    OwnershipViolation,
    ReturnConflict,
)
from marketplace.order.order import ReturnStatus
from marketplace.product.product import ListingStatus, Product
from marketplace.seller.events import SellerBalanceChanged, SellerProductAdded, SellerProductDeleted
from marketplace.seller.seller import Seller
from marketplace.shared.balance import BalanceReason
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Description, ProductName, Username


def _make_seller(name="books"):
    return Seller.register(Username(value=name))


def _make_product(seller, name="Novel", price=20, stock=5):
    product = Product.create(
        name=ProductName(value=name),
        description=Description(value=f"{name} description"),
        price=Money.of(price),
        stock=stock,
    )
    seller.add_product(product)
    return product


class TestCatalogue:
    def test_add_product(self):
        seller = _make_seller()
        product = _make_product(seller)
        assert seller.owns(product.id)
        assert product.is_owned_by(seller.id)
        assert any(isinstance(e, SellerProductAdded) for e in seller._events)

    def test_adding_twice_is_refused(self):
        seller = _make_seller()
        product = _make_product(seller)
        with pytest.raises(MarketplaceRuleViolation):
            seller.add_product(product)
        assert len(seller.owned_products) == 1

    def test_cannot_add_product_of_another_seller(self):
        product = _make_product(_make_seller("owner"))
        with pytest.raises(OwnershipViolation):
            _make_seller("other").add_product(product)

    def test_ownership_requires_both_sides(self):
        seller = _make_seller()
        stray = Product.create(
            name=ProductName(value="Stray"),
            description=Description(value="Not in the catalogue"),
            price=Money.of(1),
            stock=1,
        )
        stray.assign_to_seller(seller.id)
        with pytest.raises(OwnershipViolation):
            seller.replenish_product(stray, Quantity(value=1))

    def test_stock_and_price_management(self):
        seller = _make_seller()
        product = _make_product(seller, price=20, stock=5)
        seller.replenish_product(product, Quantity(value=3))
        seller.reduce_product_stock(product, Quantity(value=8))
        seller.change_product_price(product, Money.of(18.5))
        assert product.stock == 0
        assert product.price == Money.of(18.5)

    def test_unlist_and_relist(self):
        seller = _make_seller()
        product = _make_product(seller)
        seller.unlist_product(product)
        assert product.listing_status == ListingStatus.UNLISTED.value
        seller.relist_product(product)
        assert product.is_listed

    def test_delete_requires_zero_stock(self):
        seller = _make_seller()
        product = _make_product(seller, stock=1)
        with pytest.raises(MarketplaceRuleViolation):
            seller.delete_product(product)
        assert seller.owns(product.id)

    def test_delete_unlists_and_drops(self):
        seller = _make_seller()
        product = _make_product(seller, stock=0)
        seller.delete_product(product)
        assert not seller.owns(product.id)
        assert not product.is_listed
        assert any(isinstance(e, SellerProductDeleted) for e in seller._events)

    def test_available_products(self):
        seller = _make_seller()
        listed = _make_product(seller, "Listed", stock=2)
        empty = _make_product(seller, "Empty", stock=0)
        hidden = _make_product(seller, "Hidden", stock=2)
        seller.unlist_product(hidden)
        foreign = _make_product(_make_seller("other"), "Foreign", stock=2)
        assert seller.available_products([listed, empty, hidden, foreign]) == [listed]


class TestBalance:
    def test_credit_and_debit(self):
        seller = _make_seller()
        seller.credit(Money.of(100), BalanceReason.ORDER_PAID, "order-1")
        seller.debit(Money.of(40), BalanceReason.ORDER_CANCELLED, "order-1")
        assert seller.balance == Money.of(60)
        deltas = [e.delta for e in seller._events if isinstance(e, SellerBalanceChanged)]
        assert deltas == [100.0, -40.0]

    def test_debit_beyond_balance_fails(self):
        seller = _make_seller()
        with pytest.raises(InsufficientFunds):
            seller.debit(Money.of(1), BalanceReason.ORDER_CANCELLED)
        assert seller.balance == Money.zero()


def _completed_purchase():
    """Client bought 2 novels from ``books``; the order is paid and completed."""
    client = Client.register(Username(value="reader"))
    client.open_cart()
    client.top_up_balance(Money.of(100))
    seller = _make_seller()
    novel = _make_product(seller, price=20, stock=5)
    products = {str(novel.id): novel}

    order = client.place_direct_order(novel, Quantity(value=2))
    client.pay(order, products, {str(seller.id): seller})
    order.mark_shipped()
    order.mark_delivered()
    order.mark_completed()
    return client, seller, novel, order, products


class TestApproveOrderReturn:
    def test_approve_refunds_and_restocks(self):
        client, seller, novel, order, products = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=1))

        refund = seller.approve_order_return(order, client, products)

        assert refund == Money.of(20)
        assert client.balance == Money.of(80)
        assert seller.balance == Money.of(20)
        assert novel.stock == 4
        assert order.return_status_for(seller.id) == ReturnStatus.REFUNDED

    def test_insufficient_seller_balance_leaves_return_requested(self):
        client, seller, novel, order, products = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=2))
        seller.debit(Money.of(30), BalanceReason.ORDER_CANCELLED)

        with pytest.raises(InsufficientFunds):
            seller.approve_order_return(order, client, products)

        assert order.return_status_for(seller.id) == ReturnStatus.REQUESTED
        assert client.balance == Money.of(60)
        assert seller.balance == Money.of(10)
        assert novel.stock == 3

    def test_approve_without_request_fails(self):
        client, seller, _, order, products = _completed_purchase()
        with pytest.raises(ReturnConflict):
            seller.approve_order_return(order, client, products)
        assert seller.balance == Money.of(40)

    def test_other_seller_cannot_approve(self):
        client, _, novel, order, products = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=1))
        with pytest.raises(OwnershipViolation):
            _make_seller("other").approve_order_return(order, client, products)

    def test_wrong_client_rejected(self):
        client, seller, novel, order, products = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=1))
        stranger = Client.register(Username(value="stranger"))
        with pytest.raises(OwnershipViolation):
            seller.approve_order_return(order, stranger, products)


class TestRejectOrderReturn:
    def test_reject(self):
        client, seller, novel, order, _ = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=1))
        seller.reject_order_return(order)
        assert order.return_status_for(seller.id) == ReturnStatus.REJECTED
        assert seller.balance == Money.of(40)
        assert client.balance == Money.of(60)

        with pytest.raises(ReturnConflict):
            client.request_return(order, novel.id, Quantity(value=1))

    def test_other_seller_cannot_reject(self):
        client, _, novel, order, _ = _completed_purchase()
        client.request_return(order, novel.id, Quantity(value=1))
        with pytest.raises(OwnershipViolation):
            _make_seller("other").reject_order_return(order)
