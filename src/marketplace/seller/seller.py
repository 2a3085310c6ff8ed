"""Seller aggregate: owned products, business balance and return decisions."""

from protean.fields import HasMany, Identifier, ValueObject

from marketplace.domain import marketplace
from marketplace.exceptions import (
    InsufficientFunds,
    MarketplaceRuleViolation,
    OwnershipViolation,
    ReturnConflict,
)
from marketplace.seller.events import (
    SellerBalanceChanged,
    SellerProductAdded,
    SellerProductDeleted,
    SellerRegistered,
    SellerUsernameChanged,
)
from marketplace.shared.balance import BalanceReason
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Username


@marketplace.entity(part_of="Seller")
class OwnedProduct:
    product_id = Identifier(required=True)


@marketplace.aggregate
class Seller:
    """A merchant selling products on the marketplace.

    Sellers are credited when clients pay, debited when paid orders are
    cancelled, and refund approved returns out of their own balance.
    """

    username = ValueObject(Username, required=True)
    balance = ValueObject(Money, required=True)
    owned_products = HasMany(OwnedProduct)

    @classmethod
    def register(cls, username: Username):
        seller = cls(username=username, balance=Money.zero())
        seller.raise_(SellerRegistered(seller_id=str(seller.id), username=username.value))
        return seller

    def change_username(self, username: Username) -> bool:
        if self.username == username:
            return False
        previous = self.username
        self.username = username
        self.raise_(
            SellerUsernameChanged(
                seller_id=str(self.id),
                previous_username=previous.value,
                new_username=username.value,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Balance
    # -------------------------------------------------------------------
    def ensure_can_cover(self, amount: Money):
        if self.balance < amount:
            raise InsufficientFunds(
                {"balance": [f"Seller {self.id} balance {self.balance} cannot cover {amount}"]}
            )

    def credit(self, amount: Money, reason: BalanceReason, reference_id=None):
        self.balance = self.balance + amount
        self._record_balance_change(amount.amount, reason, reference_id)

    def debit(self, amount: Money, reason: BalanceReason, reference_id=None):
        self.ensure_can_cover(amount)
        self.balance = self.balance - amount
        self._record_balance_change(-amount.amount, reason, reference_id)

    def _record_balance_change(self, delta, reason, reference_id):
        self.raise_(
            SellerBalanceChanged(
                seller_id=str(self.id),
                delta=delta,
                new_balance=self.balance.amount,
                reason=reason.value,
                reference_id=str(reference_id) if reference_id else None,
            )
        )

    # -------------------------------------------------------------------
    # Product ownership
    # -------------------------------------------------------------------
    def owns(self, product_id) -> bool:
        return any(str(owned.product_id) == str(product_id) for owned in self.owned_products)

    def ensure_ownership(self, product):
        if not product.is_owned_by(self.id) or not self.owns(product.id):
            raise OwnershipViolation({"product_id": [f"Seller {self.id} does not own product {product.id}"]})

    def available_products(self, products):
        """Owned products that are listed and in stock."""
        return [
            product
            for product in products
            if self.owns(product.id) and product.is_listed and product.stock > 0
        ]

    # -------------------------------------------------------------------
    # Product lifecycle
    # -------------------------------------------------------------------
    def add_product(self, product):
        if self.owns(product.id):
            raise MarketplaceRuleViolation(
                {"product_id": [f"Product {product.id} is already in the catalogue of seller {self.id}"]}
            )
        product.assign_to_seller(self.id)
        self.add_owned_products(OwnedProduct(product_id=product.id))
        self.raise_(SellerProductAdded(seller_id=str(self.id), product_id=str(product.id)))

    def unlist_product(self, product):
        self.ensure_ownership(product)
        product.unlist(self)

    def relist_product(self, product):
        self.ensure_ownership(product)
        product.relist(self)

    def delete_product(self, product):
        """Unlist the product and drop it from the seller's catalogue.

        Only products with no remaining stock can be deleted.
        """
        self.ensure_ownership(product)
        if product.stock != 0:
            raise MarketplaceRuleViolation(
                {"stock": [f"Product {product.id} still has {product.stock} units in stock"]}
            )

        product.unlist(self)
        owned = next(o for o in self.owned_products if str(o.product_id) == str(product.id))
        self.remove_owned_products(owned)
        self.raise_(SellerProductDeleted(seller_id=str(self.id), product_id=str(product.id)))

    def replenish_product(self, product, quantity: Quantity):
        self.ensure_ownership(product)
        product.increase_stock(self, quantity)

    def reduce_product_stock(self, product, quantity: Quantity):
        self.ensure_ownership(product)
        product.decrease_stock(self, quantity)

    def change_product_price(self, product, new_price: Money):
        self.ensure_ownership(product)
        product.change_price(new_price, self)

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------
    def _ensure_sold_in(self, order):
        if not order.lines_for_seller(self.id):
            raise OwnershipViolation({"order_id": [f"Order {order.id} has no lines sold by seller {self.id}"]})

    def approve_order_return(self, order, client, products):
        """Refund the client for the requested units and restock them.

        Every check runs before the seller is debited; the order is touched
        only after the money has moved.
        """
        self._ensure_sold_in(order)
        if not order.belongs_to(client.id):
            raise OwnershipViolation({"client_id": [f"Order {order.id} was not placed by client {client.id}"]})
        order.ensure_return_requested(self.id)

        refund = order.refund_amount_for(self.id)
        if refund.is_zero:
            raise ReturnConflict({"quantity": [f"Nothing to refund for seller {self.id} on order {order.id}"]})
        self.ensure_can_cover(refund)

        for row in order.return_rows_for(self.id):
            if str(row.product_id) not in products:
                raise ReturnConflict({"product_id": [f"Product {row.product_id} is required to restock the return"]})

        self.debit(refund, BalanceReason.RETURN_REFUNDED, order.id)
        client.credit(refund, BalanceReason.RETURN_REFUNDED, order.id)
        order.approve_return(self.id)
        order.mark_refunded(self.id, products)
        return refund

    def reject_order_return(self, order):
        self._ensure_sold_in(order)
        order.reject_return(self.id)
