"""Product aggregate: price, stock and listing status of one catalogue item.

Stock and price only change through the owning seller or through an order
that captured the seller id at creation time.
"""

from enum import Enum

from protean.fields import Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.exceptions import InsufficientStock, OwnershipViolation
from marketplace.product.events import (
    ListingStatusChanged,
    ProductAssignedToSeller,
    ProductCreated,
    ProductPriceChanged,
    StockAdjusted,
)
from marketplace.shared.money import Money
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Description, ProductName


class ListingStatus(Enum):
    LISTED = "Listed"
    UNLISTED = "Unlisted"


class StockReason(Enum):
    REPLENISHED = "Replenished"
    REDUCED = "Reduced"
    ORDER_PAID = "OrderPaid"
    ORDER_REFUNDED = "OrderRefunded"


@marketplace.aggregate
class Product:
    name = ValueObject(ProductName, required=True)
    description = ValueObject(Description, required=True)
    price = ValueObject(Money, required=True)
    stock = Integer(required=True, min_value=0, default=0)
    listing_status = String(choices=ListingStatus, default=ListingStatus.LISTED.value)
    seller_id = Identifier()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, name: ProductName, description: Description, price: Money, stock: int = 0):
        product = cls(
            name=name,
            description=description,
            price=price,
            stock=stock,
            listing_status=ListingStatus.LISTED.value,
        )
        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                name=name.value,
                price=price.amount,
                stock=stock,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def is_listed(self) -> bool:
        return self.listing_status == ListingStatus.LISTED.value

    def is_owned_by(self, seller_id) -> bool:
        return self.seller_id is not None and str(self.seller_id) == str(seller_id)

    def ensure_owned_by(self, seller_id):
        if not self.is_owned_by(seller_id):
            raise OwnershipViolation(
                {"seller_id": [f"Product {self.id} does not belong to seller {seller_id}"]}
            )

    def ensure_stock_for(self, quantity: int):
        if quantity > self.stock:
            raise InsufficientStock(
                {"stock": [f"Requested {quantity} units of product {self.id} but only {self.stock} in stock"]}
            )

    # -------------------------------------------------------------------
    # Seller assignment
    # -------------------------------------------------------------------
    def assign_to_seller(self, seller_id):
        if self.seller_id is not None and not self.is_owned_by(seller_id):
            raise OwnershipViolation({"seller_id": [f"Product {self.id} already belongs to another seller"]})
        if self.is_owned_by(seller_id):
            return

        self.seller_id = seller_id
        self.raise_(ProductAssignedToSeller(product_id=str(self.id), seller_id=str(seller_id)))

    # -------------------------------------------------------------------
    # Seller-driven stock changes
    # -------------------------------------------------------------------
    def increase_stock(self, seller, quantity: Quantity):
        self.ensure_owned_by(seller.id)
        self._adjust_stock(seller.id, quantity.value, StockReason.REPLENISHED)

    def decrease_stock(self, seller, quantity: Quantity):
        """Reduce stock by the seller. Reaching exactly zero is allowed."""
        self.ensure_owned_by(seller.id)
        self.ensure_stock_for(quantity.value)
        self._adjust_stock(seller.id, -quantity.value, StockReason.REDUCED)

    # -------------------------------------------------------------------
    # Order-driven stock changes, keyed by the seller id the order captured
    # -------------------------------------------------------------------
    def remove_stock_for_order(self, seller_id, quantity: Quantity):
        self.ensure_owned_by(seller_id)
        self.ensure_stock_for(quantity.value)
        self._adjust_stock(seller_id, -quantity.value, StockReason.ORDER_PAID)

    def refund_stock_for_order(self, seller_id, quantity: Quantity):
        self.ensure_owned_by(seller_id)
        self._adjust_stock(seller_id, quantity.value, StockReason.ORDER_REFUNDED)

    def _adjust_stock(self, seller_id, delta: int, reason: StockReason):
        self.stock += delta
        self.raise_(
            StockAdjusted(
                product_id=str(self.id),
                seller_id=str(seller_id),
                delta=delta,
                new_stock=self.stock,
                reason=reason.value,
            )
        )

    # -------------------------------------------------------------------
    # Listing and pricing
    # -------------------------------------------------------------------
    def unlist(self, seller):
        self.ensure_owned_by(seller.id)
        self._set_listing_status(ListingStatus.UNLISTED)

    def relist(self, seller):
        self.ensure_owned_by(seller.id)
        self._set_listing_status(ListingStatus.LISTED)

    def _set_listing_status(self, status: ListingStatus):
        if self.listing_status == status.value:
            return
        self.listing_status = status.value
        self.raise_(ListingStatusChanged(product_id=str(self.id), listing_status=status.value))

    def change_price(self, new_price: Money, seller):
        """Replace the price immediately. Unpaid orders and carts see the new price."""
        self.ensure_owned_by(seller.id)
        previous_price = self.price
        self.price = new_price
        self.raise_(
            ProductPriceChanged(
                product_id=str(self.id),
                previous_price=previous_price.amount,
                new_price=new_price.amount,
            )
        )
