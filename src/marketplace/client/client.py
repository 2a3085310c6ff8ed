"""Client aggregate: the buyer who drives checkout, payment, cancellation and returns.

A client owns exactly one Cart (referenced by id) and an append-only purchase
history. Operations that span several aggregates receive them already loaded
and keyed by string id: ``products`` maps product id to Product, ``sellers``
maps seller id to Seller. Every operation runs all of its checks before it
changes anything.
"""

from collections import defaultdict

from protean.fields import DateTime, HasMany, Identifier, ValueObject

from marketplace.cart.cart import Cart
from marketplace.client.events import (
    CartOpened,
    ClientBalanceChanged,
    ClientRegistered,
    ClientUsernameChanged,
    PurchaseRecorded,
)
from marketplace.domain import marketplace
from marketplace.exceptions import (
    CartRuleViolation,
    InsufficientFunds,
    MarketplaceRuleViolation,
    OwnershipViolation,
)
from marketplace.order.order import Order, OrderStatus
from marketplace.shared.balance import BalanceReason
from marketplace.shared.money import Money, total
from marketplace.shared.quantity import Quantity
from marketplace.shared.text import Username


@marketplace.entity(part_of="Client")
class PurchaseRecord:
    order_id = Identifier(required=True)
    placed_at = DateTime(required=True)


@marketplace.aggregate
class Client:
    username = ValueObject(Username, required=True)
    balance = ValueObject(Money, required=True)
    cart_id = Identifier()
    purchases = HasMany(PurchaseRecord)

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def register(cls, username: Username):
        client = cls(username=username, balance=Money.zero())
        client.raise_(ClientRegistered(client_id=str(client.id), username=username.value))
        return client

    def open_cart(self) -> Cart:
        if self.cart_id is not None:
            raise CartRuleViolation({"cart_id": [f"Client {self.id} already has a cart"]})

        cart = Cart.create(client_id=self.id)
        self.cart_id = cart.id
        self.raise_(CartOpened(client_id=str(self.id), cart_id=str(cart.id)))
        return cart

    def change_username(self, username: Username) -> bool:
        if self.username == username:
            return False
        previous = self.username
        self.username = username
        self.raise_(
            ClientUsernameChanged(
                client_id=str(self.id),
                previous_username=previous.value,
                new_username=username.value,
            )
        )
        return True

    @property
    def purchase_history(self):
        """Order ids in the order they were placed."""
        return [str(record.order_id) for record in sorted(self.purchases, key=lambda r: r.placed_at)]

    # -------------------------------------------------------------------
    # Balance
    # -------------------------------------------------------------------
    def top_up_balance(self, amount: Money):
        if amount.is_zero:
            raise MarketplaceRuleViolation({"amount": ["Top-up amount must be greater than zero"]})
        self.credit(amount, BalanceReason.TOP_UP)

    def ensure_can_cover(self, amount: Money):
        if self.balance < amount:
            raise InsufficientFunds({"balance": [f"Client {self.id} balance {self.balance} cannot cover {amount}"]})

    def credit(self, amount: Money, reason: BalanceReason, reference_id=None):
        self.balance = self.balance + amount
        self._record_balance_change(amount.amount, reason, reference_id)

    def debit(self, amount: Money, reason: BalanceReason, reference_id=None):
        self.ensure_can_cover(amount)
        self.balance = self.balance - amount
        self._record_balance_change(-amount.amount, reason, reference_id)

    def _record_balance_change(self, delta, reason, reference_id):
        self.raise_(
            ClientBalanceChanged(
                client_id=str(self.id),
                delta=delta,
                new_balance=self.balance.amount,
                reason=reason.value,
                reference_id=str(reference_id) if reference_id else None,
            )
        )

    # -------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------
    def _ensure_owns_cart(self, cart: Cart):
        if str(cart.client_id) != str(self.id) or str(cart.id) != str(self.cart_id):
            raise OwnershipViolation({"cart_id": [f"Cart {cart.id} does not belong to client {self.id}"]})

    def add_to_cart(self, cart: Cart, product, quantity: Quantity):
        self._ensure_owns_cart(cart)
        if not product.is_listed:
            raise CartRuleViolation({"product_id": [f"Product {product.id} is not listed for sale"]})
        cart.add_product(product, quantity)

    def remove_from_cart(self, cart: Cart, product_id):
        self._ensure_owns_cart(cart)
        cart.remove_product(product_id)

    def clear_cart(self, cart: Cart):
        self._ensure_owns_cart(cart)
        cart.clear()

    def select_for_order(self, cart: Cart, product_id):
        self._ensure_owns_cart(cart)
        cart.select_for_buy(product_id)

    def unselect_for_order(self, cart: Cart, product_id):
        self._ensure_owns_cart(cart)
        cart.unselect_for_buy(product_id)

    # -------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------
    def place_selected_order_from_cart(self, cart: Cart, products) -> Order:
        """Turn the selected cart lines into a pending order.

        The balance is only checked here; money and stock move at payment.
        The consumed lines leave the cart.
        """
        self._ensure_owns_cart(cart)

        selected = cart.selected_lines
        if not selected:
            raise CartRuleViolation({"cart": ["No cart lines are selected for ordering"]})

        units = []
        for line in selected:
            product = products.get(str(line.product_id))
            if product is None:
                raise CartRuleViolation({"product_id": [f"Product {line.product_id} is no longer available"]})
            product.ensure_stock_for(line.quantity)
            units.extend([product] * line.quantity)

        self.ensure_can_cover(total(product.price for product in units))

        order = Order.create(client_id=self.id, products=units)
        self._record_purchase(order)
        cart.clear_selected()
        return order

    def place_direct_order(self, product, quantity: Quantity) -> Order:
        product.ensure_stock_for(quantity.value)

        order = Order.create(client_id=self.id, products=[product] * quantity.value)
        self._record_purchase(order)
        return order

    def _record_purchase(self, order: Order):
        placed_at = order.order_date
        self.add_purchases(PurchaseRecord(order_id=order.id, placed_at=placed_at))
        self.raise_(PurchaseRecorded(client_id=str(self.id), order_id=str(order.id), placed_at=placed_at))

    def _ensure_owns_order(self, order: Order):
        if not order.belongs_to(self.id):
            raise OwnershipViolation({"order_id": [f"Order {order.id} does not belong to client {self.id}"]})

    # -------------------------------------------------------------------
    # Payment and cancellation
    # -------------------------------------------------------------------
    def _ensure_line_parties(self, order: Order, products, sellers):
        for line in order.lines:
            product = products.get(str(line.product_id))
            if product is None:
                raise MarketplaceRuleViolation({"product_id": [f"Product {line.product_id} was not supplied"]})
            if str(line.seller_id) not in sellers:
                raise MarketplaceRuleViolation({"seller_id": [f"Seller {line.seller_id} was not supplied"]})
            product.ensure_owned_by(line.seller_id)

    def pay(self, order: Order, products, sellers) -> Money:
        """Charge the order at current prices and pay each seller their share."""
        self._ensure_owns_order(order)
        order.ensure_status(OrderStatus.PENDING)
        self._ensure_line_parties(order, products, sellers)

        amount = order.calculate_total(products)
        self.ensure_can_cover(amount)
        for line in order.lines:
            products[str(line.product_id)].ensure_stock_for(line.quantity)

        self.debit(amount, BalanceReason.ORDER_PAID, order.id)
        unit_prices = {}
        for line in order.lines:
            product = products[str(line.product_id)]
            product.remove_stock_for_order(line.seller_id, Quantity(value=line.quantity))
            sellers[str(line.seller_id)].credit(product.price * line.quantity, BalanceReason.ORDER_PAID, order.id)
            unit_prices[str(line.product_id)] = product.price

        order.mark_paid(unit_prices)
        return amount

    def cancel(self, order: Order, products, sellers) -> Money:
        """Reverse a paid order: restock, take back each seller's share, refund the client."""
        self._ensure_owns_order(order)
        order.ensure_status(OrderStatus.PAID)
        self._ensure_line_parties(order, products, sellers)

        owed = defaultdict(Money.zero)
        for line in order.lines:
            owed[str(line.seller_id)] = owed[str(line.seller_id)] + line.charged_amount
        for seller_id, amount in owed.items():
            sellers[seller_id].ensure_can_cover(amount)

        for line in order.lines:
            products[str(line.product_id)].refund_stock_for_order(line.seller_id, Quantity(value=line.quantity))
        for seller_id, amount in owed.items():
            sellers[seller_id].debit(amount, BalanceReason.ORDER_CANCELLED, order.id)

        refund = order.charged_total()
        self.credit(refund, BalanceReason.ORDER_CANCELLED, order.id)
        order.mark_cancelled()
        return refund

    # -------------------------------------------------------------------
    # Returns
    # -------------------------------------------------------------------
    def request_return(self, order: Order, product_id, quantity: Quantity, seller_id=None):
        """Ask a seller to take back units of a product from a completed order.

        Without ``seller_id`` the request is only accepted when a single
        seller sold the product within the order.
        """
        self._ensure_owns_order(order)
        order.ensure_status(OrderStatus.COMPLETED)
        if seller_id is None:
            seller_id = order.seller_for_return(product_id)
        order.request_return(seller_id, product_id, quantity)
