"""Order aggregate: the purchase state machine and per-seller return negotiation.

Primary lifecycle:
    PENDING → PAID → SHIPPED → DELIVERED → COMPLETED
    PAID → CANCELLED

Return negotiation runs independently for every seller with lines in the
order, and only once the order is COMPLETED:
    NONE → REQUESTED → APPROVED → REFUNDED
    REQUESTED → REJECTED (terminal)

Order lines are fixed at creation. Each line captures the seller id of its
product at that moment, and the unit price actually charged when the order
is paid, so that cancellation and refunds reverse exactly what moved.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.exceptions import (
    AmbiguousReturnTarget,
    IllegalStatusTransition,
    ReturnConflict,
)
from marketplace.order.events import (
    OrderCancelled,
    OrderCompleted,
    OrderDelivered,
    OrderPaid,
    OrderPlaced,
    OrderShipped,
    ReturnApproved,
    ReturnRefunded,
    ReturnRejected,
    ReturnRequested,
)
from marketplace.shared.money import Money, total
from marketplace.shared.quantity import Quantity


class OrderStatus(Enum):
    PENDING = "Pending"
    PAID = "Paid"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ReturnStatus(Enum):
    NONE = "None"
    REQUESTED = "Requested"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    REFUNDED = "Refunded"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderLine:
    """Units of one product bought in the order.

    ``seller_id`` is copied from the product when the order is created.
    ``unit_price`` stays empty until payment.
    """

    product_id = Identifier(required=True)
    seller_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price = ValueObject(Money)

    @property
    def charged_amount(self) -> Money:
        return self.unit_price * self.quantity


@marketplace.entity(part_of="Order")
class ReturnRequestItem:
    """Cumulative units of one product a client asked a seller to take back."""

    seller_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@marketplace.entity(part_of="Order")
class SellerReturn:
    seller_id = Identifier(required=True)
    status = String(choices=ReturnStatus, default=ReturnStatus.REQUESTED.value)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    client_id = Identifier(required=True)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    lines = HasMany(OrderLine)
    return_requests = HasMany(ReturnRequestItem)
    seller_returns = HasMany(SellerReturn)
    total_amount = ValueObject(Money)
    order_date = DateTime()
    delivery_date = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, client_id, products):
        """Create a pending order from a per-unit product multiset.

        ``products`` holds one Product per unit bought; repeated products are
        grouped into a single line.
        """
        grouped = {}
        for product in products:
            key = str(product.id)
            if key in grouped:
                grouped[key]["quantity"] += 1
            else:
                grouped[key] = {
                    "product_id": key,
                    "seller_id": str(product.seller_id),
                    "quantity": 1,
                    "price": product.price,
                }

        now = datetime.now(UTC)
        order = cls(
            client_id=client_id,
            status=OrderStatus.PENDING.value,
            lines=[
                OrderLine(
                    product_id=line["product_id"],
                    seller_id=line["seller_id"],
                    quantity=line["quantity"],
                )
                for line in grouped.values()
            ],
            total_amount=total(line["price"] * line["quantity"] for line in grouped.values()),
            order_date=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                client_id=str(client_id),
                lines=json.dumps(
                    [
                        {
                            "product_id": line["product_id"],
                            "seller_id": line["seller_id"],
                            "quantity": line["quantity"],
                        }
                        for line in grouped.values()
                    ]
                ),
                total_amount=order.total_amount.amount,
                ordered_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def belongs_to(self, client_id) -> bool:
        return str(self.client_id) == str(client_id)

    def has_status(self, status: OrderStatus) -> bool:
        return self.status == status.value

    def calculate_total(self, products) -> Money:
        """Sum of each line's quantity at the product's current price."""
        return total(products[str(line.product_id)].price * line.quantity for line in self.lines)

    def charged_total(self) -> Money:
        """Sum actually charged at payment."""
        return total(line.charged_amount for line in self.lines)

    def lines_for_seller(self, seller_id):
        return [line for line in self.lines if str(line.seller_id) == str(seller_id)]

    def line_for(self, seller_id, product_id):
        return next(
            (
                line
                for line in self.lines
                if str(line.seller_id) == str(seller_id) and str(line.product_id) == str(product_id)
            ),
            None,
        )

    def sellers_of(self, product_id):
        """Distinct seller ids that sold the product within this order."""
        seen = []
        for line in self.lines:
            if str(line.product_id) == str(product_id) and str(line.seller_id) not in seen:
                seen.append(str(line.seller_id))
        return seen

    def seller_for_return(self, product_id):
        """The single seller a return of ``product_id`` can be directed to."""
        sellers = self.sellers_of(product_id)
        if not sellers:
            raise ReturnConflict({"product_id": [f"Product {product_id} is not part of order {self.id}"]})
        if len(sellers) > 1:
            raise AmbiguousReturnTarget(
                {"seller_id": [f"Product {product_id} was sold by several sellers in this order; name one"]}
            )
        return sellers[0]

    def delivery_date_or_raise(self) -> datetime:
        if self.delivery_date is None:
            raise IllegalStatusTransition({"delivery_date": [f"Order {self.id} has not been delivered yet"]})
        return self.delivery_date

    # -------------------------------------------------------------------
    # Return views, recomputed from the row collections on every read
    # -------------------------------------------------------------------
    @property
    def returned_products(self) -> dict:
        """(seller_id, product_id) → cumulative requested quantity."""
        return {(str(row.seller_id), str(row.product_id)): row.quantity for row in self.return_requests}

    @property
    def return_statuses(self) -> dict:
        """seller_id → ReturnStatus."""
        return {str(row.seller_id): ReturnStatus(row.status) for row in self.seller_returns}

    def return_status_for(self, seller_id) -> ReturnStatus:
        return self.return_statuses.get(str(seller_id), ReturnStatus.NONE)

    def requested_quantity(self, seller_id, product_id) -> int:
        return self.returned_products.get((str(seller_id), str(product_id)), 0)

    def return_rows_for(self, seller_id):
        return [row for row in self.return_requests if str(row.seller_id) == str(seller_id)]

    def refund_amount_for(self, seller_id) -> Money:
        """What the seller owes back: charged unit price times requested units.

        Refunds use the price captured at payment, not the live product price,
        so a price change after payment never moves more or less money back
        than the client was charged.
        """
        amounts = []
        for line in self.lines_for_seller(seller_id):
            requested = self.requested_quantity(seller_id, line.product_id)
            if requested <= 0:
                continue
            self._ensure_refundable(line, requested)
            amounts.append(line.unit_price * requested)
        return total(amounts)

    # -------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target: OrderStatus):
        current = OrderStatus(self.status)
        if target not in _VALID_TRANSITIONS.get(current, set()):
            raise IllegalStatusTransition({"status": [f"Cannot transition from {current.value} to {target.value}"]})

    def ensure_status(self, status: OrderStatus):
        if not self.has_status(status):
            raise IllegalStatusTransition(
                {"status": [f"Order {self.id} is {self.status}, expected {status.value}"]}
            )

    def mark_paid(self, unit_prices):
        """Capture the charged unit price of every line and move to PAID.

        ``unit_prices`` maps product id to the ``Money`` charged per unit.
        """
        self._assert_can_transition(OrderStatus.PAID)

        for line in self.lines:
            line.unit_price = unit_prices[str(line.product_id)]
        self.total_amount = self.charged_total()
        self.status = OrderStatus.PAID.value

        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                client_id=str(self.client_id),
                amount=self.total_amount.amount,
            )
        )

    def mark_shipped(self):
        self._assert_can_transition(OrderStatus.SHIPPED)
        self.status = OrderStatus.SHIPPED.value
        self.raise_(OrderShipped(order_id=str(self.id)))

    def mark_delivered(self):
        self._assert_can_transition(OrderStatus.DELIVERED)
        now = datetime.now(UTC)
        self.status = OrderStatus.DELIVERED.value
        self.delivery_date = now
        self.raise_(OrderDelivered(order_id=str(self.id), delivered_at=now))

    def mark_completed(self):
        self._assert_can_transition(OrderStatus.COMPLETED)
        self.status = OrderStatus.COMPLETED.value
        self.raise_(OrderCompleted(order_id=str(self.id)))

    def mark_cancelled(self):
        self._assert_can_transition(OrderStatus.CANCELLED)
        self.status = OrderStatus.CANCELLED.value
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                client_id=str(self.client_id),
                refunded_amount=self.charged_total().amount,
            )
        )

    # -------------------------------------------------------------------
    # Return negotiation
    # -------------------------------------------------------------------
    def request_return(self, seller_id, product_id, quantity: Quantity):
        if not self.has_status(OrderStatus.COMPLETED):
            raise IllegalStatusTransition(
                {"status": [f"Returns can only be requested for completed orders, order is {self.status}"]}
            )

        line = self.line_for(seller_id, product_id)
        if line is None:
            raise ReturnConflict(
                {"product_id": [f"Product {product_id} was not sold by seller {seller_id} in this order"]}
            )

        current = self.return_status_for(seller_id)
        if current != ReturnStatus.NONE:
            raise ReturnConflict({"status": [f"Return for seller {seller_id} is already {current.value}"]})

        requested = self.requested_quantity(seller_id, product_id) + quantity.value
        if requested > line.quantity:
            raise ReturnConflict(
                {"quantity": [f"Cannot return {requested} units of product {product_id}, only {line.quantity} ordered"]}
            )

        row = next(
            (
                r
                for r in self.return_requests
                if str(r.seller_id) == str(seller_id) and str(r.product_id) == str(product_id)
            ),
            None,
        )
        if row is None:
            self.add_return_requests(
                ReturnRequestItem(seller_id=seller_id, product_id=product_id, quantity=requested)
            )
        else:
            row.quantity = requested

        self._set_return_status(seller_id, ReturnStatus.REQUESTED)

        self.raise_(
            ReturnRequested(
                order_id=str(self.id),
                seller_id=str(seller_id),
                product_id=str(product_id),
                quantity=quantity.value,
            )
        )

    def ensure_return_requested(self, seller_id):
        current = self.return_status_for(seller_id)
        if current != ReturnStatus.REQUESTED:
            raise ReturnConflict(
                {"status": [f"No pending return request for seller {seller_id}, status is {current.value}"]}
            )

    def approve_return(self, seller_id):
        """Status flip only; money moves in the seller's approval."""
        self.ensure_return_requested(seller_id)
        self._set_return_status(seller_id, ReturnStatus.APPROVED)
        self.raise_(ReturnApproved(order_id=str(self.id), seller_id=str(seller_id)))

    def reject_return(self, seller_id):
        self.ensure_return_requested(seller_id)
        for row in self.return_rows_for(seller_id):
            self.remove_return_requests(row)
        self._set_return_status(seller_id, ReturnStatus.REJECTED)
        self.raise_(ReturnRejected(order_id=str(self.id), seller_id=str(seller_id)))

    def mark_refunded(self, seller_id, products):
        """Put the requested units of the seller's lines back into stock."""
        current = self.return_status_for(seller_id)
        if current != ReturnStatus.APPROVED:
            raise ReturnConflict({"status": [f"Return for seller {seller_id} is {current.value}, not Approved"]})

        restocks = []
        for line in self.lines_for_seller(seller_id):
            requested = self.requested_quantity(seller_id, line.product_id)
            if requested <= 0:
                continue
            self._ensure_refundable(line, requested)
            restocks.append((products[str(line.product_id)], requested))

        for product, requested in restocks:
            product.refund_stock_for_order(seller_id, Quantity(value=requested))

        self._set_return_status(seller_id, ReturnStatus.REFUNDED)
        self.raise_(
            ReturnRefunded(
                order_id=str(self.id),
                seller_id=str(seller_id),
                restocked_units=sum(requested for _, requested in restocks),
            )
        )

    def _ensure_refundable(self, line: OrderLine, requested: int):
        if requested > line.quantity:
            raise ReturnConflict(
                {
                    "quantity": [
                        f"Requested {requested} units of product {line.product_id} back, "
                        f"only {line.quantity} were ordered"
                    ]
                }
            )

    def _set_return_status(self, seller_id, status: ReturnStatus):
        row = next((r for r in self.seller_returns if str(r.seller_id) == str(seller_id)), None)
        if row is None:
            self.add_seller_returns(SellerReturn(seller_id=seller_id, status=status.value))
        else:
            row.status = status.value
