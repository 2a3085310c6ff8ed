"""Money value object for ledger amounts."""

from decimal import ROUND_HALF_UP, Decimal

from protean.exceptions import ValidationError
from protean.fields import Float

from marketplace.domain import marketplace

_CENT = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _round_to_cents(value) -> float:
    return float(_to_decimal(value).quantize(_CENT, rounding=ROUND_HALF_UP))


@marketplace.value_object
class Money:
    """A non-negative monetary amount with exactly two decimal places.

    Amounts are rounded to cents half away from zero on construction;
    ``Money.of`` also accepts ``Decimal`` and string input. Arithmetic
    returns new ``Money`` instances; a subtraction that would go below zero
    fails validation like any other negative amount.
    """

    amount: Float(required=True, min_value=0.0)

    def defaults(self):
        if self.amount is not None:
            self.amount = _round_to_cents(self.amount)

    @classmethod
    def of(cls, value) -> "Money":
        return cls(amount=_round_to_cents(value))

    @classmethod
    def zero(cls) -> "Money":
        return cls(amount=0.0)

    @property
    def decimal(self) -> Decimal:
        return _to_decimal(self.amount).quantize(_CENT)

    @property
    def is_zero(self) -> bool:
        return self.decimal == 0

    def __add__(self, other: "Money") -> "Money":
        return Money.of(self.decimal + other.decimal)

    def __sub__(self, other: "Money") -> "Money":
        return Money.of(self.decimal - other.decimal)

    def __mul__(self, factor: int) -> "Money":
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Money.of(self.decimal * factor)

    __rmul__ = __mul__

    def __truediv__(self, divisor: int) -> "Money":
        if isinstance(divisor, bool) or not isinstance(divisor, int):
            return NotImplemented
        if divisor <= 0:
            raise ValidationError({"divisor": ["Money can only be divided by a positive integer"]})
        return Money.of(self.decimal / divisor)

    def __lt__(self, other: "Money") -> bool:
        return self.decimal < other.decimal

    def __le__(self, other: "Money") -> bool:
        return self.decimal <= other.decimal

    def __gt__(self, other: "Money") -> bool:
        return self.decimal > other.decimal

    def __ge__(self, other: "Money") -> bool:
        return self.decimal >= other.decimal

    def __str__(self) -> str:
        return f"{self.decimal:.2f}"


def total(amounts) -> Money:
    """Sum an iterable of ``Money``; an empty iterable sums to zero."""
    result = Money.zero()
    for amount in amounts:
        result = result + amount
    return result
