"""Quantity value object for counts that must be positive."""

from protean.fields import Integer

from marketplace.domain import marketplace


@marketplace.value_object
class Quantity:
    """A strictly positive number of units.

    Used wherever units are added, ordered or requested back. Stock counters
    that may legitimately reach zero are stored as plain integers instead.
    """

    value: Integer(required=True, min_value=1)

    def __int__(self) -> int:
        return self.value
