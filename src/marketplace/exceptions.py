"""Business-rule failures raised by marketplace aggregates.

Each exception is a protean ``ValidationError`` carrying a field -> messages
dict, so callers that already handle validation failures handle these too.
Value-object construction failures stay plain ``ValidationError``.
"""

from protean.exceptions import ValidationError


class MarketplaceRuleViolation(ValidationError):
    """A domain operation was refused because it would break a business rule."""


class InsufficientStock(MarketplaceRuleViolation):
    pass


class InsufficientFunds(MarketplaceRuleViolation):
    pass


class IllegalStatusTransition(MarketplaceRuleViolation):
    pass


class OwnershipViolation(MarketplaceRuleViolation):
    """The acting party does not own the product, cart or order involved."""


class CartRuleViolation(MarketplaceRuleViolation):
    """Empty selection, missing cart line or unlisted product."""


class ReturnConflict(MarketplaceRuleViolation):
    """The per-seller return negotiation is not in a state that allows the step."""


class AmbiguousReturnTarget(MarketplaceRuleViolation):
    """More than one seller sold the product within the order."""
