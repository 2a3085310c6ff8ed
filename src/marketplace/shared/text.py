"""Non-empty text value objects: usernames, product names and descriptions."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import String

from marketplace.domain import marketplace


def _reject_blank(value, label):
    if value is not None and not value.strip():
        raise ValidationError({"value": [f"{label} cannot be blank"]})


@marketplace.value_object
class Username:
    value: String(required=True, max_length=100)

    @invariant.post
    def username_must_not_be_blank(self):
        _reject_blank(self.value, "Username")

    def __str__(self) -> str:
        return self.value


@marketplace.value_object
class ProductName:
    value: String(required=True, max_length=255)

    @invariant.post
    def product_name_must_not_be_blank(self):
        _reject_blank(self.value, "Product name")

    def __str__(self) -> str:
        return self.value


@marketplace.value_object
class Description:
    value: String(required=True, max_length=2000)

    @invariant.post
    def description_must_not_be_blank(self):
        _reject_blank(self.value, "Description")

    def __str__(self) -> str:
        return self.value
