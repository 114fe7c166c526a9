# storefront/domain/errors.py
"""
Wyjatki domenowe.

Dziedzicza po wbudowanych (ValueError, LookupError, RuntimeError), tak jak
serwisy rzucaly je wczesniej, wiec istniejace `except ValueError` dalej lapia
bledy walidacji.
"""


class StorefrontError(Exception):
    """Base class for every domain error raised by the services."""


# walidacja - odrzucone przed jakimkolwiek zapisem
class ValidationError(StorefrontError, ValueError):
    pass


class EmptyCart(ValidationError):
    def __init__(self):
        super().__init__("Cannot create an order from an empty cart")


class InvalidQuantity(ValidationError):
    def __init__(self, quantity: int):
        super().__init__(f"Quantity must be greater than 0, got {quantity}")
        self.quantity = quantity


class ItemUnavailable(ValidationError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} is not available")
        self.product_id = product_id


# brak zasobu
class NotFoundError(StorefrontError, LookupError):
    entity = "Resource"

    def __init__(self, key):
        super().__init__(f"{self.entity} {key} not found")
        self.key = key


class OrderNotFound(NotFoundError):
    entity = "Order"


class CartNotFound(NotFoundError):
    entity = "Cart"


class CartItemNotFound(NotFoundError):
    entity = "Cart item"


class ProductNotFound(NotFoundError):
    entity = "Product"


class UserNotFound(NotFoundError):
    entity = "User"


# platnosci
class AuthenticityError(StorefrontError):
    """Inbound gateway notification failed signature verification or parsing."""


class GatewayError(StorefrontError, RuntimeError):
    """Payment processor call failed or timed out."""


class MissingCorrelationId(GatewayError):
    def __init__(self, source: str = "session"):
        super().__init__(f"Order id not found in {source} metadata")


# konflikty wspolbieznosci / stanu
class ConflictError(StorefrontError, RuntimeError):
    pass


class CartConflict(ConflictError):
    def __init__(self, cart_id: int):
        super().__init__(f"Cart {cart_id} was modified by another operation")
        self.cart_id = cart_id


class OrderStatusConflict(ConflictError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} status was changed by another operation")
        self.order_id = order_id


class InvalidStatusTransition(ConflictError):
    def __init__(self, current, requested):
        super().__init__(f"Cannot change order status from {current} to {requested}")
        self.current = current
        self.requested = requested


class ConcurrencyExhausted(StorefrontError, RuntimeError):
    def __init__(self, product_id: int, attempts: int):
        super().__init__(
            f"Counter for product {product_id} still conflicting after {attempts} attempts"
        )
        self.product_id = product_id
        self.attempts = attempts
