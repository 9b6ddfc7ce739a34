"""Domain errors raised by the cart, order and session layers.

Each error carries a stable ``code`` and the HTTP status the API answers with.
The API layer renders them as ``{"detail": {"code", "message", "correlationId"}}``.
"""


class StorefrontError(Exception):
    code = "STOREFRONT_ERROR"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(StorefrontError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Not authorized, login again"


class InvalidCredentialsError(StorefrontError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid email or password"


class UserExistsError(StorefrontError):
    code = "USER_EXISTS"
    status_code = 409
    default_message = "User already exists"


class WeakPasswordError(StorefrontError):
    code = "WEAK_PASSWORD"
    status_code = 400
    default_message = "Password is too short"


class EmptyCartError(StorefrontError):
    code = "EMPTY_CART"
    status_code = 400
    default_message = "Cart is empty"


class CatalogInconsistencyError(StorefrontError):
    code = "CATALOG_INCONSISTENCY"
    status_code = 409
    default_message = "An item in the cart is no longer available"

    def __init__(self, food_item_id: int):
        self.food_item_id = food_item_id
        super().__init__(f"Food item {food_item_id} is no longer available")


class OrderNotFoundError(StorefrontError):
    code = "ORDER_NOT_FOUND"
    status_code = 404
    default_message = "Order not found"

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class PaymentGatewayError(StorefrontError):
    code = "PAYMENT_GATEWAY_ERROR"
    status_code = 502
    default_message = "Payment provider is unavailable"
