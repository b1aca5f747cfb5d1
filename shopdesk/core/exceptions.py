class ShopdeskError(Exception):
    """Base class for errors raised by the service layer."""


class OrderNotFoundError(ShopdeskError):
    def __init__(self, order_id: str = None):
        self.order_id = order_id
        super().__init__("Order not found")


class ShopNotFoundError(ShopdeskError):
    def __init__(self, message: str = "Shop not found"):
        super().__init__(message)


class ProductNotFoundError(ShopdeskError):
    def __init__(self, product_id: str = None):
        self.product_id = product_id
        super().__init__("Product not found")


class InvalidTransitionError(ShopdeskError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
