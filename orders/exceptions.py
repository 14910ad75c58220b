"""
Errors raised by the order services. Each carries the HTTP status the API
layer answers with, so views can translate them in one place.
"""


class StoreError(Exception):
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StoreError):
    status_code = 400
    default_message = "Invalid request"


class OutOfStock(ValidationError):
    status_code = 409
    default_message = "Insufficient stock"


class NotFound(StoreError):
    status_code = 404
    default_message = "Order not found"


class SignatureInvalid(StoreError):
    status_code = 400
    default_message = "Payment verification failed"


class ConfigurationError(StoreError):
    status_code = 500
    default_message = "Service is not configured"


class GatewayError(StoreError):
    status_code = 502
    default_message = "Payment gateway error"


class CarrierError(StoreError):
    status_code = 502
    default_message = "Shipping carrier error"
