# storefront/errors.py
from typing import Dict, Optional


class StorefrontError(Exception):
    """Base class for every failure raised by the order pipeline."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StorefrontError):
    """Form input that blocks progression. Never reaches the network."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.errors = errors or {}


class OutOfStockError(ValidationError):
    pass


class StorageReadError(StorefrontError):
    """Persisted value could not be decoded. Recovered inside the store."""


class StorageWriteError(StorefrontError):
    pass


class ApiError(StorefrontError):
    """Non-success response or transport failure from the storefront API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SubmissionError(StorefrontError):
    """The order backend did not accept the order. Safe to retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CartLineNotFoundError(StorefrontError):
    pass


class PaymentInProgressError(StorefrontError):
    pass
