# errors.py
# ============================================================================
# NUDE STOREFRONT v1.0 — ERROR TAXONOMY
# ============================================================================
# Every failure the order endpoints can report. The API layer maps each
# class to an HTTP status; benign webhook outcomes are not errors.
# ============================================================================

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront failures."""

    default_message = "Server error."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(StorefrontError):
    """Required credentials are missing. Raised before any network call."""


class ValidationError(StorefrontError):
    """The client sent something we cannot turn into an order (400)."""

    default_message = "Invalid request."


class EmptyCart(ValidationError):
    default_message = "Cart is empty."


class UpstreamError(StorefrontError):
    """Non-success response from a remote API."""

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GatewayError(UpstreamError):
    """Payment API rejected a request."""


class StorageError(UpstreamError):
    """Repository contents API rejected a request."""


class StorageConflictError(StorageError):
    """The concurrency token (file sha) we sent is stale."""


class AuthError(StorefrontError):
    """Webhook signature did not verify (401)."""

    default_message = "Invalid signature."


__all__ = [
    "StorefrontError",
    "ConfigurationError",
    "ValidationError",
    "EmptyCart",
    "UpstreamError",
    "GatewayError",
    "StorageError",
    "StorageConflictError",
    "AuthError",
]
