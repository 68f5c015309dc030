"""
Error kinds raised by the catalog, search and cart operations.

They are recoverable outcomes: the application maps each one to a client
response in ``main.py`` and no operation leaves state half-modified when
it raises one.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for expected, client-facing failures."""

    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(StorefrontError):
    default_message = "Not found"


class ValidationFailed(StorefrontError):
    default_message = "Invalid input"


class InvalidProduct(StorefrontError):
    """The product referenced by a cart operation does not exist."""

    default_message = "Product not found"


class MaxQuantityExceeded(StorefrontError):
    default_message = "Maximum quantity limit (100) exceeded"


class PageOutOfRange(StorefrontError):
    default_message = "Page number exceeds available pages"
