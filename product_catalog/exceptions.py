# product_catalog/exceptions.py

"""
Error taxonomy for the Catalog Service.
Each error carries the HTTP status it is rendered with, so the API layer
can translate them uniformly into `{"error": message}` responses.
"""

from fastapi import status


class CatalogError(Exception):
    """Base class for all catalog errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal Error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CatalogError):
    """Required input is missing or malformed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(CatalogError):
    """The referenced product id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class MethodNotAllowedError(CatalogError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED
    default_message = "Method Not Allowed"


class InternalError(CatalogError):
    """Unexpected failure while processing a request."""
