"""Classified catalog errors and the status class each maps to."""

from __future__ import annotations


class CatalogError(Exception):
    """Base error carrying the HTTP status class a boundary should return."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MisconfigurationError(CatalogError):
    """A required secret or key is missing; needs operator action."""

    status_code = 500


class UpstreamRequestError(CatalogError):
    """A provider returned a non-success status or could not be reached."""

    status_code = 502


class ItemNotFoundError(CatalogError):
    """An id-scoped fetch produced no record."""

    status_code = 404


class InvalidRequestError(CatalogError):
    """Caller supplied invalid query parameters."""

    status_code = 400


class UnsupportedDomainError(InvalidRequestError):
    """Unknown domain, or a domain/source pair no provider serves."""
