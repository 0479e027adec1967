"""Catalog fetch errors.

The Catalog Client raises these; the query controller collapses both into a
single "fetch failed" outcome and never lets them escape.
"""

from __future__ import annotations


class CatalogError(RuntimeError):
    """Raised when catalog data cannot be retrieved."""


class NetworkError(CatalogError):
    """The transport failed (DNS, connection refused, timeout...)."""


class ServiceError(CatalogError):
    """The catalog service answered with a non-success status or an unusable body."""

    def __init__(self, status_code: int, detail: str | None = None) -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"catalog service returned HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
