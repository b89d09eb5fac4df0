"""Exception classes for the catalog engine.

Not-found conditions are not exceptions: stores and services return None
and the HTTP layer turns that into a 404.
"""


class CatalogError(Exception):
    """Base exception for all catalog engine errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n  Details: {self.details}"
        return self.message


class AssetStoreError(CatalogError):
    """Raised when an asset file cannot be stored or removed.

    A file that is already absent is never an error.
    """

    pass


class RecordStoreError(CatalogError):
    """Raised when a write to the record store fails."""

    pass


class UploadRejectedError(CatalogError):
    """Raised when an upload violates the field, count, size or type rules."""

    pass
