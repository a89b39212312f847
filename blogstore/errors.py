"""Exceptions raised across the blogstore facade."""

from typing import Optional


class BlogStoreError(Exception):
    """Base exception for blogstore errors."""
    pass


class ConfigurationError(BlogStoreError):
    """Raised when no remote backend is configured and local fallback is off."""
    pass


class ValidationError(BlogStoreError):
    """Raised when input is missing, empty or references an unknown entity."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"{field} is required")


class StorageError(BlogStoreError):
    """Raised when the local store cannot be read or written."""
    pass


class StorageCapacityError(StorageError):
    """Raised when a local write exceeds the storage quota."""
    pass


class BackendQueryError(BlogStoreError):
    """Raised when the remote query interface reports a failure."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
