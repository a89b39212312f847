"""blogstore - blog content repository with remote and local backends."""

from blogstore.client import BlogClient
from blogstore.config import BlogConfig
from blogstore.errors import (
    BlogStoreError,
    ConfigurationError,
    ValidationError,
    StorageError,
    StorageCapacityError,
    BackendQueryError,
)
from blogstore.types import (
    Author,
    BlogPost,
    BlogPostFilter,
    BlogPostFormData,
    Category,
    PostStatus,
    Tag,
)
from blogstore.utils import generate_slug, calculate_read_time

__version__ = "0.1.0"
__all__ = [
    "BlogClient",
    "BlogConfig",
    "BlogStoreError",
    "ConfigurationError",
    "ValidationError",
    "StorageError",
    "StorageCapacityError",
    "BackendQueryError",
    "Author",
    "BlogPost",
    "BlogPostFilter",
    "BlogPostFormData",
    "Category",
    "PostStatus",
    "Tag",
    "generate_slug",
    "calculate_read_time",
]
