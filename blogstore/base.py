"""Backend capability shared by the local and remote content stores."""

from abc import ABC, abstractmethod
from typing import List, Optional, Callable

from blogstore.errors import BackendQueryError
from blogstore.types import BlogPost, BlogPostFilter, Category, Tag


class ContentStore(ABC):
    """Persistence for posts plus read access to categories and tags.

    Stores receive fully derived posts; validation, slug and read-time rules
    live in the client so both backends behave the same.
    """

    name = "store"

    def __init__(self):
        self._partial_write_callbacks: List[Callable[[str, BackendQueryError], None]] = []

    def on_partial_write(self, callback: Callable[[str, BackendQueryError], None]):
        """Register callback for sub-writes that failed after the post was saved.

        Callback signature: callback(post_id, error)
        """
        self._partial_write_callbacks.append(callback)
        return callback

    def _notify_partial_write(self, post_id: str, error: BackendQueryError):
        for callback in self._partial_write_callbacks:
            try:
                callback(post_id, error)
            except Exception as e:
                print(f"[{type(self).__name__}] Partial write callback error: {e}")

    def initialize(self):
        """Prepare the store for use. Must be safe to call repeatedly."""

    def close(self):
        """Release held resources."""

    @abstractmethod
    def list_posts(self, filters: BlogPostFilter) -> List[BlogPost]:
        pass

    @abstractmethod
    def get_post(self, post_id: str) -> Optional[BlogPost]:
        pass

    @abstractmethod
    def get_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        pass

    @abstractmethod
    def insert_post(self, post: BlogPost) -> BlogPost:
        pass

    @abstractmethod
    def update_post(self, post: BlogPost, tags_changed: bool = True) -> BlogPost:
        pass

    @abstractmethod
    def delete_post(self, post_id: str):
        pass

    @abstractmethod
    def list_categories(self) -> List[Category]:
        pass

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    def list_tags(self) -> List[Tag]:
        pass
