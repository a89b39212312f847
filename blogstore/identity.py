"""Author identity management for blogstore."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Optional

from blogstore.errors import StorageError
from blogstore.seed import DEFAULT_AUTHOR
from blogstore.types import Author


class AuthorManager:
    """Loads, creates and persists the author attached to new posts."""

    def __init__(self, config_path: Optional[Path] = None, author_id: Optional[str] = None):
        self.config_path = config_path
        self.author_path = config_path / "author.json" if config_path else None
        self._author_id = author_id
        self._author: Optional[Author] = None

    def load_or_create(self) -> Author:
        """Load the saved author profile or create the default one."""
        if self.author_path and self.author_path.exists():
            try:
                data = json.loads(self.author_path.read_text(encoding="utf-8"))
                author = Author.from_dict(data)
            except (OSError, ValueError, KeyError) as e:
                print(f"[AuthorManager] Failed to read {self.author_path}: {e}")
                raise StorageError(f"Invalid author profile at {self.author_path}: {e}")
        else:
            author = Author(**DEFAULT_AUTHOR.to_dict())
            self._write(author)

        if self._author_id:
            author.id = self._author_id
        self._author = author
        return author

    def set_author(self, author: Author):
        """Replace and persist the author profile.

        The configured author id still applies to the in-memory profile.
        """
        self._write(author)
        if self._author_id:
            author = replace(author, id=self._author_id)
        self._author = author

    def _write(self, author: Author):
        if not self.author_path:
            return
        self.author_path.parent.mkdir(parents=True, exist_ok=True)
        self.author_path.write_text(json.dumps(author.to_dict(), indent=2), encoding="utf-8")

    @property
    def author(self) -> Author:
        """Get the current author, loading it on first access."""
        if self._author is None:
            return self.load_or_create()
        return self._author
