"""Local persistence for blogstore - a quota-limited key-value store in SQLite."""

import json
from pathlib import Path
from typing import Optional, List, Dict, Any, Callable

from sqlalchemy import create_engine, Column, String, Text, func
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from blogstore.base import ContentStore
from blogstore.config import DEFAULT_STORAGE_QUOTA
from blogstore.errors import StorageError, StorageCapacityError, ValidationError
from blogstore.seed import default_categories, default_tags
from blogstore.types import BlogPost, BlogPostFilter, Category, Tag
from blogstore.attachments import format_size

Base = declarative_base()

STORAGE_KEYS = {
    "posts": "blog_posts",
    "categories": "blog_categories",
    "tags": "blog_tags",
}


class QuotaExceededError(Exception):
    """Raised when a write would push the store past its quota."""

    def __init__(self, key: str, needed: int, available: int):
        self.key = key
        self.needed = needed
        self.available = available
        super().__init__(
            f"Quota exceeded writing '{key}': needs {needed} chars, {available} available"
        )


class KeyValueModel(Base):
    __tablename__ = "local_storage"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)


class KeyValueStore:
    """String-keyed store with browser localStorage semantics.

    Usage is measured in characters of keys plus values, and every
    ``set_item`` either replaces the whole value or fails.
    """

    def __init__(self, db_path: Optional[Path] = None, quota: int = DEFAULT_STORAGE_QUOTA):
        if db_path:
            self.engine = create_engine(f"sqlite:///{db_path}")
        else:
            self.engine = create_engine(
                "sqlite:///:memory:",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool
            )

        self.quota = quota
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine)

    def _session(self) -> Session:
        return self._session_factory()

    def _used(self, session: Session, exclude_key: Optional[str] = None) -> int:
        query = session.query(
            func.coalesce(func.sum(func.length(KeyValueModel.key) + func.length(KeyValueModel.value)), 0)
        )
        if exclude_key is not None:
            query = query.filter(KeyValueModel.key != exclude_key)
        return int(query.scalar() or 0)

    def get_item(self, key: str) -> Optional[str]:
        with self._session() as session:
            item = session.get(KeyValueModel, key)
            return item.value if item else None

    def set_item(self, key: str, value: str):
        needed = len(key) + len(value)
        with self._session() as session:
            available = self.quota - self._used(session, exclude_key=key)
            if needed > available:
                raise QuotaExceededError(key, needed, max(available, 0))

            item = session.get(KeyValueModel, key)
            if item:
                item.value = value
            else:
                session.add(KeyValueModel(key=key, value=value))
            session.commit()

    def remove_item(self, key: str):
        with self._session() as session:
            session.query(KeyValueModel).filter_by(key=key).delete()
            session.commit()

    def keys(self) -> List[str]:
        with self._session() as session:
            return [row.key for row in session.query(KeyValueModel.key).order_by(KeyValueModel.key)]

    def clear(self):
        with self._session() as session:
            session.query(KeyValueModel).delete()
            session.commit()

    def usage(self) -> int:
        """Get the number of characters currently stored."""
        with self._session() as session:
            return self._used(session)

    def close(self):
        self.engine.dispose()


def _matches(post: BlogPost, filters: BlogPostFilter) -> bool:
    if filters.status and post.status != filters.status:
        return False
    if filters.category_id and post.category.id != filters.category_id:
        return False
    if filters.author_id and post.author.id != filters.author_id:
        return False
    if filters.tag_ids and not set(filters.tag_ids) & set(post.tag_ids):
        return False
    if filters.search:
        needle = filters.search.lower()
        haystacks = [post.title, post.excerpt, post.content] + [t.name for t in post.tags]
        if not any(needle in (text or "").lower() for text in haystacks):
            return False
    return True


class LocalContentStore(ContentStore):
    """Content store keeping each collection as one JSON array in a KeyValueStore."""

    name = "local"

    def __init__(self, kv: Optional[KeyValueStore] = None):
        super().__init__()
        self.kv = kv or KeyValueStore()
        self._seeds: Dict[str, Callable[[], List[Dict[str, Any]]]] = {
            STORAGE_KEYS["posts"]: list,
            STORAGE_KEYS["categories"]: default_categories,
            STORAGE_KEYS["tags"]: default_tags,
        }

    def initialize(self):
        """Seed every absent collection with its default content."""
        for key, seed in self._seeds.items():
            if self.kv.get_item(key) is None:
                print(f"[LocalStore] Seeding {key}")
                self._save(key, seed())

    def close(self):
        self.kv.close()

    def _load(self, key: str) -> List[Dict[str, Any]]:
        raw = self.kv.get_item(key)
        if raw is None:
            return self._seeds[key]()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            print(f"[LocalStore] Corrupt data under {key}: {e}")
            raise StorageError(f"Stored data for '{key}' is not valid JSON: {e}")
        if not isinstance(data, list):
            raise StorageError(f"Stored data for '{key}' is not a list")
        return data

    def _save(self, key: str, items: List[Dict[str, Any]]):
        payload = json.dumps(items)
        try:
            self.kv.set_item(key, payload)
        except QuotaExceededError as e:
            print(f"[LocalStore] Failed to save {key}: {e}")
            raise StorageCapacityError(
                f"Local storage is full: saving {format_size(len(payload))} of {key} "
                f"exceeds the {format_size(self.kv.quota)} limit. "
                "Please reduce the content size by using fewer or smaller images."
            ) from e

    def _posts(self) -> List[BlogPost]:
        return [BlogPost.from_dict(p) for p in self._load(STORAGE_KEYS["posts"])]

    def list_posts(self, filters: BlogPostFilter) -> List[BlogPost]:
        posts = [p for p in self._posts() if _matches(p, filters)]
        bounds = filters.page_bounds()
        if bounds:
            start, end = bounds
            posts = posts[start:end]
        return posts

    def get_post(self, post_id: str) -> Optional[BlogPost]:
        for post in self._posts():
            if post.id == post_id:
                return post
        return None

    def get_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        for post in self._posts():
            if post.slug == slug:
                return post
        return None

    def insert_post(self, post: BlogPost) -> BlogPost:
        records = self._load(STORAGE_KEYS["posts"])
        records.append(post.to_dict())
        self._save(STORAGE_KEYS["posts"], records)
        return post

    def update_post(self, post: BlogPost, tags_changed: bool = True) -> BlogPost:
        records = self._load(STORAGE_KEYS["posts"])
        for index, record in enumerate(records):
            if str(record.get("id")) == post.id:
                records[index] = post.to_dict()
                self._save(STORAGE_KEYS["posts"], records)
                return post
        print(f"[LocalStore] Cannot update missing post {post.id}")
        raise ValidationError("post", f"Blog post not found: {post.id}")

    def delete_post(self, post_id: str):
        records = self._load(STORAGE_KEYS["posts"])
        remaining = [r for r in records if str(r.get("id")) != post_id]
        if len(remaining) == len(records):
            print(f"[LocalStore] Cannot delete missing post {post_id}")
            raise ValidationError("post", f"Blog post not found: {post_id}")
        self._save(STORAGE_KEYS["posts"], remaining)

    def list_categories(self) -> List[Category]:
        return [Category.from_dict(c) for c in self._load(STORAGE_KEYS["categories"])]

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.list_categories():
            if category.id == category_id:
                return category
        return None

    def list_tags(self) -> List[Tag]:
        return [Tag.from_dict(t) for t in self._load(STORAGE_KEYS["tags"])]
