"""Main client for blogstore."""

import uuid
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Callable, Union

from blogstore.attachments import AttachmentManager, AttachmentError, format_size, payload_size
from blogstore.base import ContentStore
from blogstore.config import BlogConfig
from blogstore.errors import ConfigurationError, ValidationError, BackendQueryError
from blogstore.identity import AuthorManager
from blogstore.remote import RemoteContentStore
from blogstore.storage import KeyValueStore, LocalContentStore
from blogstore.transport import RestTransport
from blogstore.types import (
    Author,
    BlogPost,
    BlogPostFilter,
    BlogPostFormData,
    Category,
    PostStatus,
    Tag,
    normalize_keys,
)
from blogstore.utils import generate_slug, calculate_read_time

LOCAL_DB_NAME = "blogstore.db"
LARGE_CONTENT_SIZE = 1024 * 1024  # bytes

# (form field, error field, message) in validation order
REQUIRED_FIELDS = (
    ("title", "title", "Title is required"),
    ("excerpt", "excerpt", "Excerpt is required"),
    ("content", "content", "Content is required"),
    ("category_id", "category", "Please select a category"),
)

FilterInput = Union[BlogPostFilter, Dict[str, Any], None]
FormInput = Union[BlogPostFormData, Dict[str, Any]]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def _parse_status(value: Any) -> PostStatus:
    try:
        return PostStatus(value)
    except ValueError:
        raise ValidationError("status", f"Invalid status: {value!r}")


def _warn_if_large(content: str):
    size = payload_size(content)
    if size > LARGE_CONTENT_SIZE:
        print(f"[BlogClient] Content is large ({format_size(size)}); "
              "consider using fewer or smaller images")


class BlogClient:
    """Single entry point for blog content, whichever backend holds it.

    The backend is chosen once, at construction: an explicit ``store`` wins,
    then the remote backend when it is configured, then the local store when
    ``allow_local_fallback`` is set. With none of these every operation
    raises ConfigurationError.
    """

    def __init__(self, config: Optional[BlogConfig] = None, store: Optional[ContentStore] = None):
        self.config = config or BlogConfig.from_env()
        self._attachments = AttachmentManager()
        self._on_partial_write_callbacks: List[Callable[[str, BackendQueryError], None]] = []

        identity_path = self.config.data_dir
        if store is None:
            store, identity_path = self._build_store()
        self._store = store
        self._identity = AuthorManager(identity_path, author_id=self.config.author_id)

        if self._store is not None:
            self._store.on_partial_write(self._handle_partial_write)

    def _build_store(self):
        if self.config.is_backend_configured():
            transport = RestTransport(
                self.config.supabase_url,
                self.config.supabase_key,
                timeout=self.config.timeout,
            )
            return RemoteContentStore(transport), self.config.data_dir

        if self.config.allow_local_fallback:
            data_dir = self.config.resolve_data_dir()
            data_dir.mkdir(parents=True, exist_ok=True)
            kv = KeyValueStore(data_dir / LOCAL_DB_NAME, quota=self.config.storage_quota)
            print(f"[BlogClient] Using local storage fallback at {data_dir}")
            return LocalContentStore(kv), data_dir

        return None, self.config.data_dir

    # Lifecycle
    def initialize(self):
        """Seed empty storage and load the author profile. Safe to repeat."""
        store = self._require_store()
        store.initialize()
        self._identity.load_or_create()

    def close(self):
        if self._store is not None:
            self._store.close()

    def __enter__(self) -> "BlogClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def backend(self) -> Optional[str]:
        """Get the active backend name ("remote", "local"), or None."""
        return self._store.name if self._store is not None else None

    @property
    def author(self) -> Author:
        """Get the author attached to new posts."""
        return self._identity.author

    def set_author(self, author: Author):
        self._identity.set_author(author)

    # Event decorators
    def on_partial_write(self, callback: Callable[[str, BackendQueryError], None]):
        """Register callback for tag association writes that failed.

        Callback signature: callback(post_id, error). The post itself was
        saved; its tags may be missing or stale.
        """
        self._on_partial_write_callbacks.append(callback)
        return callback

    def _handle_partial_write(self, post_id: str, error: BackendQueryError):
        for callback in self._on_partial_write_callbacks:
            try:
                callback(post_id, error)
            except Exception as e:
                print(f"[BlogClient] Partial write callback error: {e}")

    def _require_store(self) -> ContentStore:
        if self._store is None:
            print("[BlogClient] No backend configured and local fallback is disabled")
            raise ConfigurationError(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY, "
                "or enable BLOG_LOCAL_FALLBACK to use local storage."
            )
        return self._store

    # Public API - Posts
    def get_blog_posts(self, filters: FilterInput = None, **kwargs) -> List[BlogPost]:
        """List posts matching the given filters (newest first when remote)."""
        store = self._require_store()
        return store.list_posts(self._build_filter(filters, kwargs))

    def get_blog_post_by_id(self, post_id: str) -> Optional[BlogPost]:
        return self._require_store().get_post(str(post_id))

    def get_blog_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        return self._require_store().get_post_by_slug(slug)

    def create_blog_post(self, form_data: FormInput) -> BlogPost:
        """Validate, derive and persist a new post.

        Required fields are checked in order title, excerpt, content,
        category. Unknown tag ids are dropped; an unknown category fails.
        """
        store = self._require_store()
        if not isinstance(form_data, BlogPostFormData):
            form_data = BlogPostFormData.from_dict(dict(form_data))

        for field_name, error_field, message in REQUIRED_FIELDS:
            if _is_blank(getattr(form_data, field_name)):
                raise ValidationError(error_field, message)

        _warn_if_large(form_data.content)
        status = _parse_status(form_data.status)
        category = self._resolve_category(store, form_data.category_id)
        tags = self._resolve_tags(store, form_data.tag_ids or [])
        slug = generate_slug(form_data.title)
        self._ensure_unique_slug(store, slug)

        now = _now()
        post = BlogPost(
            id=str(uuid.uuid4()),
            title=form_data.title,
            slug=slug,
            excerpt=form_data.excerpt,
            content=form_data.content,
            author=replace(self.author),
            category=category,
            tags=tags,
            created_at=now,
            updated_at=now,
            published_at=(form_data.published_at or now) if status is PostStatus.PUBLISHED else None,
            status=status,
            featured_image=form_data.featured_image or "",
            read_time=calculate_read_time(form_data.content),
        )

        saved = store.insert_post(post)
        print(f"[BlogClient] Created post {saved.id} '{saved.slug}' ({store.name})")
        return saved

    def update_blog_post(self, post_id: str, changes: FormInput) -> BlogPost:
        """Apply a partial update to an existing post.

        Only fields present in ``changes`` are touched. ``published_at`` is set
        the first time the post becomes published and never cleared.
        """
        store = self._require_store()
        post_id = str(post_id)
        existing = store.get_post(post_id)
        if existing is None:
            print(f"[BlogClient] Cannot update missing post {post_id}")
            raise ValidationError("post", f"Blog post not found: {post_id}")

        if isinstance(changes, BlogPostFormData):
            changes = changes.to_dict()
        changes = normalize_keys(dict(changes))
        unknown = sorted(set(changes) - set(BlogPostFormData.__dataclass_fields__))
        if unknown:
            raise ValidationError(unknown[0], f"Unknown field: {unknown[0]}")

        for field_name, error_field, message in REQUIRED_FIELDS:
            if field_name in changes and _is_blank(changes[field_name]):
                raise ValidationError(error_field, message)

        post = replace(existing, tags=list(existing.tags))
        now = _now()
        tags_changed = False

        if "title" in changes and changes["title"] != existing.title:
            post.title = changes["title"]
            slug = generate_slug(post.title)
            if slug != existing.slug:
                self._ensure_unique_slug(store, slug, exclude_id=post_id)
                post.slug = slug
        if "excerpt" in changes:
            post.excerpt = changes["excerpt"]
        if "content" in changes:
            post.content = changes["content"]
            post.read_time = calculate_read_time(post.content)
            _warn_if_large(post.content)
        if "category_id" in changes:
            post.category = self._resolve_category(store, changes["category_id"])
        if "tag_ids" in changes:
            post.tags = self._resolve_tags(store, changes["tag_ids"] or [])
            tags_changed = True
        if "featured_image" in changes:
            post.featured_image = changes["featured_image"] or ""
        if "status" in changes:
            post.status = _parse_status(changes["status"])
            if post.status is PostStatus.PUBLISHED and existing.published_at is None:
                post.published_at = changes.get("published_at") or now

        post.updated_at = now
        saved = store.update_post(post, tags_changed=tags_changed)
        print(f"[BlogClient] Updated post {post_id} ({store.name})")
        return saved

    def delete_blog_post(self, post_id: str):
        """Delete a post and its tag associations."""
        store = self._require_store()
        post_id = str(post_id)
        if store.get_post(post_id) is None:
            print(f"[BlogClient] Cannot delete missing post {post_id}")
            raise ValidationError("post", f"Blog post not found: {post_id}")
        store.delete_post(post_id)
        print(f"[BlogClient] Deleted post {post_id} ({store.name})")

    # Public API - Reference data
    def get_categories(self) -> List[Category]:
        return self._require_store().list_categories()

    def get_tags(self) -> List[Tag]:
        return self._require_store().list_tags()

    # Public API - Media
    def encode_featured_image(self, file_path: str) -> str:
        """Encode a local image file as a data URL for ``featured_image``."""
        try:
            return self._attachments.encode_image(file_path)
        except AttachmentError as e:
            print(f"[BlogClient] Failed to encode image: {e}")
            raise ValidationError("featured_image", str(e))

    # Helpers
    def _build_filter(self, filters: FilterInput, extra: Dict[str, Any]) -> BlogPostFilter:
        if isinstance(filters, BlogPostFilter):
            data = asdict(filters)
        else:
            data = dict(filters or {})
        data.update(extra)

        try:
            result = BlogPostFilter.from_dict(data)
        except TypeError as e:
            raise ValidationError("filter", str(e))

        result.status = _parse_status(result.status) if result.status else None
        for name in ("category_id", "author_id"):
            value = getattr(result, name)
            if value is not None:
                setattr(result, name, str(value))
        if result.tag_ids is not None:
            result.tag_ids = [str(tag_id) for tag_id in result.tag_ids]
        for name in ("page", "limit"):
            value = getattr(result, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(name, f"{name} must be a positive integer")
        return result

    def _resolve_category(self, store: ContentStore, category_id: Any) -> Category:
        if _is_blank(category_id):
            raise ValidationError("category", "Please select a category")
        category = store.get_category(str(category_id))
        if category is None:
            print(f"[BlogClient] Category not found: {category_id}")
            raise ValidationError("category", f"Category not found: {category_id}")
        return category

    def _resolve_tags(self, store: ContentStore, tag_ids: List[Any]) -> List[Tag]:
        if not tag_ids:
            return []
        known = {tag.id: tag for tag in store.list_tags()}
        wanted = list(dict.fromkeys(str(tag_id) for tag_id in tag_ids))
        dropped = [tag_id for tag_id in wanted if tag_id not in known]
        if dropped:
            print(f"[BlogClient] Ignoring unknown tag ids: {', '.join(dropped)}")
        return [known[tag_id] for tag_id in wanted if tag_id in known]

    def _ensure_unique_slug(self, store: ContentStore, slug: str, exclude_id: Optional[str] = None):
        owner = store.get_post_by_slug(slug)
        if owner is not None and owner.id != exclude_id:
            raise ValidationError("slug", f"A post with slug '{slug}' already exists")
