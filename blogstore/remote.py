"""Remote content store backed by a hosted PostgREST (Supabase) database."""

from typing import Optional, List, Dict, Any

from blogstore.base import ContentStore
from blogstore.errors import BackendQueryError, ValidationError
from blogstore.seed import DEFAULT_AUTHOR
from blogstore.transport import RestTransport, Query, QueryError, NoRowsError, quote_value, ilike_pattern
from blogstore.types import Author, BlogPost, BlogPostFilter, Category, Tag

POST_SELECT = "*,category:categories(*),author:authors(*)"
POST_TAG_SELECT = "tag:tags(*)"
SEARCH_COLUMNS = ("title", "excerpt", "content")


class RemoteContentStore(ContentStore):
    """Content store that queries blog tables over the HTTP query interface.

    Tags are many-to-many through ``blog_post_tags`` and are fetched in a
    second pass per post. Post writes and tag association writes are separate
    requests; association failures are reported, not raised.
    """

    name = "remote"

    POSTS_TABLE = "blog_posts"
    CATEGORIES_TABLE = "categories"
    TAGS_TABLE = "tags"
    POST_TAGS_TABLE = "blog_post_tags"

    def __init__(self, transport: RestTransport, default_author: Optional[Author] = None):
        super().__init__()
        self.transport = transport
        self.default_author = default_author or DEFAULT_AUTHOR

    def close(self):
        self.transport.close()

    def _run(self, action: str, query: Query) -> Any:
        try:
            return query.execute()
        except QueryError as e:
            print(f"[RemoteStore] Error trying to {action}: {e}")
            raise BackendQueryError(f"Failed to {action}: {e}", e.status_code) from e

    def _run_single(self, action: str, query: Query) -> Optional[Dict[str, Any]]:
        try:
            return query.single().execute()
        except NoRowsError:
            return None
        except QueryError as e:
            print(f"[RemoteStore] Error trying to {action}: {e}")
            raise BackendQueryError(f"Failed to {action}: {e}", e.status_code) from e

    def _report_partial(self, post_id: str, action: str, error: QueryError):
        print(f"[RemoteStore] Failed to {action} for post {post_id}: {error}")
        failure = BackendQueryError(f"Failed to {action} for post {post_id}: {error}", error.status_code)
        self._notify_partial_write(post_id, failure)

    # Reads
    def list_posts(self, filters: BlogPostFilter) -> List[BlogPost]:
        query = self.transport.table(self.POSTS_TABLE).select(POST_SELECT)

        if filters.status:
            query.eq("status", filters.status.value)
        if filters.category_id:
            query.eq("category_id", filters.category_id)
        if filters.author_id:
            query.eq("author_id", filters.author_id)
        if filters.tag_ids:
            post_ids = self._post_ids_for_tags(filters.tag_ids)
            if not post_ids:
                return []
            query.in_("id", post_ids)
        if filters.search:
            pattern = quote_value(ilike_pattern(filters.search))
            conditions = [f"{column}.ilike.{pattern}" for column in SEARCH_COLUMNS]
            tagged = self._post_ids_for_tag_search(filters.search)
            if tagged:
                conditions.append(f"id.in.({','.join(quote_value(i) for i in tagged)})")
            query.or_(conditions)

        query.order("created_at", descending=True)
        bounds = filters.page_bounds()
        if bounds:
            start, end = bounds
            query.range(start, end - 1)

        rows = self._run("fetch blog posts", query) or []
        return [self._to_post(row) for row in rows]

    def get_post(self, post_id: str) -> Optional[BlogPost]:
        query = self.transport.table(self.POSTS_TABLE).select(POST_SELECT).eq("id", post_id)
        row = self._run_single(f"fetch blog post {post_id}", query)
        return self._to_post(row) if row else None

    def get_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        query = self.transport.table(self.POSTS_TABLE).select(POST_SELECT).eq("slug", slug)
        row = self._run_single(f"fetch blog post with slug {slug}", query)
        return self._to_post(row) if row else None

    def list_categories(self) -> List[Category]:
        query = self.transport.table(self.CATEGORIES_TABLE).select("*").order("name")
        return [Category.from_dict(row) for row in self._run("fetch categories", query) or []]

    def get_category(self, category_id: str) -> Optional[Category]:
        query = self.transport.table(self.CATEGORIES_TABLE).select("*").eq("id", category_id)
        row = self._run_single(f"fetch category {category_id}", query)
        return Category.from_dict(row) if row else None

    def list_tags(self) -> List[Tag]:
        query = self.transport.table(self.TAGS_TABLE).select("*").order("name")
        return [Tag.from_dict(row) for row in self._run("fetch tags", query) or []]

    def _fetch_post_tags(self, post_id: str) -> List[Tag]:
        query = self.transport.table(self.POST_TAGS_TABLE).select(POST_TAG_SELECT).eq("post_id", post_id)
        rows = self._run(f"fetch tags for post {post_id}", query) or []
        return [Tag.from_dict(row["tag"]) for row in rows if row.get("tag")]

    def _post_ids_for_tags(self, tag_ids: List[str]) -> List[str]:
        query = self.transport.table(self.POST_TAGS_TABLE).select("post_id").in_("tag_id", tag_ids)
        rows = self._run("fetch tagged posts", query) or []
        return list(dict.fromkeys(str(row["post_id"]) for row in rows))

    def _post_ids_for_tag_search(self, term: str) -> List[str]:
        query = self.transport.table(self.TAGS_TABLE).select("id").ilike("name", ilike_pattern(term))
        tag_ids = [str(row["id"]) for row in self._run("search tags", query) or []]
        if not tag_ids:
            return []
        return self._post_ids_for_tags(tag_ids)

    def _to_post(self, row: Dict[str, Any]) -> BlogPost:
        post_id = str(row["id"])
        category = row.get("category")
        if not category:
            category = {"id": row.get("category_id") or "", "name": "", "slug": ""}
        author = row.get("author")
        if not author:
            author = self.default_author.to_dict()
            if row.get("author_id"):
                author["id"] = row["author_id"]

        return BlogPost.from_dict({
            "id": post_id,
            "title": row.get("title", ""),
            "slug": row.get("slug", ""),
            "excerpt": row.get("excerpt") or "",
            "content": row.get("content") or "",
            "category": category,
            "tags": [t.to_dict() for t in self._fetch_post_tags(post_id)],
            "author": author,
            "created_at": row.get("created_at", ""),
            "updated_at": row.get("updated_at", ""),
            "published_at": row.get("published_at"),
            "status": row.get("status"),
            "featured_image": row.get("featured_image"),
            "read_time": row.get("read_time"),
        })

    # Writes
    def _to_row(self, post: BlogPost) -> Dict[str, Any]:
        return {
            "id": post.id,
            "title": post.title,
            "slug": post.slug,
            "excerpt": post.excerpt,
            "content": post.content,
            "category_id": post.category.id,
            "author_id": post.author.id,
            "status": post.status.value,
            "featured_image": post.featured_image,
            "read_time": post.read_time,
            "created_at": post.created_at,
            "updated_at": post.updated_at,
            "published_at": post.published_at,
        }

    def insert_post(self, post: BlogPost) -> BlogPost:
        self._run("create blog post", self.transport.table(self.POSTS_TABLE).insert(self._to_row(post)))
        self._insert_post_tags(post.id, post.tag_ids)
        return self.get_post(post.id) or post

    def update_post(self, post: BlogPost, tags_changed: bool = True) -> BlogPost:
        row = self._to_row(post)
        del row["id"], row["created_at"]
        query = self.transport.table(self.POSTS_TABLE).update(row).eq("id", post.id)
        updated = self._run(f"update blog post {post.id}", query)
        if not updated:
            print(f"[RemoteStore] No row updated for post {post.id}")
            raise ValidationError("post", f"Blog post not found: {post.id}")

        if tags_changed and self._delete_post_tags(post.id):
            self._insert_post_tags(post.id, post.tag_ids)
        return self.get_post(post.id) or post

    def delete_post(self, post_id: str):
        self._delete_post_tags(post_id)
        query = self.transport.table(self.POSTS_TABLE).delete().eq("id", post_id)
        self._run(f"delete blog post {post_id}", query)

    def _delete_post_tags(self, post_id: str) -> bool:
        try:
            self.transport.table(self.POST_TAGS_TABLE).delete().eq("post_id", post_id).execute()
            return True
        except QueryError as e:
            self._report_partial(post_id, "remove tag associations", e)
            return False

    def _insert_post_tags(self, post_id: str, tag_ids: List[str]):
        if not tag_ids:
            return
        rows = [{"post_id": post_id, "tag_id": tag_id} for tag_id in tag_ids]
        try:
            self.transport.table(self.POST_TAGS_TABLE).insert(rows, returning=False).execute()
        except QueryError as e:
            self._report_partial(post_id, "add tag associations", e)
