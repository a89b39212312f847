"""Data types for blogstore."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple

DEFAULT_PAGE_SIZE = 10

# camelCase keys sent by the web front end
FIELD_ALIASES = {
    "categoryId": "category_id",
    "tagIds": "tag_ids",
    "featuredImage": "featured_image",
    "publishedAt": "published_at",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "readTime": "read_time",
    "authorId": "author_id",
}


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase keys to their snake_case field names."""
    return {FIELD_ALIASES.get(key, key): value for key, value in data.items()}


class PostStatus(str, Enum):
    """Publication status of a blog post."""
    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"


@dataclass
class Author:
    """Post author."""
    id: str
    name: str
    avatar: str = ""
    bio: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "avatar": self.avatar, "bio": self.bio}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Author":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            avatar=data.get("avatar") or "",
            bio=data.get("bio") or "",
        )


@dataclass
class Category:
    """Post category (reference data)."""
    id: str
    name: str
    slug: str
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            description=data.get("description"),
        )


@dataclass
class Tag:
    """Post tag (reference data)."""
    id: str
    name: str
    slug: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "slug": self.slug}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tag":
        return cls(id=str(data["id"]), name=data.get("name", ""), slug=data.get("slug", ""))


@dataclass
class BlogPost:
    """Fully hydrated blog post."""
    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    author: Author
    category: Category
    created_at: str
    updated_at: str
    status: PostStatus = PostStatus.DRAFT
    tags: List[Tag] = field(default_factory=list)
    published_at: Optional[str] = None
    featured_image: str = ""
    read_time: int = 1

    @property
    def tag_ids(self) -> List[str]:
        return [tag.id for tag in self.tags]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "excerpt": self.excerpt,
            "content": self.content,
            "author": self.author.to_dict(),
            "category": self.category.to_dict(),
            "tags": [tag.to_dict() for tag in self.tags],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "published_at": self.published_at,
            "status": self.status.value,
            "featured_image": self.featured_image,
            "read_time": self.read_time,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogPost":
        data = normalize_keys(data)
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            slug=data.get("slug", ""),
            excerpt=data.get("excerpt", ""),
            content=data.get("content", ""),
            author=Author.from_dict(data["author"]),
            category=Category.from_dict(data["category"]),
            tags=[Tag.from_dict(t) for t in data.get("tags") or []],
            created_at=data.get("created_at", ""),
            updated_at=data.get("updated_at", ""),
            published_at=data.get("published_at"),
            status=PostStatus(data.get("status") or PostStatus.DRAFT.value),
            featured_image=data.get("featured_image") or "",
            read_time=int(data.get("read_time") or 1),
        )


@dataclass
class BlogPostFormData:
    """Input for creating or fully replacing a post."""
    title: str = ""
    excerpt: str = ""
    content: str = ""
    category_id: str = ""
    tag_ids: List[str] = field(default_factory=list)
    featured_image: str = ""
    status: PostStatus = PostStatus.DRAFT
    published_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "excerpt": self.excerpt,
            "content": self.content,
            "category_id": self.category_id,
            "tag_ids": list(self.tag_ids),
            "featured_image": self.featured_image,
            "status": self.status.value if isinstance(self.status, PostStatus) else self.status,
            "published_at": self.published_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogPostFormData":
        data = normalize_keys(data)
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class BlogPostFilter:
    """Listing constraints; ``None`` means no constraint on that field."""
    search: Optional[str] = None
    category_id: Optional[str] = None
    tag_ids: Optional[List[str]] = None
    status: Optional[PostStatus] = None
    author_id: Optional[str] = None
    page: Optional[int] = None
    limit: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogPostFilter":
        data = normalize_keys(data)
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise TypeError(f"Unknown filter fields: {', '.join(sorted(unknown))}")
        return cls(**data)

    def page_bounds(self) -> Optional[Tuple[int, int]]:
        """Return the ``[start, end)`` slice for pagination, or None when unpaged."""
        if self.page is None and self.limit is None:
            return None
        page = self.page if self.page is not None else 1
        limit = self.limit if self.limit is not None else DEFAULT_PAGE_SIZE
        start = (page - 1) * limit
        return start, start + limit
