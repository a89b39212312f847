"""Default content used to seed an empty local store."""

from typing import List

from blogstore.types import Author, Category, Tag

DEFAULT_AUTHOR = Author(
    id="1",
    name="Demo Author",
    avatar="https://api.dicebear.com/7.x/avataaars/svg?seed=demo",
    bio="This is a demo author for local development.",
)

DEFAULT_CATEGORIES = [
    Category(id="1", name="Technology", slug="technology"),
    Category(id="2", name="Design", slug="design"),
    Category(id="3", name="Business", slug="business"),
]

DEFAULT_TAGS = [
    Tag(id="1", name="React", slug="react"),
    Tag(id="2", name="UI/UX", slug="ui-ux"),
    Tag(id="3", name="Development", slug="development"),
    Tag(id="4", name="Web", slug="web"),
    Tag(id="5", name="Mobile", slug="mobile"),
]


def default_categories() -> List[dict]:
    return [c.to_dict() for c in DEFAULT_CATEGORIES]


def default_tags() -> List[dict]:
    return [t.to_dict() for t in DEFAULT_TAGS]
