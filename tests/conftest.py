"""
Pytest configuration and fixtures.
"""

import json
import re

import httpx
import pytest

from blogstore import BlogClient, BlogConfig
from blogstore.remote import RemoteContentStore
from blogstore.seed import DEFAULT_CATEGORIES, DEFAULT_TAGS, DEFAULT_AUTHOR
from blogstore.storage import KeyValueStore, LocalContentStore
from blogstore.transport import RestTransport

SUPABASE_URL = "https://blog-test.supabase.co"


def _split_top_level(text):
    """Split on commas that are not inside quotes or parentheses."""
    parts, depth, quoted, escaped, current = [], 0, False, False, ""
    for char in text:
        if escaped:
            current += char
            escaped = False
            continue
        if char == "\\":
            current += char
            escaped = True
            continue
        if char == '"':
            quoted = not quoted
        elif not quoted and char == "(":
            depth += 1
        elif not quoted and char == ")":
            depth -= 1
        elif not quoted and depth == 0 and char == ",":
            parts.append(current)
            current = ""
            continue
        current += char
    if current:
        parts.append(current)
    return parts


def _unquote(value):
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
        value = re.sub(r"\\(.)", r"\1", value)
    return value


def _matches(row, column, operator, operand):
    value = row.get(column)
    if operator == "eq":
        return value is not None and str(value) == _unquote(operand)
    if operator == "in":
        options = [_unquote(v) for v in _split_top_level(operand.strip("()"))]
        return value is not None and str(value) in options
    if operator == "ilike":
        needle = _unquote(operand).strip("*").lower()
        return value is not None and needle in str(value).lower()
    raise AssertionError(f"Unsupported operator {operator}")


class FakePostgrest:
    """In-memory stand-in for a PostgREST endpoint, served via httpx.MockTransport."""

    def __init__(self):
        self.tables = {
            "blog_posts": [],
            "categories": [c.to_dict() for c in DEFAULT_CATEGORIES],
            "tags": [t.to_dict() for t in DEFAULT_TAGS],
            "blog_post_tags": [],
            "authors": [DEFAULT_AUTHOR.to_dict()],
        }
        self.requests = []
        self.failures = {}

    def fail(self, method, table, status=500, message="internal error"):
        self.failures[(method, table)] = (status, message)

    def __call__(self, request):
        table = request.url.path.rsplit("/", 1)[-1]
        self.requests.append((request.method, table, request.url.params.multi_items()))

        if (request.method, table) in self.failures:
            status, message = self.failures[(request.method, table)]
            return httpx.Response(status, json={"message": message, "code": "XX000"})

        rows = self.tables[table]
        params = request.url.params.multi_items()
        matching = [row for row in rows if self._row_matches(row, params)]

        if request.method == "GET":
            return self._select(request, table, matching, params)
        if request.method == "POST":
            body = json.loads(request.content)
            new_rows = body if isinstance(body, list) else [body]
            rows.extend(new_rows)
            if "return=representation" in request.headers.get("Prefer", ""):
                return httpx.Response(201, json=new_rows)
            return httpx.Response(201)
        if request.method == "PATCH":
            values = json.loads(request.content)
            for row in matching:
                row.update(values)
            return httpx.Response(200, json=matching)
        if request.method == "DELETE":
            self.tables[table] = [row for row in rows if row not in matching]
            return httpx.Response(204)
        raise AssertionError(f"Unexpected method {request.method}")

    def _row_matches(self, row, params):
        for key, value in params:
            if key in ("select", "order", "offset", "limit"):
                continue
            if key == "or":
                conditions = _split_top_level(value[1:-1])
                if not any(self._condition_matches(row, c) for c in conditions):
                    return False
                continue
            operator, _, operand = value.partition(".")
            if not _matches(row, key, operator, operand):
                return False
        return True

    def _condition_matches(self, row, condition):
        column, operator, operand = condition.split(".", 2)
        return _matches(row, column, operator, operand)

    def _select(self, request, table, rows, params):
        params = dict(params)
        if "order" in params:
            column, direction = params["order"].rsplit(".", 1)
            rows = sorted(rows, key=lambda r: str(r.get(column) or ""), reverse=direction == "desc")
        offset = int(params.get("offset", 0))
        if "limit" in params:
            rows = rows[offset:offset + int(params["limit"])]
        else:
            rows = rows[offset:]

        shaped = [self._shape(row, params.get("select", "*")) for row in rows]

        if request.headers.get("Accept") == "application/vnd.pgrst.object+json":
            if len(shaped) != 1:
                return httpx.Response(406, json={
                    "code": "PGRST116",
                    "message": "JSON object requested, multiple (or no) rows returned",
                })
            return httpx.Response(200, json=shaped[0])
        return httpx.Response(200, json=shaped)

    def _shape(self, row, select):
        shaped = {}
        for item in _split_top_level(select):
            if item == "*":
                shaped.update(row)
            elif ":" in item:
                alias, target = item.split(":", 1)
                target_table = target.split("(", 1)[0]
                foreign_key = row.get(f"{alias}_id")
                related = [r for r in self.tables[target_table] if str(r["id"]) == str(foreign_key)]
                shaped[alias] = dict(related[0]) if related else None
            else:
                shaped[item] = row.get(item)
        return shaped


@pytest.fixture
def local_store():
    """Local content store over an in-memory key-value store."""
    store = LocalContentStore(KeyValueStore())
    yield store
    store.close()


@pytest.fixture
def local_client(local_store):
    """Client using the local store, already seeded."""
    client = BlogClient(BlogConfig(), store=local_store)
    client.initialize()
    return client


@pytest.fixture
def fake_postgrest():
    return FakePostgrest()


@pytest.fixture
def remote_store(fake_postgrest):
    transport = RestTransport(SUPABASE_URL, "test-anon-key", transport=httpx.MockTransport(fake_postgrest))
    store = RemoteContentStore(transport)
    yield store
    store.close()


@pytest.fixture
def remote_client(remote_store):
    """Client using the remote store against the fake PostgREST server."""
    return BlogClient(BlogConfig(), store=remote_store)


@pytest.fixture
def form_data():
    """Valid create input."""
    return {
        "title": "Hello, World!",
        "excerpt": "A first post",
        "content": "Some words about nothing in particular",
        "category_id": "1",
        "tag_ids": ["1", "3"],
        "status": "draft",
    }
