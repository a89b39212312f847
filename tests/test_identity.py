"""Tests for author identity persistence."""

import json

import pytest

from blogstore import BlogClient, BlogConfig
from blogstore.errors import StorageError
from blogstore.identity import AuthorManager
from blogstore.types import Author


class TestAuthorManager:
    """Test author profile loading and saving."""

    def test_creates_default_profile(self, tmp_path):
        manager = AuthorManager(tmp_path)
        author = manager.load_or_create()

        assert author.name == "Demo Author"
        saved = json.loads((tmp_path / "author.json").read_text())
        assert saved["id"] == author.id

    def test_loads_existing_profile(self, tmp_path):
        (tmp_path / "author.json").write_text(json.dumps({"id": "42", "name": "Ada"}))

        author = AuthorManager(tmp_path).load_or_create()
        assert author == Author(id="42", name="Ada")

    def test_author_id_override(self, tmp_path):
        author = AuthorManager(tmp_path, author_id="custom").load_or_create()
        assert author.id == "custom"

    def test_author_id_override_survives_set_author(self, tmp_path):
        manager = AuthorManager(tmp_path, author_id="uuid-row")
        manager.load_or_create()
        manager.set_author(Author(id="1", name="Renamed"))

        assert manager.author.id == "uuid-row"
        assert manager.author.name == "Renamed"
        saved = json.loads((tmp_path / "author.json").read_text())
        assert saved["id"] == "1"

    def test_set_author_persists(self, tmp_path):
        manager = AuthorManager(tmp_path)
        manager.set_author(Author(id="7", name="Grace", bio="Compilers"))

        reloaded = AuthorManager(tmp_path).load_or_create()
        assert reloaded.name == "Grace"
        assert reloaded.bio == "Compilers"

    def test_corrupt_profile(self, tmp_path):
        (tmp_path / "author.json").write_text("not json")
        with pytest.raises(StorageError):
            AuthorManager(tmp_path).load_or_create()

    def test_in_memory_without_path(self):
        manager = AuthorManager()
        assert manager.author.id == "1"
        manager.set_author(Author(id="2", name="Other"))
        assert manager.author.name == "Other"

    def test_client_attaches_author(self, local_client, form_data):
        local_client.set_author(Author(id="9", name="Writer"))
        post = local_client.create_blog_post(form_data)
        assert post.author == Author(id="9", name="Writer")
        assert local_client.get_blog_posts(author_id="9")[0].id == post.id

    def test_client_author_override_after_set_author(self, local_store, form_data):
        client = BlogClient(BlogConfig(author_id="configured"), store=local_store)
        client.initialize()
        client.set_author(Author(id="profile", name="Writer"))

        post = client.create_blog_post(form_data)
        assert post.author.id == "configured"
        assert post.author.name == "Writer"

    def test_post_author_is_a_copy(self, local_client, form_data):
        post = local_client.create_blog_post(form_data)
        post.author.name = "Changed"

        assert local_client.author.name == "Demo Author"
        second = local_client.create_blog_post({**form_data, "title": "Second"})
        assert second.author.name == "Demo Author"
