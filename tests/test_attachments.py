"""Tests for featured image encoding."""

import base64
import io
import os

import pytest
from PIL import Image

from blogstore import ValidationError
from blogstore.attachments import (
    AttachmentManager,
    FileReadError,
    FileTooLargeError,
    format_size,
    payload_size,
    to_data_url,
)


def _decode(data_url):
    header, _, encoded = data_url.partition(",")
    return base64.b64decode(encoded), header[len("data:"):].split(";")[0]


def _write_png(path, size=(40, 30), noisy=False):
    if noisy:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    else:
        img = Image.new("RGB", size, color=(200, 30, 30))
    img.save(path, format="PNG")
    return path


class TestHelpers:
    """Test formatting helpers."""

    def test_format_size(self):
        assert format_size(512) == "512 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"

    def test_payload_size_counts_utf8(self):
        assert payload_size("abc") == 3
        assert payload_size("é") == 2
        assert payload_size(None) == 0

    def test_to_data_url(self):
        assert to_data_url(b"\x89PNG", "image/png") == "data:image/png;base64,iVBORw=="


class TestAttachmentManager:
    """Test image reading and compression."""

    def test_small_image_kept_as_is(self, tmp_path):
        path = _write_png(tmp_path / "small.png")
        data_url = AttachmentManager().encode_image(str(path))

        assert data_url.startswith("data:image/png;base64,")
        content, mime_type = _decode(data_url)
        assert content == path.read_bytes()
        assert mime_type == "image/png"

    def test_large_image_compressed(self, tmp_path):
        path = _write_png(tmp_path / "big.png", size=(1000, 800), noisy=True)
        manager = AttachmentManager(max_data_url_length=10_000)

        data_url = manager.encode_image(str(path))
        assert data_url.startswith("data:image/jpeg;base64,")

        content, _ = _decode(data_url)
        with Image.open(io.BytesIO(content)) as img:
            assert img.width <= 800
            assert img.height <= 600

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError):
            AttachmentManager().read_file(str(tmp_path / "nope.png"))

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(FileReadError):
            AttachmentManager().read_file(str(path))

    def test_too_large(self, tmp_path):
        path = _write_png(tmp_path / "img.png")
        with pytest.raises(FileTooLargeError):
            AttachmentManager(max_size=10).read_file(str(path))


class TestClientFeaturedImage:
    """Test image encoding through the client."""

    def test_encode_and_attach(self, local_client, form_data, tmp_path):
        path = _write_png(tmp_path / "cover.png")
        form_data["featured_image"] = local_client.encode_featured_image(str(path))

        post = local_client.create_blog_post(form_data)
        assert post.featured_image.startswith("data:image/png;base64,")
        assert local_client.get_blog_post_by_id(post.id).featured_image == post.featured_image

    def test_encode_failure_is_validation_error(self, local_client, tmp_path):
        with pytest.raises(ValidationError) as excinfo:
            local_client.encode_featured_image(str(tmp_path / "missing.png"))
        assert excinfo.value.field == "featured_image"

    def test_large_content_warns(self, local_client, form_data, capsys):
        form_data["content"] = "x" * (1024 * 1024 + 1)

        local_client.create_blog_post(form_data)
        assert "Content is large (1.0 MB)" in capsys.readouterr().out

    def test_small_content_does_not_warn(self, local_client, form_data, capsys):
        local_client.create_blog_post(form_data)
        assert "Content is large" not in capsys.readouterr().out
