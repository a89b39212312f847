"""Featured image handling for blogstore."""

import base64
import io
import mimetypes
from pathlib import Path
from typing import Tuple

from PIL import Image


MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5 MB raw file
MAX_DATA_URL_LENGTH = 1_000_000  # characters; larger images get recompressed
COMPRESSED_MAX_WIDTH = 800
COMPRESSED_MAX_HEIGHT = 600
COMPRESSED_QUALITY = 50

IMAGE_MIME_TYPES = {
    'image/jpeg', 'image/png', 'image/gif', 'image/webp', 'image/bmp'
}


class AttachmentError(Exception):
    """Base exception for attachment errors."""
    pass


class FileTooLargeError(AttachmentError):
    """Raised when file exceeds maximum size."""
    pass


class FileReadError(AttachmentError):
    """Raised when file cannot be read."""
    pass


def format_size(size: int) -> str:
    """Format a byte or character count for display."""
    if size < 1024:
        return f"{size} B"
    elif size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    else:
        return f"{size / (1024 * 1024):.1f} MB"


def payload_size(text: str) -> int:
    """Get the UTF-8 encoded size of a text payload."""
    return len((text or "").encode("utf-8"))


def to_data_url(content: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"


class AttachmentManager:
    """Turns local image files into inline featured images."""

    def __init__(self, max_size: int = MAX_IMAGE_SIZE,
                 max_data_url_length: int = MAX_DATA_URL_LENGTH):
        self.max_size = max_size
        self.max_data_url_length = max_data_url_length

    def read_file(self, file_path: str) -> Tuple[bytes, str]:
        """Read an image file and return its content and MIME type."""
        path = Path(file_path)

        if not path.exists():
            raise FileReadError(f"File not found: {file_path}")

        if not path.is_file():
            raise FileReadError(f"Not a file: {file_path}")

        size = path.stat().st_size
        if size > self.max_size:
            raise FileTooLargeError(
                f"File too large: {format_size(size)} (max {format_size(self.max_size)})"
            )

        mime_type, _ = mimetypes.guess_type(str(path))
        if mime_type not in IMAGE_MIME_TYPES:
            raise FileReadError(f"Not a supported image: {file_path}")

        try:
            with open(path, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise FileReadError(f"Failed to read file: {e}")

        return content, mime_type

    def encode_image(self, file_path: str) -> str:
        """Encode an image as a data URL, shrinking it when the URL gets too long.

        Oversized images are scaled to fit 800x600 and re-encoded as JPEG.
        """
        content, mime_type = self.read_file(file_path)
        data_url = to_data_url(content, mime_type)
        if len(data_url) <= self.max_data_url_length:
            return data_url

        print(f"[Attachments] Image too large for inline storage ({format_size(len(data_url))}), compressing: {file_path}")
        return to_data_url(self.compress(content), 'image/jpeg')

    def compress(self, content: bytes, max_width: int = COMPRESSED_MAX_WIDTH,
                 max_height: int = COMPRESSED_MAX_HEIGHT,
                 quality: int = COMPRESSED_QUALITY) -> bytes:
        """Resize and recompress image bytes as JPEG."""
        try:
            with Image.open(io.BytesIO(content)) as img:
                if img.mode != 'RGB':
                    img = img.convert('RGB')
                img.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)

                buffer = io.BytesIO()
                img.save(buffer, format='JPEG', quality=quality, optimize=True)
                return buffer.getvalue()
        except OSError as e:
            raise FileReadError(f"Failed to process image: {e}")
