"""
Conversions between raw image bytes and the transport encodings providers expect.
"""
from __future__ import annotations

import base64
import binascii
import io

import httpx
from PIL import Image, UnidentifiedImageError

from .errors import TransportError
from .types import ImagePayload

DEFAULT_CONTENT_TYPE = "image/png"
_DATA_URI_MARKER = "base64,"


def is_data_uri(value: str) -> bool:
    return value.startswith("data:") and _DATA_URI_MARKER in value


def strip_data_uri(value: str) -> str:
    """Return the raw base64 part of ``value`` whether or not it carries a data URI prefix."""
    if _DATA_URI_MARKER in value:
        return value.split(_DATA_URI_MARKER, 1)[1]
    return value


def to_data_uri(value: str, content_type: str) -> str:
    if is_data_uri(value):
        return value
    return f"data:{content_type};base64,{value}"


def encode(data: bytes, content_type: str, *, data_uri: bool = True) -> str:
    """Encode image bytes as a data URI, or as bare base64 when ``data_uri`` is False."""
    raw = base64.b64encode(data).decode("ascii")
    return to_data_uri(raw, content_type) if data_uri else raw


def _media_type(value: str | None) -> str | None:
    if not value:
        return None
    media_type = value.split(";", 1)[0].strip().lower()
    return media_type if media_type.startswith("image/") else None


def decode(value: str | bytes, content_type: str | None = None) -> ImagePayload:
    """
    Build an ``ImagePayload`` from a data URI, bare base64 text or raw bytes.

    The content type comes from the data URI prefix, then ``content_type``, and
    falls back to ``image/png`` since several providers omit it on their output.
    """
    if isinstance(value, bytes):
        return ImagePayload(value, _media_type(content_type) or DEFAULT_CONTENT_TYPE)

    declared = _media_type(content_type)
    if is_data_uri(value):
        declared = _media_type(value[len("data:"):].split(";", 1)[0]) or declared

    try:
        data = base64.b64decode("".join(strip_data_uri(value).split()), validate=True)
    except (ValueError, binascii.Error) as exc:
        raise TransportError(f"Failed to decode base64 image data: {exc}") from exc
    return ImagePayload(data, declared or DEFAULT_CONTENT_TYPE)


def decode_response(response: httpx.Response) -> ImagePayload:
    """Turn a downloaded result body into a payload using its declared media type."""
    return decode(response.content, response.headers.get("content-type"))


def filename_for(content_type: str) -> str:
    content_type = content_type.lower()
    if "jpeg" in content_type or "jpg" in content_type:
        return "image.jpg"
    if "bmp" in content_type:
        return "image.bmp"
    return "image.png"


def ensure_image(payload: ImagePayload, provider: str | None = None) -> ImagePayload:
    """Reject empty or undecodable result bytes so they are never reported as success."""
    if not payload.data:
        raise TransportError("Provider returned an empty image", provider=provider)
    try:
        with Image.open(io.BytesIO(payload.data)) as image:
            image.verify()
    except Image.DecompressionBombError:
        # The header parsed as an image; only the pixel count is over Pillow's limit.
        pass
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise TransportError(f"Provider returned data that is not a valid image: {exc}", provider=provider) from exc
    return payload
