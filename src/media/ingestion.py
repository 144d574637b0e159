"""
Turn user uploads, wardrobe samples and generated results into ImagePayloads.
"""
import base64
import binascii
import io
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from src.shared.media_store import file_uri_to_path
from src.specs.common.errors import InputValidationError
from src.specs.models.domain import ImagePayload

FETCH_TIMEOUT = 15

_FORMAT_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}

# Some CDNs refuse requests without a browser-like agent
_FETCH_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
}


def sniff_mime_type(data: bytes) -> str:
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        raise InputValidationError("Data is not a readable image")
    return _FORMAT_MIME.get(fmt or "", f"image/{(fmt or 'png').lower()}")


def ingest_bytes(data: bytes, mime_type: Optional[str] = None) -> ImagePayload:
    if not data:
        raise InputValidationError("Image is empty")
    sniffed = sniff_mime_type(data)
    mime = mime_type if mime_type and mime_type.startswith("image/") else sniffed
    b64 = base64.b64encode(data).decode("ascii")
    return ImagePayload(
        rawBytes=data,
        base64Data=b64,
        mimeType=mime,
        displayHandle=f"data:{mime};base64,{b64}",
    )


def ingest_base64(b64: str, mime_type: Optional[str] = None) -> ImagePayload:
    try:
        data = base64.b64decode(b64, validate=True)
    except (binascii.Error, ValueError):
        raise InputValidationError("Image is not valid base64")
    return ingest_bytes(data, mime_type)


def ingest_data_uri(uri: str) -> ImagePayload:
    header, sep, payload = uri.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise InputValidationError("Unsupported data URI; expected data:<mime>;base64,<data>")
    mime = header[len("data:"):].split(";", 1)[0] or None
    return ingest_base64(payload, mime)


def ingest_file(path: Path) -> ImagePayload:
    if not path.is_file():
        raise InputValidationError(f"Image file not found: {path}")
    return ingest_bytes(path.read_bytes())


def ingest_url(url: str, *, timeout: int = FETCH_TIMEOUT) -> ImagePayload:
    """Fetch a remote image. HTTP errors propagate as requests exceptions."""
    resp = requests.get(url, headers=_FETCH_HEADERS, timeout=timeout)
    resp.raise_for_status()
    content_type = (resp.headers.get("Content-Type") or "").split(";")[0].strip()
    if content_type and not content_type.startswith("image/"):
        raise InputValidationError(f"URL is not a direct image link: {url}", details={"contentType": content_type})
    return ingest_bytes(resp.content, content_type or None)


def ingest_reference(ref: str) -> ImagePayload:
    """Load any image reference this service hands out or accepts."""
    ref = (ref or "").strip()
    if not ref:
        raise InputValidationError("Image reference is empty")
    if ref.startswith("data:"):
        return ingest_data_uri(ref)
    if ref.startswith(("http://", "https://")):
        return ingest_url(ref)
    local = file_uri_to_path(ref)
    if local is not None:
        return ingest_file(local)
    candidate = Path(ref)
    if len(ref) < 1024 and candidate.suffix and candidate.is_file():
        return ingest_file(candidate)
    return ingest_base64(ref)


def ingest_user_reference(ref: str) -> ImagePayload:
    """Load an image reference supplied by a client.

    Only data URIs, http(s) URLs and raw base64 are accepted. Server-local
    paths and ``file://`` URIs are internal media-store references and are
    refused here.
    """
    ref = (ref or "").strip()
    if not ref:
        raise InputValidationError("Image reference is empty")
    if ref.startswith("data:"):
        return ingest_data_uri(ref)
    if ref.startswith(("http://", "https://")):
        return ingest_url(ref)
    if ":" in ref:
        raise InputValidationError(
            "Images must be a data URI, an http(s) URL or base64 data",
            details={"reference": ref[:120]},
        )
    return ingest_base64(ref)
