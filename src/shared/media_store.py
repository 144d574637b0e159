"""
Persistence for generated and uploaded media.

Uses Azure Blob Storage when PUBLIC_BLOB_CONNECTION_STRING is set and the
local runtime directory otherwise. Either way the caller gets back a
reference string that ``src.media.ingestion.ingest_reference`` can load.
"""
import mimetypes
import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from src.shared import blob_store
from src.shared.logging_utils import info as log_info
from src.shared.state_common import runtime_dir

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "video/mp4": "mp4",
}


def extension_for(content_type: str) -> str:
    ext = _EXTENSIONS.get(content_type)
    if ext:
        return ext
    guessed = mimetypes.guess_extension(content_type or "")
    return guessed.lstrip(".") if guessed else "bin"


def local_media_dir() -> Path:
    return runtime_dir() / "media"


def save_media(
    data: bytes,
    *,
    name: str,
    content_type: str,
    run_trace_id: Optional[str] = None,
) -> str:
    """Store ``data`` under ``name`` (extension added) and return its reference."""
    filename = f"{name}.{extension_for(content_type)}"
    if blob_store.is_configured():
        container = os.getenv("PUBLIC_BLOB_CONTAINER", "media")
        url = blob_store.upload_bytes(
            container=container,
            blob_name=filename,
            data=data,
            content_type=content_type,
            run_trace_id=run_trace_id,
        )
        log_info(run_trace_id, "media:uploaded", blob=filename, size=len(data))
        return url

    path = local_media_dir() / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    log_info(run_trace_id, "media:saved_local", path=str(path), size=len(data))
    return path.resolve().as_uri()


def file_uri_to_path(ref: str) -> Optional[Path]:
    parsed = urlparse(ref)
    if parsed.scheme != "file":
        return None
    return Path(unquote(parsed.path))
