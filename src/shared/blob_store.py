import os
from typing import Optional

try:
    from azure.storage.blob import BlobServiceClient, ContentSettings  # type: ignore
except Exception:  # pragma: no cover
    BlobServiceClient = None  # type: ignore
    ContentSettings = None  # type: ignore

from src.shared.retry_utils import retry_with_backoff


def is_configured() -> bool:
    return bool(os.getenv("PUBLIC_BLOB_CONNECTION_STRING")) and BlobServiceClient is not None


def _get_service_client() -> "BlobServiceClient":
    conn = os.getenv("PUBLIC_BLOB_CONNECTION_STRING")
    if not conn:
        raise RuntimeError("PUBLIC_BLOB_CONNECTION_STRING is required for blob uploads")
    if BlobServiceClient is None:
        raise RuntimeError("azure-storage-blob package not available")
    return BlobServiceClient.from_connection_string(conn)


def upload_bytes(
    *,
    container: str,
    blob_name: str,
    data: bytes,
    content_type: Optional[str] = None,
    run_trace_id: Optional[str] = None,
) -> str:
    """Upload bytes to blob storage, return the public blob URL.

    Creates the container with blob-level public access if missing, since
    the browser loads lookbook images and videos straight from these URLs.
    """
    service = _get_service_client()
    container_client = service.get_container_client(container)
    if not container_client.exists():
        container_client.create_container(public_access="blob")
    blob = container_client.get_blob_client(blob_name)
    kwargs = {}
    if content_type and ContentSettings is not None:
        kwargs["content_settings"] = ContentSettings(content_type=content_type)
    retry_with_backoff(
        lambda: blob.upload_blob(data, overwrite=True, **kwargs),
        label=f"blob:{blob_name}",
        run_trace_id=run_trace_id,
    )
    return blob.url
