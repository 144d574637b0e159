import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import backoff

try:
    from azure.cosmos import CosmosClient, exceptions  # type: ignore
except Exception:  # pragma: no cover
    CosmosClient = None  # type: ignore
    exceptions = None  # type: ignore

from src.shared.state_common import runtime_dir, utc_now


class RetryableStoreError(Exception):
    """Indicates a Cosmos DB operation that should be retried"""


def _retryable(exc: Exception) -> Exception:
    status = getattr(exc, "status_code", None)
    if status in (429, 503):
        return RetryableStoreError(str(exc))
    return exc


class FileKeyValueStore:
    """Durable key-value store backed by a single JSON file."""

    kind = "file"
    _lock = threading.RLock()

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or (runtime_dir() / "kv.json")

    def _read_all(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except ValueError:
            logging.getLogger("lookbook").warning("kv store file %s is corrupt; starting empty", self._path)
            return {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), prefix=".kv-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp, self._path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read_all()
            data[key] = value
            self._write_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)


class CosmosKeyValueStore:
    """Key-value store where each key is one Cosmos document."""

    kind = "cosmos"

    def __init__(self, container: Any) -> None:
        self._container = container

    @classmethod
    def from_env(cls) -> "CosmosKeyValueStore":
        conn = os.getenv("COSMOS_DB_CONNECTION_STRING")
        db_name = os.getenv("COSMOS_DB_NAME")
        container_name = os.getenv("COSMOS_DB_CONTAINER_SETTINGS")
        if not conn or not db_name or not container_name:
            raise RuntimeError("Cosmos configuration is missing")
        if CosmosClient is None:
            raise RuntimeError("azure-cosmos package not available")
        client = CosmosClient.from_connection_string(conn)
        db = client.get_database_client(db_name)
        return cls(db.get_container_client(container_name))

    @backoff.on_exception(backoff.expo, RetryableStoreError, max_tries=3, max_time=10)
    def get(self, key: str) -> Optional[Any]:
        try:
            doc = self._container.read_item(item=key, partition_key=key)
        except Exception as exc:
            if exceptions is not None and isinstance(exc, exceptions.CosmosResourceNotFoundError):
                return None
            raise _retryable(exc)
        return doc.get("value")

    @backoff.on_exception(backoff.expo, RetryableStoreError, max_tries=3, max_time=10)
    def set(self, key: str, value: Any) -> None:
        body = {"id": key, "partitionKey": key, "value": value, "lastUpdateUtc": utc_now()}
        try:
            self._container.upsert_item(body)
        except Exception as exc:
            raise _retryable(exc)

    @backoff.on_exception(backoff.expo, RetryableStoreError, max_tries=3, max_time=10)
    def delete(self, key: str) -> None:
        try:
            self._container.delete_item(item=key, partition_key=key)
        except Exception as exc:
            if exceptions is not None and isinstance(exc, exceptions.CosmosResourceNotFoundError):
                return
            raise _retryable(exc)


def select_store():
    backend = os.getenv("KV_STORE_BACKEND", "auto").lower()
    if backend == "file":
        return FileKeyValueStore()
    if backend == "cosmos":
        return CosmosKeyValueStore.from_env()
    # auto-detect cosmos if config present
    if (
        os.getenv("COSMOS_DB_CONNECTION_STRING")
        and os.getenv("COSMOS_DB_NAME")
        and os.getenv("COSMOS_DB_CONTAINER_SETTINGS")
        and CosmosClient is not None
    ):
        return CosmosKeyValueStore.from_env()
    return FileKeyValueStore()
