import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Any, List

try:
    from azure.cosmos import CosmosClient  # type: ignore
except Exception:  # pragma: no cover
    CosmosClient = None  # type: ignore

from src.shared.logging_utils import info as log_info, error as log_error
from src.shared.state_common import runtime_dir, utc_now

# Serialises every read-modify-write of state.json within the worker process
_FILE_LOCK = threading.RLock()


def _state_file() -> Path:
    return runtime_dir() / "state.json"


def _read_all() -> Dict[str, dict]:
    path = _state_file()
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except ValueError:
        return {}


def _write_all(data: Dict[str, dict]) -> None:
    path = _state_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(path.parent), prefix=".state-", suffix=".json")
    try:
        with os.fdopen(fd, "w") as fh:
            json.dump(data, fh)
        os.replace(tmp, path)
    except Exception:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def _status_value(status: Any) -> str:
    return getattr(status, "value", status)


def _new_event(phase: str, action: str, message: Optional[str], data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    ev: Dict[str, Any] = {"ts": utc_now(), "phase": phase, "action": action}
    if message:
        ev["message"] = message
    if data is not None:
        ev["data"] = data
    return ev


def _apply_status(
    entry: Dict[str, Any],
    run_trace_id: str,
    status: Any,
    provider: Optional[str],
    result: Optional[Dict[str, Any]],
    error: Optional[Dict[str, Any]],
    completed_poses: Optional[int],
) -> Dict[str, Any]:
    entry.update(
        {
            "runTraceId": run_trace_id,
            "status": _status_value(status),
            "lastUpdateUtc": utc_now(),
            "error": error,
            "provider": _status_value(provider) if provider else entry.get("provider"),
        }
    )
    if result is not None:
        entry["result"] = result
    if completed_poses is not None:
        entry["completedPoses"] = completed_poses
    return entry


class _FileRunStateStore:
    @staticmethod
    def set_status(
        run_trace_id: str,
        status: Any,
        *,
        provider: Optional[str] = None,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[Dict[str, Any]] = None,
        completed_poses: Optional[int] = None,
    ) -> None:
        with _FILE_LOCK:
            data = _read_all()
            entry = data.get(run_trace_id, {})
            data[run_trace_id] = _apply_status(entry, run_trace_id, status, provider, result, error, completed_poses)
            _write_all(data)

    @staticmethod
    def get_status(run_trace_id: str) -> Optional[Dict]:
        with _FILE_LOCK:
            return _read_all().get(run_trace_id)

    @staticmethod
    def add_event(
        run_trace_id: str,
        *,
        phase: str,
        action: str,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        with _FILE_LOCK:
            store = _read_all()
            entry = store.get(run_trace_id) or {"runTraceId": run_trace_id, "status": "IDLE"}
            events: List[Dict[str, Any]] = entry.get("events") or []
            events.append(_new_event(phase, action, message, data))
            entry["events"] = events
            entry["lastUpdateUtc"] = utc_now()
            store[run_trace_id] = entry
            _write_all(store)


class _CosmosRunStateStore:
    _container: Any = None

    @classmethod
    def _ensure_container(cls):
        if cls._container is not None:
            return cls._container

        conn = os.getenv("COSMOS_DB_CONNECTION_STRING")
        db_name = os.getenv("COSMOS_DB_NAME")
        container_name = os.getenv("COSMOS_DB_CONTAINER_AGENT_RUNS")
        if not conn or not db_name or not container_name:
            raise RuntimeError("Cosmos configuration is missing")
        if CosmosClient is None:
            raise RuntimeError("azure-cosmos package not available")

        client = CosmosClient.from_connection_string(conn)
        db = client.get_database_client(db_name)
        cls._container = db.get_container_client(container_name)
        log_info(None, "cosmos:runs:init", container=container_name)
        return cls._container

    @classmethod
    def _read(cls, run_trace_id: str) -> Optional[Dict[str, Any]]:
        container = cls._ensure_container()
        try:
            return container.read_item(item=run_trace_id, partition_key=run_trace_id)
        except Exception:
            return None

    @classmethod
    def set_status(
        cls,
        run_trace_id: str,
        status: Any,
        *,
        provider: Optional[str] = None,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[Dict[str, Any]] = None,
        completed_poses: Optional[int] = None,
    ) -> None:
        container = cls._ensure_container()
        item = cls._read(run_trace_id) or {"id": run_trace_id, "partitionKey": run_trace_id}
        body = _apply_status(item, run_trace_id, status, provider, result, error, completed_poses)
        try:
            container.upsert_item(body)
            log_info(run_trace_id, "cosmos:runs:upsert_status", status=body["status"])
        except Exception as exc:
            # Run state is telemetry for the client; do not fail the worker on it
            log_error(run_trace_id, "cosmos:runs:upsert_failed", error=str(exc))

    @classmethod
    def get_status(cls, run_trace_id: str) -> Optional[Dict]:
        item = cls._read(run_trace_id)
        if not item:
            return None
        return {k: v for k, v in item.items() if not k.startswith("_") and k not in ("id", "partitionKey")}

    @classmethod
    def add_event(
        cls,
        run_trace_id: str,
        *,
        phase: str,
        action: str,
        message: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        container = cls._ensure_container()
        item = cls._read(run_trace_id) or {
            "id": run_trace_id,
            "partitionKey": run_trace_id,
            "runTraceId": run_trace_id,
            "status": "IDLE",
        }
        events: List[Dict[str, Any]] = item.get("events") or []
        events.append(_new_event(phase, action, message, data))
        item["events"] = events
        item["lastUpdateUtc"] = utc_now()
        try:
            container.upsert_item(item)
        except Exception as exc:
            log_error(run_trace_id, "cosmos:runs:upsert_event_failed", error=str(exc))


def _select_backend():
    backend = os.getenv("RUN_STATE_BACKEND", "auto").lower()
    if backend == "file":
        return _FileRunStateStore
    if backend == "cosmos":
        return _CosmosRunStateStore
    # auto-detect cosmos if config present
    if os.getenv("COSMOS_DB_CONNECTION_STRING") and os.getenv("COSMOS_DB_NAME") and os.getenv("COSMOS_DB_CONTAINER_AGENT_RUNS") and CosmosClient is not None:
        return _CosmosRunStateStore
    return _FileRunStateStore


RunStateStore = _select_backend()


def add_event(run_trace_id: str, *, phase: str, action: str, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> None:
    """Best-effort event append; a failing event write never aborts a run."""
    try:
        RunStateStore.add_event(run_trace_id, phase=phase, action=action, message=message, data=data)
    except Exception as exc:
        log_error(run_trace_id, "run_state:add_event_failed", phase=phase, action=action, error=str(exc))
