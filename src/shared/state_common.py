import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def runtime_dir() -> Path:
    """Base directory for local runtime state.

    Defaults to a temp-based directory so the Functions host file watcher
    does not restart on writes. Override with RUNTIME_STATE_DIR.
    """
    default = Path(tempfile.gettempdir()) / "lookbook-runtime"
    return Path(os.getenv("RUNTIME_STATE_DIR", str(default)))
