import pytest

from src.media.ingestion import ingest_bytes
from tests.helpers import make_png


@pytest.fixture(autouse=True)
def isolated_runtime(tmp_path, monkeypatch):
    monkeypatch.setenv("RUNTIME_STATE_DIR", str(tmp_path / "runtime"))
    monkeypatch.setenv("KV_STORE_BACKEND", "file")
    monkeypatch.setenv("CREDENTIALS_CONFIG_FILE", str(tmp_path / "missing-config.json"))
    for var in ("GEMINI_API_KEY", "API_KEY", "WAVESPEED_API_KEY", "PUBLIC_BLOB_CONNECTION_STRING", "VIDEO_MAX_WAIT_SECONDS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("VIDEO_POLL_INTERVAL", "0")
    return tmp_path


@pytest.fixture
def person():
    return ingest_bytes(make_png((240, 220, 200)))


@pytest.fixture
def top():
    return ingest_bytes(make_png((200, 30, 30)))


@pytest.fixture
def shoes():
    return ingest_bytes(make_png((20, 20, 20)))
