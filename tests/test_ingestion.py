import base64
from unittest.mock import MagicMock, patch

import pytest

from src.media.ingestion import ingest_bytes, ingest_reference, ingest_user_reference
from src.shared.media_store import file_uri_to_path, save_media
from src.specs.common.errors import InputValidationError
from tests.helpers import data_uri, make_png


def test_payload_fields_are_consistent():
    png = make_png()
    payload = ingest_bytes(png)
    assert payload.mimeType == "image/png"
    assert base64.b64decode(payload.base64Data) == png
    assert payload.displayHandle == data_uri(png)
    assert payload.size() == len(png)


def test_reference_forms_agree():
    png = make_png()
    from_uri = ingest_reference(data_uri(png))
    from_b64 = ingest_reference(base64.b64encode(png).decode("ascii"))
    from_store = ingest_reference(save_media(png, name="sample", content_type="image/png"))
    assert from_uri.rawBytes == from_b64.rawBytes == from_store.rawBytes == png


def test_non_image_is_rejected():
    with pytest.raises(InputValidationError):
        ingest_bytes(b"plain text")
    with pytest.raises(InputValidationError):
        ingest_reference("")


def test_url_fetch_checks_content_type():
    resp = MagicMock(content=b"<html>", headers={"Content-Type": "text/html"})
    with patch("src.media.ingestion.requests.get", return_value=resp):
        with pytest.raises(InputValidationError, match="not a direct image"):
            ingest_reference("https://example.com/page")


def test_url_fetch_returns_payload():
    png = make_png()
    resp = MagicMock(content=png, headers={"Content-Type": "image/png"})
    with patch("src.media.ingestion.requests.get", return_value=resp) as get:
        payload = ingest_reference("https://example.com/a.png")
    assert payload.rawBytes == png
    resp.raise_for_status.assert_called_once()
    assert "User-Agent" in get.call_args.kwargs["headers"]


def test_client_references_accept_data_uri_url_and_base64():
    png = make_png()
    assert ingest_user_reference(data_uri(png)).rawBytes == png
    assert ingest_user_reference(base64.b64encode(png).decode("ascii")).rawBytes == png
    resp = MagicMock(content=png, headers={"Content-Type": "image/png"})
    with patch("src.media.ingestion.requests.get", return_value=resp):
        assert ingest_user_reference("https://example.com/a.png").rawBytes == png


@pytest.mark.parametrize("kind", ["file_uri", "path"])
def test_client_references_never_read_local_files(kind):
    stored = save_media(make_png(), name="other-run-pose-0", content_type="image/png")
    ref = stored if kind == "file_uri" else str(file_uri_to_path(stored))
    assert ingest_reference(ref).mimeType == "image/png"
    with pytest.raises(InputValidationError):
        ingest_user_reference(ref)
