import json

import azure.functions as func

from src.function_blueprints import (
    compose_image_blueprint,
    http_check_task_status,
    http_credentials,
    http_generate_lookbook,
    http_wardrobe,
)
from src.function_blueprints.q_lookbook_generate import handle_lookbook_message
from src.shared.media_store import save_media
from src.shared.state import RunStateStore
from src.specs.common.enums import AppStatus
from tests.helpers import data_uri, make_png


class Capture:
    def __init__(self):
        self.value = None

    def set(self, value):
        self.value = value

    def get(self):
        return self.value


def _call(handler, *args):
    return handler.build().get_user_function()(*args)


def _req(method, url, body=None, params=None, route_params=None):
    return func.HttpRequest(
        method=method,
        url=url,
        body=json.dumps(body).encode("utf-8") if body is not None else b"",
        params=params or {},
        route_params=route_params or {},
        headers={"Content-Type": "application/json"},
    )


def _lookbook_body(provider="placeholder", **extra):
    body = {"provider": provider, "personImage": data_uri(make_png((230, 210, 190)))}
    body.update(extra)
    return body


def test_generate_lookbook_requires_a_garment():
    queue = Capture()
    resp = _call(http_generate_lookbook.generate_lookbook, _req("POST", "/api/generate_lookbook", _lookbook_body()), queue)
    assert resp.status_code == 400
    assert "at least one clothing item" in json.loads(resp.get_body())["message"]
    assert queue.value is None


def test_generate_lookbook_missing_key_is_401():
    queue = Capture()
    body = _lookbook_body("gemini", topImage=data_uri(make_png()))
    resp = _call(http_generate_lookbook.generate_lookbook, _req("POST", "/api/generate_lookbook", body), queue)
    assert resp.status_code == 401
    assert json.loads(resp.get_body())["errorCode"] == "MISSING_CREDENTIAL"
    assert queue.value is None


def test_generate_lookbook_accepts_and_worker_completes():
    queue = Capture()
    body = _lookbook_body(topImage=data_uri(make_png()))
    resp = _call(http_generate_lookbook.generate_lookbook, _req("POST", "/api/generate_lookbook", body), queue)
    assert resp.status_code == 202
    run_trace_id = json.loads(resp.get_body())["runTraceId"]
    message = json.loads(queue.value)
    assert message["step"] == "generate_lookbook"
    assert message["inputs"]["top"].startswith("file://")
    assert message["inputs"]["bottom"] is None

    handle_lookbook_message(queue.value)

    status = _call(
        http_check_task_status.check_task_status,
        _req("GET", "/api/check_task_status", params={"runTraceId": run_trace_id}),
    )
    payload = json.loads(status.get_body())
    assert payload["status"] == AppStatus.IMAGE_READY.value
    assert len(payload["result"]["imageUrls"]) == 4
    assert payload["result"]["compositeImageUrl"]


def test_check_task_status_unknown_run_is_idle():
    resp = _call(http_check_task_status.check_task_status, _req("GET", "/api/check_task_status", params={"runTraceId": "nope"}))
    assert json.loads(resp.get_body())["status"] == AppStatus.IDLE.value
    assert RunStateStore.get_status("nope") is None


def test_credentials_roundtrip_never_returns_secret():
    put = _call(
        http_credentials.credentials,
        _req("PUT", "/api/credentials/gemini", {"value": "secret-key"}, route_params={"provider": "gemini"}),
    )
    assert put.status_code == 200
    assert b"secret-key" not in put.get_body()
    assert json.loads(put.get_body()) == {"provider": "gemini", "configured": True, "source": "store"}

    deleted = _call(http_credentials.credentials, _req("DELETE", "/api/credentials/gemini", route_params={"provider": "gemini"}))
    assert json.loads(deleted.get_body())["configured"] is False


def test_credentials_unknown_provider():
    resp = _call(http_credentials.credentials, _req("GET", "/api/credentials/openai", route_params={"provider": "openai"}))
    assert resp.status_code == 400


def test_wardrobe_list_filters_by_type():
    resp = _call(http_wardrobe.wardrobe, _req("GET", "/api/wardrobe", params={"type": "shoe"}))
    items = json.loads(resp.get_body())["items"]
    assert [i["label"] for i in items] == ["Red Sneakers", "Leather Shoes", "Sport Runners"]


def test_wardrobe_delete_unknown_item_is_404():
    resp = _call(http_wardrobe.wardrobe_item, _req("DELETE", "/api/wardrobe/99", route_params={"item_id": "99"}))
    assert resp.status_code == 404


def test_compose_grid_returns_png():
    refs = [data_uri(make_png(size=(20, 30)))] * 4
    resp = _call(compose_image_blueprint.compose_grid_handler, _req("POST", "/api/compose_grid", {"imageUrls": refs}))
    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert resp.get_body().startswith(b"\x89PNG")


def test_compose_grid_rejects_three_images():
    refs = [data_uri(make_png())] * 3
    resp = _call(compose_image_blueprint.compose_grid_handler, _req("POST", "/api/compose_grid", {"imageUrls": refs}))
    assert resp.status_code == 400
    assert json.loads(resp.get_body())["errorCode"] == "COMPOSITION_ERROR"


def test_compose_grid_refuses_server_local_files():
    stored = save_media(make_png(size=(20, 30)), name="other-run-pose-0", content_type="image/png")
    resp = _call(compose_image_blueprint.compose_grid_handler, _req("POST", "/api/compose_grid", {"imageUrls": [stored] * 4}))
    assert resp.status_code == 400
    assert resp.mimetype == "application/json"


def test_generate_lookbook_refuses_file_uri_inputs():
    queue = Capture()
    stored = save_media(make_png(), name="other-run-input-person", content_type="image/png")
    body = {"provider": "placeholder", "personImage": stored, "topImage": data_uri(make_png())}
    resp = _call(http_generate_lookbook.generate_lookbook, _req("POST", "/api/generate_lookbook", body), queue)
    assert resp.status_code == 400
    assert queue.value is None
