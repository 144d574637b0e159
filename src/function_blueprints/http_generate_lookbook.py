import os
import uuid
from time import perf_counter
from typing import Optional

import azure.functions as func
import requests

from src.agents.provider_registry import ensure_credential
from src.function_blueprints.responses import error_response, from_exception, json_response, parse_body
from src.media.ingestion import ingest_user_reference
from src.shared.credentials import default_resolver
from src.shared.logging_utils import info as log_info, error as log_error
from src.shared.media_store import save_media
from src.shared.state import RunStateStore, add_event
from src.specs.common.enums import AppStatus
from src.specs.common.errors import LookbookError
from src.specs.models.domain import GenerationResult, ImagePayload
from src.specs.models.http import GenerateLookbookRequest, GenerateLookbookResponse
from src.specs.queue.message import InputRefs, QueueMessage
from src.tools.wardrobe_tool import WardrobeCatalog


bp = func.Blueprint()

LOOKBOOK_QUEUE = os.getenv("LOOKBOOK_TASKS_QUEUE", "lookbook-tasks")


def _garment(image: Optional[str], item_id: Optional[int], catalog: WardrobeCatalog) -> Optional[ImagePayload]:
    if image:
        return ingest_user_reference(image)
    if item_id is not None:
        return catalog.load_image(item_id)
    return None


def _persist(run_trace_id: str, slot: str, payload: Optional[ImagePayload]) -> Optional[str]:
    if payload is None:
        return None
    return save_media(
        payload.rawBytes,
        name=f"{run_trace_id}-input-{slot}",
        content_type=payload.mimeType,
        run_trace_id=run_trace_id,
    )


@bp.function_name(name="generate_lookbook")
@bp.route(route="generate_lookbook", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
@bp.queue_output(
    arg_name="lookbook_queue",
    queue_name="%LOOKBOOK_TASKS_QUEUE%",
    connection="AZURE_STORAGE_CONNECTION_STRING",
)
def generate_lookbook(req: func.HttpRequest, lookbook_queue: func.Out[str]) -> func.HttpResponse:
    start = perf_counter()
    run_trace_id = uuid.uuid4().hex
    try:
        parsed = parse_body(req, GenerateLookbookRequest)
        # Credential check happens before any image is fetched or stored
        ensure_credential(parsed.provider, default_resolver())

        catalog = WardrobeCatalog()
        person = ingest_user_reference(parsed.personImage)
        inputs = InputRefs(
            person=_persist(run_trace_id, "person", person),
            top=_persist(run_trace_id, "top", _garment(parsed.topImage, parsed.topItemId, catalog)),
            bottom=_persist(run_trace_id, "bottom", _garment(parsed.bottomImage, parsed.bottomItemId, catalog)),
            shoes=_persist(run_trace_id, "shoes", _garment(parsed.shoesImage, parsed.shoesItemId, catalog)),
        )
    except LookbookError as exc:
        log_error(run_trace_id, "lookbook:rejected", code=exc.code, error=str(exc))
        return from_exception(exc)
    except requests.RequestException as exc:
        log_error(run_trace_id, "lookbook:image_fetch_failed", error=str(exc))
        return error_response(f"Could not fetch image: {exc}", 400, code="INVALID_INPUT")

    RunStateStore.set_status(
        run_trace_id,
        AppStatus.GENERATING_IMAGE,
        provider=parsed.provider.value,
        result=GenerationResult().model_dump(),
        completed_poses=0,
    )
    add_event(run_trace_id, phase="lookbook", action="accepted", data={"provider": parsed.provider.value})

    qmsg = QueueMessage(
        runTraceId=run_trace_id,
        step="generate_lookbook",
        provider=parsed.provider,
        inputs=inputs,
        args={"parallel": parsed.parallel},
    )
    lookbook_queue.set(qmsg.model_dump_json())
    duration_ms = int((perf_counter() - start) * 1000)
    log_info(run_trace_id, "lookbook:enqueued", queue=LOOKBOOK_QUEUE, durationMs=duration_ms)

    resp = GenerateLookbookResponse(
        accepted=True,
        runTraceId=run_trace_id,
        next=f"/api/check_task_status?runTraceId={run_trace_id}",
    )
    return json_response(resp, 202)
