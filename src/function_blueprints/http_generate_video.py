import os

import azure.functions as func

from src.function_blueprints.responses import error_response, from_exception, json_response, parse_body
from src.functions.lookbook_pipeline import video_source
from src.shared.credentials import default_resolver
from src.shared.logging_utils import info as log_info, error as log_error
from src.shared.state import RunStateStore, add_event
from src.specs.common.enums import AppStatus, CredentialName
from src.specs.common.errors import LookbookError, ResourceNotFoundError
from src.specs.models.http import GenerateLookbookResponse, GenerateVideoRequest
from src.specs.queue.message import QueueMessage


bp = func.Blueprint()

VIDEO_QUEUE = os.getenv("VIDEO_TASKS_QUEUE", "video-tasks")
_VIDEO_READY_STATES = (AppStatus.IMAGE_READY.value, AppStatus.VIDEO_READY.value)


@bp.function_name(name="generate_video")
@bp.route(route="generate_video", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
@bp.queue_output(
    arg_name="video_queue",
    queue_name="%VIDEO_TASKS_QUEUE%",
    connection="AZURE_STORAGE_CONNECTION_STRING",
)
def generate_video(req: func.HttpRequest, video_queue: func.Out[str]) -> func.HttpResponse:
    try:
        parsed = parse_body(req, GenerateVideoRequest)
        state = RunStateStore.get_status(parsed.runTraceId)
        if state is None:
            raise ResourceNotFoundError("run", parsed.runTraceId)
        if state.get("status") not in _VIDEO_READY_STATES:
            return error_response(
                "Video can only be generated once the lookbook is ready",
                409,
                code="INVALID_STATE",
                details={"status": state.get("status")},
            )
        default_resolver().require(CredentialName.GEMINI)
        image_ref = video_source(parsed.runTraceId, parsed.poseIndex)
    except LookbookError as exc:
        log_error(None, "video:rejected", code=exc.code, error=str(exc))
        return from_exception(exc)

    RunStateStore.set_status(parsed.runTraceId, AppStatus.GENERATING_VIDEO)
    add_event(parsed.runTraceId, phase="video", action="accepted", data={"poseIndex": parsed.poseIndex})
    qmsg = QueueMessage(runTraceId=parsed.runTraceId, step="generate_video", imageRef=image_ref)
    video_queue.set(qmsg.model_dump_json())
    log_info(parsed.runTraceId, "video:enqueued", queue=VIDEO_QUEUE)

    resp = GenerateLookbookResponse(
        accepted=True,
        runTraceId=parsed.runTraceId,
        next=f"/api/check_task_status?runTraceId={parsed.runTraceId}",
    )
    return json_response(resp, 202)
