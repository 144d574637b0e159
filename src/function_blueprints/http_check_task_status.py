import azure.functions as func

from src.function_blueprints.responses import error_response, from_exception, json_response, parse_body
from src.functions.lookbook_pipeline import reset_run
from src.specs.common.enums import AppStatus
from src.specs.common.errors import LookbookError
from src.specs.common.ids import RunRef
from src.specs.models.http import TaskStatusResponse
from src.shared.state import RunStateStore
from src.shared.logging_utils import info as log_info, error as log_error


bp = func.Blueprint()


@bp.function_name(name="check_task_status")
@bp.route(route="check_task_status", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def check_task_status(req: func.HttpRequest) -> func.HttpResponse:
    run_trace_id = req.params.get("runTraceId")
    if not run_trace_id:
        try:
            body = req.get_json()
            run_trace_id = body.get("runTraceId") if isinstance(body, dict) else None
        except ValueError as exc:
            log_error(None, "status:bad_json", error=str(exc))
            run_trace_id = None

    log_info(run_trace_id, "status:request")

    if not run_trace_id:
        log_error(None, "status:missing_runTraceId")
        return error_response("Missing runTraceId", 400, code="INVALID_INPUT")

    state = RunStateStore.get_status(run_trace_id)
    if state is None:
        log_info(run_trace_id, "status:not_found")
        resp = TaskStatusResponse(runTraceId=run_trace_id, status=AppStatus.IDLE)
    else:
        log_info(run_trace_id, "status:found", status=state.get("status"), completedPoses=state.get("completedPoses"))
        resp = TaskStatusResponse(
            runTraceId=run_trace_id,
            status=state.get("status", AppStatus.IDLE),
            provider=state.get("provider"),
            completedPoses=state.get("completedPoses") or 0,
            lastUpdateUtc=state.get("lastUpdateUtc"),
            result=state.get("result") or {},
            error=state.get("error"),
        )
    return json_response(resp)


@bp.function_name(name="reset_run")
@bp.route(route="reset_run", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def reset_run_handler(req: func.HttpRequest) -> func.HttpResponse:
    try:
        parsed = parse_body(req, RunRef)
    except LookbookError as exc:
        return from_exception(exc)
    reset_run(parsed.runTraceId)
    log_info(parsed.runTraceId, "run:reset")
    return json_response(TaskStatusResponse(runTraceId=parsed.runTraceId, status=AppStatus.IDLE))
