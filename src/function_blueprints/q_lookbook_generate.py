import json

import azure.functions as func

from src.functions.lookbook_pipeline import run_lookbook
from src.media.ingestion import ingest_reference
from src.shared.credentials import default_resolver
from src.shared.logging_utils import info as log_info, error as log_error
from src.shared.state import RunStateStore
from src.specs.common.enums import AppStatus
from src.specs.common.errors import InputValidationError, LookbookError
from src.specs.models.domain import GarmentSet
from src.specs.queue.message import QueueMessage


bp = func.Blueprint()


def _load(ref):
    return ingest_reference(ref) if ref else None


def handle_lookbook_message(body: str) -> None:
    q = QueueMessage(**json.loads(body))
    if q.inputs is None:
        raise InputValidationError("generate_lookbook message has no inputs")
    try:
        person = ingest_reference(q.inputs.person)
        garments = GarmentSet(
            top=_load(q.inputs.top),
            bottom=_load(q.inputs.bottom),
            shoes=_load(q.inputs.shoes),
        )
    except LookbookError as exc:
        log_error(q.runTraceId, "lookbook:inputs_unreadable", error=str(exc))
        RunStateStore.set_status(q.runTraceId, AppStatus.ERROR, error=exc.to_dict())
        return

    run_lookbook(
        q.runTraceId,
        q.provider.value,
        person,
        garments,
        default_resolver(),
        parallel=bool(q.args.get("parallel", False)),
    )


@bp.function_name(name="q_lookbook_generate")
@bp.queue_trigger(
    arg_name="msg",
    queue_name="%LOOKBOOK_TASKS_QUEUE%",
    connection="AZURE_STORAGE_CONNECTION_STRING",
)
def q_lookbook_generate(msg: func.QueueMessage) -> None:
    log_info(None, "queue:dequeued", queue="lookbook-tasks", messageId=getattr(msg, "id", None))
    handle_lookbook_message(msg.get_body().decode("utf-8"))
