import json

import azure.functions as func

from src.functions.lookbook_pipeline import run_video
from src.shared.credentials import default_resolver
from src.shared.logging_utils import info as log_info
from src.specs.common.errors import InputValidationError
from src.specs.queue.message import QueueMessage


bp = func.Blueprint()


def handle_video_message(body: str) -> None:
    q = QueueMessage(**json.loads(body))
    if not q.imageRef:
        raise InputValidationError("generate_video message has no imageRef")
    run_video(q.runTraceId, q.imageRef, default_resolver())


@bp.function_name(name="q_video_generate")
@bp.queue_trigger(
    arg_name="msg",
    queue_name="%VIDEO_TASKS_QUEUE%",
    connection="AZURE_STORAGE_CONNECTION_STRING",
)
def q_video_generate(msg: func.QueueMessage) -> None:
    log_info(None, "queue:dequeued", queue="video-tasks", messageId=getattr(msg, "id", None))
    handle_video_message(msg.get_body().decode("utf-8"))
