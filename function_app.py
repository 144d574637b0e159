import os
import logging
import azure.functions as func

from src.shared.logging_utils import LOGGER_NAME

from src.function_blueprints.compose_image_blueprint import bp as compose_image_bp
from src.function_blueprints.http_check_task_status import bp as status_bp
from src.function_blueprints.http_credentials import bp as credentials_bp
from src.function_blueprints.http_generate_lookbook import bp as generate_lookbook_bp
from src.function_blueprints.http_generate_video import bp as generate_video_bp
from src.function_blueprints.http_wardrobe import bp as wardrobe_bp
from src.function_blueprints.q_lookbook_generate import bp as q_lookbook_bp
from src.function_blueprints.q_video_generate import bp as q_video_bp

app = func.FunctionApp()


def _configure_logging() -> None:
    lvl = (os.getenv("AZURE_SDK_LOG_LEVEL") or "").upper()
    if lvl:
        level = getattr(logging, lvl, logging.INFO)
        logging.getLogger("azure").setLevel(level)
        logging.getLogger("azure.cosmos").setLevel(level)
    app_lvl = (os.getenv("LOOKBOOK_LOG_LEVEL") or "INFO").upper()
    logging.getLogger(LOGGER_NAME).setLevel(getattr(logging, app_lvl, logging.INFO))


_configure_logging()

for blueprint in (
    generate_lookbook_bp,
    q_lookbook_bp,
    generate_video_bp,
    q_video_bp,
    status_bp,
    credentials_bp,
    wardrobe_bp,
    compose_image_bp,
):
    app.register_functions(blueprint)
