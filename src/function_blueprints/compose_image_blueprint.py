import azure.functions as func

from src.function_blueprints.responses import from_exception, parse_body
from src.media.compositor import compose_lookbook_grid
from src.media.ingestion import ingest_user_reference
from src.shared.logging_utils import info as log_info
from src.specs.common.errors import CompositionError, LookbookError
from src.specs.models.http import ComposeGridRequest

bp = func.Blueprint()


@bp.function_name(name="compose_grid")
@bp.route(route="compose_grid", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def compose_grid_handler(req: func.HttpRequest) -> func.HttpResponse:
    """Render four image references into the lookbook PNG."""
    try:
        parsed = parse_body(req, ComposeGridRequest)
        png = compose_lookbook_grid(parsed.imageUrls, loader=ingest_user_reference)
    except CompositionError as exc:
        return from_exception(exc, 400)
    except LookbookError as exc:
        return from_exception(exc)
    log_info(None, "compose:grid_response", size=len(png))
    return func.HttpResponse(png, status_code=200, mimetype="image/png")
