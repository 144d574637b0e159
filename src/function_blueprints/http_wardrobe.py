import azure.functions as func

from src.function_blueprints.responses import error_response, from_exception, json_response, parse_body
from src.shared.logging_utils import info as log_info
from src.specs.common.errors import LookbookError
from src.specs.models.http import WardrobeAddRequest, WardrobeListResponse
from src.tools.wardrobe_tool import WardrobeCatalog


bp = func.Blueprint()


@bp.function_name(name="wardrobe")
@bp.route(route="wardrobe", methods=["GET", "POST"], auth_level=func.AuthLevel.FUNCTION)
def wardrobe(req: func.HttpRequest) -> func.HttpResponse:
    catalog = WardrobeCatalog()
    try:
        if req.method == "POST":
            parsed = parse_body(req, WardrobeAddRequest)
            item = catalog.add_custom(parsed.type, parsed.url, parsed.label)
            return json_response(WardrobeListResponse(items=[item]), 201)
        items = catalog.list_items(req.params.get("type") or None)
    except LookbookError as exc:
        return from_exception(exc)
    log_info(None, "wardrobe:list", count=len(items))
    return json_response(WardrobeListResponse(items=items))


@bp.function_name(name="wardrobe_item")
@bp.route(route="wardrobe/{item_id}", methods=["DELETE"], auth_level=func.AuthLevel.FUNCTION)
def wardrobe_item(req: func.HttpRequest) -> func.HttpResponse:
    raw_id = req.route_params.get("item_id", "")
    if not raw_id.isdigit():
        return error_response(f"Invalid wardrobe item id '{raw_id}'", 400, code="INVALID_INPUT")
    try:
        item = WardrobeCatalog().delete(int(raw_id))
    except LookbookError as exc:
        return from_exception(exc)
    return json_response(WardrobeListResponse(items=[item]))


@bp.function_name(name="wardrobe_restore")
@bp.route(route="wardrobe_restore", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def wardrobe_restore(req: func.HttpRequest) -> func.HttpResponse:
    catalog = WardrobeCatalog()
    catalog.restore_samples()
    log_info(None, "wardrobe:restored")
    return json_response(WardrobeListResponse(items=catalog.list_items()))
