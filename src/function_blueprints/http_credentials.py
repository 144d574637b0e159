import azure.functions as func

from src.function_blueprints.responses import from_exception, json_response, parse_body
from src.shared.credentials import CredentialStore, credential_name, default_resolver
from src.shared.logging_utils import info as log_info
from src.specs.common.errors import LookbookError
from src.specs.models.http import CredentialStatusResponse, CredentialUpdateRequest


bp = func.Blueprint()


def _status(store: CredentialStore, provider) -> CredentialStatusResponse:
    value, source = default_resolver(store).resolve_with_source(provider)
    return CredentialStatusResponse(provider=provider, configured=value is not None, source=source)


@bp.function_name(name="credentials")
@bp.route(route="credentials/{provider}", methods=["GET", "PUT", "DELETE"], auth_level=func.AuthLevel.FUNCTION)
def credentials(req: func.HttpRequest) -> func.HttpResponse:
    """Report, save or clear one provider key. The key itself is never returned."""
    try:
        provider = credential_name(req.route_params.get("provider", ""))
        store = CredentialStore()
        if req.method == "PUT":
            parsed = parse_body(req, CredentialUpdateRequest)
            store.set(provider, parsed.value)
        elif req.method == "DELETE":
            store.clear(provider)
        resp = _status(store, provider)
    except LookbookError as exc:
        return from_exception(exc)
    log_info(None, "credentials:request", method=req.method, provider=provider.value, configured=resp.configured)
    return json_response(resp)
