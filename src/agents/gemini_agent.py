import os
from typing import Any, Dict, List, Optional

import requests

from src.agents.base import TryOnProvider
from src.agents.prompt_builder import build_generation_prompt
from src.shared.logging_utils import info as log_info, error as log_error
from src.specs.common.errors import ProviderError
from src.specs.models.domain import GenerationRequest

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_IMAGE_MODEL = "gemini-3-pro-image-preview"
GENERATE_TIMEOUT = 180


def api_base() -> str:
    return os.getenv("GEMINI_API_BASE", DEFAULT_API_BASE).rstrip("/")


def api_headers(api_key: str) -> Dict[str, str]:
    return {"x-goog-api-key": api_key, "Content-Type": "application/json"}


def api_error_message(resp: requests.Response) -> str:
    """Best human-readable message from a failed Google API response."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        err = body.get("error") or {}
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return f"HTTP {resp.status_code}: {resp.reason or 'request failed'}"


def extract_inline_image(body: Dict[str, Any]) -> Optional[Dict[str, str]]:
    candidates = body.get("candidates") or []
    if not candidates:
        return None
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            return {
                "data": inline["data"],
                "mimeType": inline.get("mimeType") or inline.get("mime_type") or "image/png",
            }
    return None


def _failure_reason(body: Dict[str, Any]) -> str:
    feedback = body.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        return str(feedback["blockReason"])
    candidates = body.get("candidates") or []
    if candidates and candidates[0].get("finishReason"):
        return str(candidates[0]["finishReason"])
    return "Unknown"


class GeminiTryOnProvider(TryOnProvider):
    """Gemini image model called through the Generative Language REST API."""

    name = "gemini"

    def __init__(self, api_key: str, *, model: Optional[str] = None, session: Optional[requests.Session] = None) -> None:
        super().__init__()
        self._api_key = api_key
        self.model = model or os.getenv("GEMINI_IMAGE_MODEL", DEFAULT_IMAGE_MODEL)
        self._http = session or requests.Session()

    def _build_body(self, request: GenerationRequest) -> Dict[str, Any]:
        prompt = build_generation_prompt(request)
        parts: List[Dict[str, Any]] = [
            {"inlineData": {"mimeType": img.mimeType, "data": img.base64Data}}
            for img in prompt.attachments
        ]
        parts.append({"text": prompt.text})
        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }

    def generate(self, request: GenerationRequest) -> str:
        url = f"{api_base()}/models/{self.model}:generateContent"
        log_info(self._run_trace_id, "gemini:generate", model=self.model, pose=request.pose.index)
        try:
            resp = self._http.post(url, headers=api_headers(self._api_key), json=self._build_body(request), timeout=GENERATE_TIMEOUT)
        except requests.RequestException as exc:
            raise ProviderError(f"Gemini request failed: {exc}", provider=self.name)
        if not resp.ok:
            message = api_error_message(resp)
            log_error(self._run_trace_id, "gemini:http_error", status=resp.status_code, error=message)
            raise ProviderError(message, provider=self.name, details={"status": resp.status_code})

        body = resp.json()
        image = extract_inline_image(body)
        if image is None:
            reason = _failure_reason(body)
            raise ProviderError(f"No image generated by the model. Reason: {reason}", provider=self.name, details={"reason": reason})
        return f"data:{image['mimeType']};base64,{image['data']}"
