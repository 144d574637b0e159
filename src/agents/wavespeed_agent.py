import os
import time
from typing import Any, Callable, Dict, Optional

import requests

from src.agents.base import TryOnProvider
from src.agents.prompt_builder import build_generation_prompt
from src.shared.logging_utils import info as log_info, error as log_error
from src.specs.common.errors import ProviderError
from src.specs.models.domain import GenerationRequest

DEFAULT_API_BASE = "https://api.wavespeed.ai/api/v3"
SUBMIT_TIMEOUT = 60
POLL_TIMEOUT = 15


def _api_base() -> str:
    return os.getenv("WAVESPEED_API_BASE", DEFAULT_API_BASE).rstrip("/")


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}: {resp.reason or 'request failed'}"


class WavespeedTryOnProvider(TryOnProvider):
    """Base for image-edit models hosted on WaveSpeed.

    Submission is asynchronous: the task is created, then its result
    endpoint is polled until the task completes or fails. The poll loop is
    bounded by ``max_polls`` so a stuck task surfaces as a ProviderError.
    """

    name = "wavespeed"
    model_path = ""

    def __init__(
        self,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
        poll_interval: Optional[float] = None,
        max_polls: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self._http = session or requests.Session()
        self.poll_interval = poll_interval if poll_interval is not None else float(os.getenv("WAVESPEED_POLL_INTERVAL", "2"))
        self.max_polls = max_polls if max_polls is not None else int(os.getenv("WAVESPEED_MAX_POLLS", "90"))
        self._sleep = sleep

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"}

    def extra_params(self) -> Dict[str, Any]:
        return {}

    def _build_body(self, request: GenerationRequest) -> Dict[str, Any]:
        prompt = build_generation_prompt(request)
        body: Dict[str, Any] = {
            "prompt": prompt.text,
            "images": [img.displayHandle for img in prompt.attachments],
            "enable_sync_mode": False,
            "enable_base64_output": False,
        }
        body.update(self.extra_params())
        return body

    def _call(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            resp = self._http.request(method, url, headers=self._headers(), **kwargs)
        except requests.RequestException as exc:
            raise ProviderError(f"{self.name} request failed: {exc}", provider=self.name)
        if not resp.ok:
            message = _error_message(resp)
            log_error(self._run_trace_id, "wavespeed:http_error", model=self.model_path, status=resp.status_code, error=message)
            raise ProviderError(message, provider=self.name, details={"status": resp.status_code})
        data = (resp.json() or {}).get("data")
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name} returned a malformed response", provider=self.name)
        return data

    def generate(self, request: GenerationRequest) -> str:
        log_info(self._run_trace_id, "wavespeed:submit", model=self.model_path, pose=request.pose.index)
        task = self._call("POST", f"{_api_base()}/{self.model_path}", json=self._build_body(request), timeout=SUBMIT_TIMEOUT)
        task_id = task.get("id")
        if not task_id:
            raise ProviderError(f"{self.name} did not return a task id", provider=self.name)
        result_url = ((task.get("urls") or {}).get("get")) or f"{_api_base()}/predictions/{task_id}/result"

        for _ in range(self.max_polls):
            data = self._call("GET", result_url, timeout=POLL_TIMEOUT)
            status = (data.get("status") or "").lower()
            if status == "completed":
                outputs = data.get("outputs") or []
                if not outputs:
                    raise ProviderError(f"No image generated by {self.name}.", provider=self.name, details={"taskId": task_id})
                return outputs[0]
            if status == "failed":
                raise ProviderError(data.get("error") or f"{self.name} generation failed", provider=self.name, details={"taskId": task_id})
            self._sleep(self.poll_interval)

        raise ProviderError(
            f"{self.name} task {task_id} did not finish after {self.max_polls} polls",
            provider=self.name,
            details={"taskId": task_id},
        )


class SeedreamTryOnProvider(WavespeedTryOnProvider):
    name = "seedream"
    model_path = "bytedance/seedream-v4/edit"

    def extra_params(self) -> Dict[str, Any]:
        return {"size": os.getenv("SEEDREAM_SIZE", "1536*2048")}


class FluxTryOnProvider(WavespeedTryOnProvider):
    name = "flux"
    model_path = "wavespeed-ai/flux-kontext-pro/multi"

    def extra_params(self) -> Dict[str, Any]:
        return {"guidance_scale": 3.5, "num_images": 1, "safety_tolerance": "2"}
