import os
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

import requests
from pydantic import BaseModel, Field

from src.agents.gemini_agent import api_base, api_error_message, api_headers
from src.media.ingestion import ingest_reference
from src.shared.logging_utils import info as log_info, error as log_error
from src.shared.state_common import utc_now
from src.specs.agents.tryon_instructions import VIDEO_PROMPT
from src.specs.common.enums import VideoState
from src.specs.common.errors import VideoGenerationError
from src.specs.models.domain import ImagePayload, VideoTransition

DEFAULT_VIDEO_MODEL = "veo-3.1-fast-generate-preview"
DEFAULT_POLL_INTERVAL = 5.0
REQUEST_TIMEOUT = 60
DOWNLOAD_TIMEOUT = 300

# Legal moves of the per-request state machine
_TRANSITIONS: Dict[Optional[VideoState], set] = {
    None: {VideoState.SUBMITTED},
    VideoState.SUBMITTED: {VideoState.POLLING, VideoState.FAILED},
    VideoState.POLLING: {VideoState.POLLING, VideoState.DONE, VideoState.FAILED, VideoState.CANCELLED, VideoState.TIMED_OUT},
    VideoState.DONE: {VideoState.FETCHING, VideoState.FAILED},
    VideoState.FETCHING: {VideoState.READY, VideoState.FAILED},
}


class VideoJob(BaseModel):
    state: Optional[VideoState] = None
    operationName: Optional[str] = None
    videoUri: Optional[str] = None
    mimeType: str = "video/mp4"
    videoBytes: Optional[bytes] = Field(default=None, repr=False, exclude=True)
    error: Optional[str] = None
    waitedSeconds: Optional[float] = None
    history: List[VideoTransition] = Field(default_factory=list)

    def transition(self, state: VideoState, note: Optional[str] = None) -> None:
        allowed = _TRANSITIONS.get(self.state, set())
        if state not in allowed:
            raise RuntimeError(f"Illegal video job transition {self.state} -> {state}")
        self.state = state
        self.history.append(VideoTransition(state=state, at=utc_now(), note=note))


def extract_video_uri(operation: Dict[str, Any]) -> Optional[str]:
    response = operation.get("response") or {}
    samples = (response.get("generateVideoResponse") or {}).get("generatedSamples") or response.get("generatedVideos") or []
    if not samples:
        return None
    return ((samples[0] or {}).get("video") or {}).get("uri")


class VeoVideoAgent:
    """Turns one generated look into a short vertical video with Veo.

    The job is submitted as a long-running operation and polled on a fixed
    interval. Callers bound the wait with ``max_wait_seconds`` and can
    abandon it at any time by setting the ``cancel`` event.
    """

    name = "veo"

    def __init__(
        self,
        api_key: str,
        *,
        model: Optional[str] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api_key = api_key
        self.model = model or os.getenv("GEMINI_VIDEO_MODEL", DEFAULT_VIDEO_MODEL)
        self._http = session or requests.Session()
        self._clock = clock
        self._run_trace_id: Optional[str] = None
        self.last_job: Optional[VideoJob] = None

    def with_run_trace(self, run_trace_id: Optional[str]) -> "VeoVideoAgent":
        self._run_trace_id = run_trace_id
        return self

    def _get_json(self, url: str) -> Dict[str, Any]:
        resp = self._http.get(url, headers=api_headers(self._api_key), timeout=REQUEST_TIMEOUT)
        if not resp.ok:
            raise VideoGenerationError(api_error_message(resp), details={"status": resp.status_code})
        return resp.json()

    def _submit(self, image: ImagePayload) -> Dict[str, Any]:
        url = f"{api_base()}/models/{self.model}:predictLongRunning"
        body = {
            "instances": [
                {
                    "prompt": VIDEO_PROMPT,
                    "image": {"bytesBase64Encoded": image.base64Data, "mimeType": image.mimeType},
                }
            ],
            "parameters": {"aspectRatio": "9:16", "resolution": "720p", "sampleCount": 1},
        }
        resp = self._http.post(url, headers=api_headers(self._api_key), json=body, timeout=REQUEST_TIMEOUT)
        if not resp.ok:
            raise VideoGenerationError(api_error_message(resp), details={"status": resp.status_code})
        return resp.json()

    def _fail(self, job: VideoJob, exc: Exception) -> None:
        job.error = str(exc)
        if job.state not in (VideoState.FAILED, VideoState.TIMED_OUT, None):
            job.transition(VideoState.FAILED, note=str(exc))
        log_error(self._run_trace_id, "video:failed", state=getattr(job.state, "value", None), error=str(exc))

    def render(
        self,
        image: Union[ImagePayload, str],
        *,
        cancel: Optional[threading.Event] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_seconds: Optional[float] = None,
    ) -> VideoJob:
        """Submit, poll and download a video for ``image``.

        Cancellation and exceeding ``max_wait_seconds`` end polling without
        raising; the job comes back in the ``cancelled`` or ``timed_out``
        state. Provider and download failures raise VideoGenerationError.
        """
        payload = image if isinstance(image, ImagePayload) else ingest_reference(image)
        cancel = cancel or threading.Event()
        job = VideoJob()
        self.last_job = job
        try:
            operation = self._submit(payload)
            job.operationName = operation.get("name")
            job.transition(VideoState.SUBMITTED)
            log_info(self._run_trace_id, "video:submitted", operation=job.operationName, model=self.model)
            if not job.operationName and not operation.get("done"):
                raise VideoGenerationError("Video job submission returned no operation name")

            job.transition(VideoState.POLLING)
            started = self._clock()
            while not operation.get("done"):
                if cancel.wait(poll_interval):
                    job.transition(VideoState.CANCELLED)
                    log_info(self._run_trace_id, "video:cancelled", operation=job.operationName)
                    return job
                waited = self._clock() - started
                if max_wait_seconds is not None and waited >= max_wait_seconds:
                    job.transition(VideoState.TIMED_OUT)
                    job.error = f"timed out after {waited:.0f}s"
                    job.waitedSeconds = waited
                    log_error(self._run_trace_id, "video:timed_out", operation=job.operationName, waited=waited)
                    return job
                operation = self._get_json(f"{api_base()}/{job.operationName}")
                if not operation.get("done"):
                    job.transition(VideoState.POLLING)

            job.transition(VideoState.DONE)
            if operation.get("error"):
                message = (operation["error"] or {}).get("message") or "Video generation failed."
                raise VideoGenerationError(message, details={"operation": job.operationName})

            job.videoUri = extract_video_uri(operation)
            if not job.videoUri:
                raise VideoGenerationError("Video generation failed or returned no URI.")
            job.transition(VideoState.FETCHING)

            resp = self._http.get(job.videoUri, headers={"x-goog-api-key": self._api_key}, timeout=DOWNLOAD_TIMEOUT)
            if not resp.ok:
                raise VideoGenerationError("Failed to download generated video.", details={"status": resp.status_code})
            job.videoBytes = resp.content
            job.mimeType = (resp.headers.get("Content-Type") or "video/mp4").split(";")[0]
            job.transition(VideoState.READY)
            log_info(self._run_trace_id, "video:ready", size=len(resp.content))
            return job
        except VideoGenerationError as exc:
            self._fail(job, exc)
            raise
        except requests.RequestException as exc:
            self._fail(job, exc)
            raise VideoGenerationError(f"Video request failed: {exc}")
