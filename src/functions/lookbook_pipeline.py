"""
Run-level pipeline: drives generation for one runTraceId and mirrors every
step into the run state store so clients can poll progress.
"""
import os
import threading
from time import perf_counter
from typing import Any, Dict, List, Optional

from src.agents.lookbook_orchestrator import generate_lookbook_images
from src.agents.provider_registry import create_provider
from src.agents.video_agent import VeoVideoAgent
from src.media.compositor import compose_lookbook_grid
from src.media.ingestion import ingest_reference
from src.shared.credentials import CredentialResolver
from src.shared.logging_utils import info as log_info, exception as log_exception
from src.shared.media_store import save_media
from src.shared.state import RunStateStore, add_event
from src.specs.common.enums import AppStatus, CredentialName, VideoState
from src.specs.common.errors import LookbookError, ResourceNotFoundError, VideoTimeoutError
from src.specs.models.domain import GarmentSet, GenerationResult, ImagePayload


def _error_dict(exc: Exception) -> Dict[str, Any]:
    if isinstance(exc, LookbookError):
        return exc.to_dict()
    return {"code": "INTERNAL_ERROR", "message": str(exc), "details": {}}


def _store_image(run_trace_id: str, ref: str, name: str) -> str:
    payload = ingest_reference(ref)
    return save_media(payload.rawBytes, name=f"{run_trace_id}-{name}", content_type=payload.mimeType, run_trace_id=run_trace_id)


def current_result(run_trace_id: str) -> GenerationResult:
    entry = RunStateStore.get_status(run_trace_id) or {}
    return GenerationResult.model_validate(entry.get("result") or {})


def run_lookbook(
    run_trace_id: str,
    provider_name: str,
    person: ImagePayload,
    garments: GarmentSet,
    resolver: CredentialResolver,
    *,
    parallel: bool = False,
    provider_options: Optional[Dict[str, Any]] = None,
) -> GenerationResult:
    """Generate the four poses, compose the grid and store everything.

    On any failure the run ends in ERROR with the error recorded and no
    composite is produced.
    """
    start = perf_counter()
    RunStateStore.set_status(
        run_trace_id,
        AppStatus.GENERATING_IMAGE,
        provider=provider_name,
        result=GenerationResult().model_dump(),
        completed_poses=0,
    )
    add_event(run_trace_id, phase="image", action="start", data={"provider": provider_name})

    stored: Dict[int, str] = {}
    lock = threading.Lock()

    def _on_pose(index: int, ref: str) -> None:
        url = _store_image(run_trace_id, ref, f"pose-{index}")
        # Progress is a count only; pose urls are published once all four exist
        with lock:
            stored[index] = url
            RunStateStore.set_status(run_trace_id, AppStatus.GENERATING_IMAGE, completed_poses=len(stored))
            add_event(run_trace_id, phase="image", action="pose_completed", data={"pose": index})

    try:
        provider = create_provider(provider_name, resolver, run_trace_id=run_trace_id, **(provider_options or {}))
        generate_lookbook_images(
            provider,
            person,
            garments,
            parallel=parallel,
            on_pose_complete=_on_pose,
            run_trace_id=run_trace_id,
        )
        image_urls: List[str] = [stored[i] for i in sorted(stored)]
        grid = compose_lookbook_grid(image_urls, run_trace_id=run_trace_id)
        composite = save_media(grid, name=f"{run_trace_id}-lookbook", content_type="image/png", run_trace_id=run_trace_id)
    except Exception as exc:
        log_exception(run_trace_id, "lookbook:failed", error=str(exc))
        RunStateStore.set_status(
            run_trace_id,
            AppStatus.ERROR,
            result=GenerationResult().model_dump(),
            error=_error_dict(exc),
            completed_poses=0,
        )
        add_event(run_trace_id, phase="image", action="failed", message=str(exc))
        if not isinstance(exc, LookbookError):
            raise
        return GenerationResult()

    result = GenerationResult(imageUrls=image_urls, compositeImageUrl=composite)
    RunStateStore.set_status(
        run_trace_id,
        AppStatus.IMAGE_READY,
        result=result.model_dump(),
        completed_poses=len(image_urls),
    )
    duration_ms = int((perf_counter() - start) * 1000)
    log_info(run_trace_id, "lookbook:completed", durationMs=duration_ms)
    add_event(run_trace_id, phase="image", action="completed")
    return result


def video_source(run_trace_id: str, pose_index: Optional[int] = None) -> str:
    """Pick the image a video is rendered from: the composite or one pose."""
    result = current_result(run_trace_id)
    if pose_index is None:
        if not result.compositeImageUrl:
            raise ResourceNotFoundError("lookbook image", run_trace_id)
        return result.compositeImageUrl
    if pose_index >= len(result.imageUrls):
        raise ResourceNotFoundError("pose image", f"{run_trace_id}/{pose_index}")
    return result.imageUrls[pose_index]


def _max_wait_seconds() -> Optional[float]:
    raw = os.getenv("VIDEO_MAX_WAIT_SECONDS")
    return float(raw) if raw else None


def run_video(
    run_trace_id: str,
    image_ref: str,
    resolver: CredentialResolver,
    *,
    cancel: Optional[threading.Event] = None,
    agent: Optional[VeoVideoAgent] = None,
    max_wait_seconds: Optional[float] = None,
) -> GenerationResult:
    """Animate ``image_ref`` and attach the video to the run.

    A failed, timed-out or cancelled video returns the run to IMAGE_READY;
    the lookbook images stay untouched.
    """
    RunStateStore.set_status(run_trace_id, AppStatus.GENERATING_VIDEO)
    add_event(run_trace_id, phase="video", action="start")
    try:
        if agent is None:
            agent = VeoVideoAgent(resolver.require(CredentialName.GEMINI))
        agent.with_run_trace(run_trace_id)
        job = agent.render(
            image_ref,
            cancel=cancel,
            poll_interval=float(os.getenv("VIDEO_POLL_INTERVAL", "5")),
            max_wait_seconds=max_wait_seconds if max_wait_seconds is not None else _max_wait_seconds(),
        )
        if job.state is VideoState.TIMED_OUT:
            raise VideoTimeoutError(job.waitedSeconds or 0, details={"operation": job.operationName})
        if job.state is VideoState.CANCELLED:
            RunStateStore.set_status(run_trace_id, AppStatus.IMAGE_READY)
            add_event(run_trace_id, phase="video", action="cancelled")
            return current_result(run_trace_id)
        video_url = save_media(
            job.videoBytes or b"",
            name=f"{run_trace_id}-video",
            content_type=job.mimeType,
            run_trace_id=run_trace_id,
        )
    except Exception as exc:
        log_exception(run_trace_id, "video:pipeline_failed", error=str(exc))
        RunStateStore.set_status(run_trace_id, AppStatus.IMAGE_READY, error=_error_dict(exc))
        add_event(run_trace_id, phase="video", action="failed", message=str(exc))
        if not isinstance(exc, LookbookError):
            raise
        return current_result(run_trace_id)

    result = current_result(run_trace_id).model_copy(update={"videoUrl": video_url})
    RunStateStore.set_status(run_trace_id, AppStatus.VIDEO_READY, result=result.model_dump())
    add_event(run_trace_id, phase="video", action="completed", data={"videoUrl": video_url})
    return result


def reset_run(run_trace_id: str) -> None:
    """Discard results and errors and return the run to IDLE."""
    RunStateStore.set_status(run_trace_id, AppStatus.IDLE, result=GenerationResult().model_dump(), completed_poses=0)
    add_event(run_trace_id, phase="run", action="reset")
