from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from src.agents.base import TryOnProvider
from src.agents.prompt_builder import make_request
from src.shared.logging_utils import info as log_info, error as log_error
from src.specs.common.errors import InputValidationError
from src.specs.models.domain import POSE_COUNT, GarmentSet, ImagePayload

PoseCallback = Callable[[int, str], None]


def validate_inputs(person: Optional[ImagePayload], garments: GarmentSet) -> None:
    if person is None:
        raise InputValidationError("Please upload a photo of the person first.")
    if garments.is_empty():
        raise InputValidationError("Please select at least one clothing item.")


def generate_lookbook_images(
    provider: TryOnProvider,
    person: ImagePayload,
    garments: GarmentSet,
    *,
    pose_count: int = POSE_COUNT,
    parallel: bool = False,
    on_pose_complete: Optional[PoseCallback] = None,
    run_trace_id: Optional[str] = None,
) -> List[str]:
    """Render the same person and garments in each pose.

    Returns one image reference per pose, ordered by pose index. The first
    provider failure aborts the whole batch and is re-raised, so callers
    never see a partial list.
    """
    validate_inputs(person, garments)
    requests = [make_request(person, garments, i) for i in range(pose_count)]

    def _one(index: int) -> str:
        log_info(run_trace_id, "lookbook:pose_start", pose=index, provider=provider.name)
        try:
            url = provider.generate(requests[index])
        except Exception as exc:
            log_error(run_trace_id, "lookbook:pose_failed", pose=index, provider=provider.name, error=str(exc))
            raise
        log_info(run_trace_id, "lookbook:pose_completed", pose=index, provider=provider.name)
        if on_pose_complete is not None:
            on_pose_complete(index, url)
        return url

    if not parallel:
        return [_one(i) for i in range(pose_count)]

    with ThreadPoolExecutor(max_workers=pose_count) as executor:
        futures = [executor.submit(_one, i) for i in range(pose_count)]
        try:
            # result() in pose order re-raises the first failure by index
            return [f.result() for f in futures]
        finally:
            for f in futures:
                f.cancel()
