import time
from typing import Callable, Optional, Tuple, TypeVar

from src.shared.logging_utils import warning as log_warning

T = TypeVar("T")


def retry_with_backoff(
    operation: Callable[[], T],
    *,
    attempts: int = 3,
    delay: float = 1.5,
    backoff: float = 1.5,
    exceptions: Tuple[type, ...] = (Exception,),
    label: str = "operation",
    run_trace_id: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute `operation` with simple exponential backoff.

    Only meant for storage writes; provider calls are never retried.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except exceptions as exc:  # type: ignore[misc]
            if attempt == attempts:
                raise
            log_warning(run_trace_id, "retry:attempt_failed", label=label, attempt=attempt, error=str(exc))
            sleep(delay)
            delay *= backoff
    raise RuntimeError(f"{label}: retry loop exited without result")
