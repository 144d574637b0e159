import logging
from typing import Any, Dict, Optional


LOGGER_NAME = "lookbook"
_LOGGER = logging.getLogger(LOGGER_NAME)


def dimensions(run_trace_id: Optional[str], **extra: Any) -> Dict[str, Any]:
    """custom_dimensions payload for Application Insights; None values are dropped."""
    dims: Dict[str, Any] = {"runTraceId": run_trace_id} if run_trace_id else {}
    dims.update({k: v for k, v in extra.items() if v is not None})
    return dims


def log(level: int, run_trace_id: Optional[str], message: str, *, exc_info: bool = False, **extra: Any) -> None:
    dims = dimensions(run_trace_id, **extra)
    if not _LOGGER.isEnabledFor(level):
        return
    # dimensions are also appended to the message for consoles without a custom formatter
    text = f"{message} | {dims}" if dims else message
    _LOGGER.log(level, text, exc_info=exc_info, extra={"custom_dimensions": dims})


def info(run_trace_id: Optional[str], message: str, **extra: Any) -> None:
    log(logging.INFO, run_trace_id, message, **extra)


def warning(run_trace_id: Optional[str], message: str, **extra: Any) -> None:
    log(logging.WARNING, run_trace_id, message, **extra)


def error(run_trace_id: Optional[str], message: str, **extra: Any) -> None:
    log(logging.ERROR, run_trace_id, message, **extra)


def exception(run_trace_id: Optional[str], message: str, **extra: Any) -> None:
    """Error with the active traceback attached; call from an except block."""
    log(logging.ERROR, run_trace_id, message, exc_info=True, **extra)
