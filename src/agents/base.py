from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.specs.models.domain import GenerationRequest


class TryOnProvider(ABC):
    """Abstract base class for image generation backends.

    Every backend honours the same contract: one request in, one image
    reference out (a URL or ``data:`` URI), or a raised ``ProviderError``.
    """

    name: str = "provider"

    def __init__(self) -> None:
        self._run_trace_id: Optional[str] = None

    def with_run_trace(self, run_trace_id: Optional[str]) -> "TryOnProvider":
        """Attach a runTraceId for downstream logging."""

        self._run_trace_id = run_trace_id
        return self

    @abstractmethod
    def generate(self, request: GenerationRequest) -> str:
        """Render one pose and return the resulting image reference."""


__all__ = ["TryOnProvider"]
