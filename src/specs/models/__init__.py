from __future__ import annotations

from typing import Dict, Type

from pydantic import BaseModel

from src.specs.queue.message import QueueMessage
from .domain import GenerationResult, VideoTransition, WardrobeItem
from .http import (
    ComposeGridRequest,
    CredentialStatusResponse,
    CredentialUpdateRequest,
    ErrorInfo,
    ErrorResponse,
    GenerateLookbookRequest,
    GenerateLookbookResponse,
    GenerateVideoRequest,
    TaskStatusResponse,
    WardrobeAddRequest,
    WardrobeListResponse,
)


# Registry mapping output schema filenames to models for generation
SCHEMA_MODELS: Dict[str, Type[BaseModel]] = {
    "generate_lookbook.request.schema.json": GenerateLookbookRequest,
    "generate_lookbook.response.schema.json": GenerateLookbookResponse,
    "generate_video.request.schema.json": GenerateVideoRequest,
    "task_status.response.schema.json": TaskStatusResponse,
    "generation.result.schema.json": GenerationResult,
    "credential.update.schema.json": CredentialUpdateRequest,
    "credential.status.schema.json": CredentialStatusResponse,
    "wardrobe.item.schema.json": WardrobeItem,
    "wardrobe.add.schema.json": WardrobeAddRequest,
    "wardrobe.list.schema.json": WardrobeListResponse,
    "compose_grid.request.schema.json": ComposeGridRequest,
    "video.transition.schema.json": VideoTransition,
    "queue.message.schema.json": QueueMessage,
    "error.info.schema.json": ErrorInfo,
    "error.response.schema.json": ErrorResponse,
}

__all__ = [
    "GenerateLookbookRequest",
    "GenerateLookbookResponse",
    "GenerateVideoRequest",
    "TaskStatusResponse",
    "GenerationResult",
    "CredentialUpdateRequest",
    "CredentialStatusResponse",
    "WardrobeItem",
    "WardrobeAddRequest",
    "WardrobeListResponse",
    "ComposeGridRequest",
    "VideoTransition",
    "QueueMessage",
    "ErrorInfo",
    "ErrorResponse",
    "SCHEMA_MODELS",
]
