from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict

from src.specs.agents.tryon_instructions import (
    CHECKLIST,
    GARMENT_IMAGE_LINES,
    GARMENT_MANDATES,
    IDENTITY_AND_FRAMING,
    INTRO,
    POSE_FOOTER,
    POSE_HEADER,
    POSES,
)
from src.specs.common.errors import InputValidationError
from src.specs.models.domain import GarmentSet, GenerationRequest, ImagePayload, PoseSpec


class GenerationPrompt(BaseModel):
    """Everything one provider call needs: ordered images plus instruction text."""

    model_config = ConfigDict(frozen=True)

    attachments: List[ImagePayload]
    text: str


def pose_for_index(index: int) -> PoseSpec:
    if not 0 <= index < len(POSES):
        raise InputValidationError(f"Pose index must be between 0 and {len(POSES) - 1}, got {index}")
    return POSES[index]


def make_request(person: ImagePayload, garments: GarmentSet, pose_index: int) -> GenerationRequest:
    return GenerationRequest(person=person, garments=garments, pose=pose_for_index(pose_index))


def build_generation_prompt(request: GenerationRequest) -> GenerationPrompt:
    """Build the attachments and instruction text for one pose.

    Output depends only on the inputs: the person image always comes first,
    garments follow in top, bottom, shoes order, and each garment gets its
    mandatory-use paragraph only when it is present.
    """
    present = list(request.garments.present())
    attachments = [request.person] + [payload for _, payload in present]

    image_lines = [INTRO]
    for number, (kind, _) in enumerate(present, start=2):
        image_lines.append(f"Image {number}: {GARMENT_IMAGE_LINES[kind]}")

    mandates = [GARMENT_MANDATES[kind] for kind, _ in present]

    pose = request.pose
    pose_block = "\n".join(
        [
            POSE_HEADER,
            f"   {pose.name}",
            _indent(pose.instruction, "   "),
            "",
            POSE_FOOTER,
        ]
    )

    sections = [
        "\n".join(image_lines),
        "\n".join([IDENTITY_AND_FRAMING] + mandates),
        pose_block,
        CHECKLIST,
    ]
    return GenerationPrompt(attachments=attachments, text="\n\n".join(sections))


def _indent(text: str, prefix: str) -> str:
    return "\n".join(prefix + line if line else line for line in text.splitlines())
