import base64

from src.agents.base import TryOnProvider
from src.agents.prompt_builder import build_generation_prompt
from src.media.image_generator import generate_placeholder_image
from src.shared.logging_utils import info as log_info
from src.specs.models.domain import GenerationRequest


class PlaceholderTryOnProvider(TryOnProvider):
    """Offline backend for local development; renders a labeled card per pose."""

    name = "placeholder"

    def generate(self, request: GenerationRequest) -> str:
        prompt = build_generation_prompt(request)
        garments = ", ".join(kind.value for kind, _ in request.garments.present()) or "no garments"
        png, meta = generate_placeholder_image(
            f"{request.pose.name} ({garments})",
            title=request.pose.label,
        )
        log_info(
            self._run_trace_id,
            "placeholder:generate",
            pose=request.pose.index,
            attachments=len(prompt.attachments),
            width=meta["width"],
            height=meta["height"],
        )
        return "data:image/png;base64," + base64.b64encode(png).decode("ascii")
