import base64
import io
from typing import List

from PIL import Image

from src.agents.base import TryOnProvider
from src.specs.common.errors import ProviderError
from src.specs.models.domain import GenerationRequest


def make_png(color=(200, 30, 30), size=(32, 48)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


class RecordingProvider(TryOnProvider):
    """Provider double that records pose indexes and can fail on one of them."""

    name = "recording"

    def __init__(self, fail_on: int = -1) -> None:
        super().__init__()
        self.calls: List[int] = []
        self.fail_on = fail_on

    def generate(self, request: GenerationRequest) -> str:
        self.calls.append(request.pose.index)
        if request.pose.index == self.fail_on:
            raise ProviderError("quota exceeded", provider=self.name)
        return f"img-{request.pose.index}"
