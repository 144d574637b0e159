from pydantic import BaseModel, Field
from typing import Optional, Dict, Literal
from src.specs.common.ids import RunRef
from src.specs.common.enums import ImageProvider


class InputRefs(BaseModel):
    # media store references written by the HTTP trigger
    person: str
    top: Optional[str] = None
    bottom: Optional[str] = None
    shoes: Optional[str] = None


class QueueMessage(RunRef):
    step: Literal["generate_lookbook", "generate_video"]
    provider: ImageProvider = ImageProvider.GEMINI
    inputs: Optional[InputRefs] = None
    imageRef: Optional[str] = None  # source image for generate_video
    args: Dict = Field(default_factory=dict)
