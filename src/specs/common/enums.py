from enum import Enum

class AppStatus(str, Enum):
    IDLE = "IDLE"
    GENERATING_IMAGE = "GENERATING_IMAGE"
    IMAGE_READY = "IMAGE_READY"
    GENERATING_VIDEO = "GENERATING_VIDEO"
    VIDEO_READY = "VIDEO_READY"
    ERROR = "ERROR"

class ImageProvider(str, Enum):
    GEMINI = "gemini"
    SEEDREAM = "seedream"
    FLUX = "flux"
    PLACEHOLDER = "placeholder"

class CredentialName(str, Enum):
    GEMINI = "gemini"
    WAVESPEED = "wavespeed"

class GarmentType(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    SHOE = "shoe"

class VideoState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
