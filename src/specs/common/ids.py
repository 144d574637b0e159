from pydantic import BaseModel, Field


class RunRef(BaseModel):
    """Identifies one lookbook run across HTTP calls, queue hops and state."""

    runTraceId: str = Field(min_length=1, max_length=128)
