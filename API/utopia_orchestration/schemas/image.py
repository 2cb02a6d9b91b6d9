# utopia_orchestration/schemas/image.py
from pydantic import BaseModel, Field


class ImagePullRequest(BaseModel):
    image: str = Field(..., min_length=1, description="e.g. alpine:3.20")


class ImagePullResponse(BaseModel):
    image: str
    pulled: bool
