# utopia_orchestration/api/images.py
from fastapi import APIRouter, Depends

from utopia_orchestration.core.backend import get_orchestration
from utopia_orchestration.services.orchestration import Orchestration
from utopia_orchestration.schemas.image import ImagePullRequest, ImagePullResponse


router = APIRouter(prefix="/images", tags=["images"])


# ---------------------------
# Pull an image from the registry
# ---------------------------
@router.post(
    "/pull",
    response_model=ImagePullResponse,
    summary="Pull a Docker image",
    description="Pull an image with the configured registry credentials. A failed pull is reported, not raised."
)
async def pull_image(
    payload: ImagePullRequest,
    orchestration: Orchestration = Depends(get_orchestration),
):
    pulled = await orchestration.pull(payload.image)
    return ImagePullResponse(image=payload.image, pulled=pulled)
