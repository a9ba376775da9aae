from fastapi import APIRouter, Request
from birdgallery.models import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])

@router.get("", response_model=HealthResponse)
async def health_check(request: Request):
    gallery = request.app.state.gallery
    return HealthResponse(
        status="degraded" if gallery.error else "healthy",
        service="bird-gallery",
        birds=len(gallery.units),
        pending=gallery.pending,
    )
