from fastapi import APIRouter
from schemas.signaling import HealthResponse
from constants import SERVICE_NAME, PORT

health_router = APIRouter(tags=["health"])


@health_router.get("/", response_model=HealthResponse)
@health_router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", service=SERVICE_NAME, port=PORT)
