from fastapi import APIRouter
from app.routes.schemas.shape import HealthCheckResponse
from app.utils.core import SERVICE_NAME
from app.utils.prompt_shaper import iso_timestamp

router = APIRouter()


@router.get("/api/shape", response_model=HealthCheckResponse)
async def health_check():
    """ヘルスチェックエンドポイント（外部APIには接続しない）"""
    return HealthCheckResponse(
        status="healthy", service=SERVICE_NAME, timestamp=iso_timestamp()
    )
