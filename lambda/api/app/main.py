from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from mangum import Mangum
import os
from aws_lambda_powertools import Logger

from app.utils.core import ShapeError, get_allowed_origins

# Import routers
from app.routes.health import router as health_router
from app.routes.shape import router as shape_router


# ロギングの設定
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
logger = Logger(service="api_proxy", level=LOG_LEVEL)

# FastAPIアプリケーションの初期化
app = FastAPI(
    title="Prompt Shaper API",
    description="Turns raw text into improved LLM prompts",
    version="1.0.0",
)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health_router)
app.include_router(shape_router)


# Exception handler for shaping errors
@app.exception_handler(ShapeError)
async def shape_exception_handler(request: Request, exc: ShapeError):
    """Render shaping errors as {"error": message}"""
    logger.error(
        f"Shape request failed: {exc.detail}",
        extra={"status_code": exc.status_code},
    )
    return JSONResponse(
        status_code=exc.status_code, content={"error": exc.public_message}
    )


# Lambda handler
def lambda_handler(event, context):
    # Call the Mangum handler
    return Mangum(app)(event, context)


# Lambda handler
handler = lambda_handler
