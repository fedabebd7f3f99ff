"""プロンプト整形APIルート"""
import json
import os

from fastapi import APIRouter, Request
from pydantic import ValidationError
from aws_lambda_powertools import Logger

from app.routes.schemas.shape import ErrorResponse, ShapeRequest, ShapeResponse
from app.utils.core import (
    INVALID_STRATEGY_MESSAGE,
    ConfigurationError,
    InvalidJSONError,
    ShapeError,
    UpstreamError,
    ValidationFailedError,
    create_completion_client,
)
from app.utils.prompt_shaper import PromptShaper

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
logger = Logger(service="shape_route", level=LOG_LEVEL)

router = APIRouter()


def get_prompt_shaper(request: Request) -> PromptShaper:
    """
    アプリケーションに登録された PromptShaper を返す

    未登録の場合は環境変数の設定から一度だけ生成して app.state に保持する
    """
    shaper = getattr(request.app.state, "prompt_shaper", None)
    if shaper is None:
        shaper = PromptShaper(create_completion_client())
        request.app.state.prompt_shaper = shaper
    return shaper


def parse_shape_request(raw_body: bytes) -> ShapeRequest:
    """
    リクエストボディをJSONとして解析し、ShapeRequestに変換する

    Raises:
        InvalidJSONError: JSONとして解析できない場合
        ValidationFailedError: text が欠落・空・文字列以外の場合
    """
    try:
        body = json.loads(raw_body)
    except ValueError as e:
        raise InvalidJSONError(f"Invalid JSON: {str(e)}") from e

    try:
        return ShapeRequest.model_validate(body)
    except ValidationError as e:
        fields = {error["loc"][0] for error in e.errors() if error["loc"]}
        if fields == {"strategy"}:
            raise ValidationFailedError(str(e), message=INVALID_STRATEGY_MESSAGE) from e
        raise ValidationFailedError(str(e)) from e


@router.post(
    "/api/shape",
    response_model=ShapeResponse,
    responses={
        400: {"model": ErrorResponse},
        408: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def shape_endpoint(request: Request):
    """
    ユーザーのテキストを改善されたプロンプトに整形するエンドポイント

    Args:
        request: JSONボディ {"text": str, "strategy": str (任意)}

    Returns:
        ShapeResponse (result, metadata)
    """
    try:
        shape_request = parse_shape_request(await request.body())

        logger.info(
            "Received prompt shaping request",
            extra={
                "text_length": len(shape_request.text),
                "has_strategy": bool(shape_request.strategy),
            },
        )

        shaper = get_prompt_shaper(request)
        response = await shaper.shape(shape_request)

        logger.info("Prompt shaping completed successfully")
        return response

    except ShapeError:
        raise
    except ConfigurationError as e:
        logger.error(f"Prompt shaper is not configured: {str(e)}")
        raise UpstreamError(str(e)) from e
    except Exception as e:
        logger.error(f"Error in prompt shaping: {str(e)}")
        raise UpstreamError(str(e)) from e
