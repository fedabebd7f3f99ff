"""プロンプト整形ユーティリティ"""
import asyncio
import os
from datetime import datetime, timezone
from typing import Any, Optional

from aws_lambda_powertools import Logger

from app.routes.schemas.shape import ShapeMetadata, ShapeRequest, ShapeResponse
from app.utils.core import (
    DEFAULT_SHAPE_MODEL,
    DEFAULT_STRATEGY,
    SHAPE_MAX_TOKENS,
    SHAPE_TEMPERATURE,
    SHAPE_TIMEOUT_SECONDS,
    UpstreamError,
    UpstreamTimeoutError,
)

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
logger = Logger(service="prompt_shaper", level=LOG_LEVEL)

SHAPE_TEMPLATE = """
You are an expert prompt engineer specializing in transforming raw user input into highly effective LLM prompts.

TASK: Transform the user's unstructured, incomplete, or unclear text into a well-crafted, professional prompt that maximizes LLM performance.

TRANSFORMATION RULES:
1. **Preserve Intent**: Maintain all original meaning and user objectives
2. **Enhance Clarity**: Fix grammar, spelling, and structural issues
3. **Add Context**: Infer and include missing but crucial details
4. **Optimize Structure**: Organize content with logical flow and clear sections
5. **Include Examples**: Add relevant examples or explanations when beneficial
6. **Maximize Effectiveness**: Ensure the output prompt generates high-quality, comprehensive responses
7. **Professional Tone**: Use clear, professional language suitable for business or academic contexts
8. **Be Concise**: Keep the improved prompt as brief as possible while retaining all necessary details and effectiveness - avoid unnecessary verbosity or repetition

OUTPUT FORMAT: Return only the improved prompt - no meta-commentary, explanations, or additional text.

USER INPUT TO TRANSFORM:
<<<
{text}
>>>"""

STRATEGY_TEMPLATE = """

STRATEGY: Apply this specific strategy to the transformation: {strategy}"""


def build_shape_prompt(text: str, strategy: Optional[str] = None) -> str:
    """
    ユーザー入力から整形用プロンプトを組み立てる

    Args:
        text: ユーザーが入力したテキスト（前後の空白は除去される）
        strategy: 任意の整形戦略（空白のみの場合は無視）

    Returns:
        str: モデルに送るプロンプト
    """
    prompt = SHAPE_TEMPLATE.format(text=text.strip())
    if strategy and strategy.strip():
        prompt += STRATEGY_TEMPLATE.format(strategy=strategy.strip())
    return prompt


def extract_completion_text(completion: Any) -> str:
    """
    Pulls the first choice's message content out of a chat completion.

    Accepts either the SDK response object or a plain dict.

    Raises:
        UpstreamError: If the response has no usable content
    """

    def _get(obj: Any, key: str) -> Any:
        if obj is None:
            return None
        if isinstance(obj, dict):
            return obj.get(key)
        return getattr(obj, key, None)

    choices = _get(completion, "choices")
    if not choices:
        raise UpstreamError("Invalid response from Gemini API")

    content = _get(_get(choices[0], "message"), "content")
    if not isinstance(content, str) or not content:
        raise UpstreamError("Invalid response from Gemini API")
    return content


def iso_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-01-01T00:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PromptShaper:
    """
    Turns raw user text into an improved prompt with a single bounded call to
    the completion endpoint.

    Attributes:
        client: AsyncOpenAI compatible client (anything exposing
            ``chat.completions.create`` as a coroutine)
        model: Model identifier sent with every request
        timeout: Seconds to wait for the completion before giving up
    """

    def __init__(
        self,
        client: Any,
        model: str = DEFAULT_SHAPE_MODEL,
        timeout: float = SHAPE_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.model = model
        self.timeout = timeout

    async def complete(self, prompt: str) -> str:
        """
        Sends the prompt and returns the raw generated content.

        On timeout the pending call is cancelled and its result discarded.

        Raises:
            UpstreamTimeoutError: If no response within ``timeout`` seconds
            UpstreamError: On any other failure, including malformed responses
        """
        try:
            completion = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=SHAPE_MAX_TOKENS,
                    temperature=SHAPE_TEMPERATURE,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini API call timed out after {self.timeout}s")
            raise UpstreamTimeoutError("Request timeout") from e
        except Exception as e:
            logger.error(f"Gemini API error: {str(e)}")
            raise UpstreamError(str(e)) from e

        try:
            return extract_completion_text(completion)
        except UpstreamError as e:
            logger.error(f"Unexpected Gemini API response: {str(e)}")
            raise

    async def shape(self, request: ShapeRequest) -> ShapeResponse:
        """
        Shapes one request end to end.

        Args:
            request: Validated ShapeRequest

        Returns:
            ShapeResponse with the trimmed result and metadata
        """
        strategy = request.strategy.strip() if request.strategy else ""
        prompt = build_shape_prompt(request.text, strategy)

        result = (await self.complete(prompt)).strip()

        logger.info(
            "Prompt shaped successfully",
            extra={
                "original_length": len(request.text),
                "improved_length": len(result),
                "strategy_used": strategy or DEFAULT_STRATEGY,
            },
        )

        return ShapeResponse(
            result=result,
            metadata=ShapeMetadata(
                originalLength=len(request.text),
                improvedLength=len(result),
                strategyUsed=strategy or DEFAULT_STRATEGY,
                timestamp=iso_timestamp(),
            ),
        )
