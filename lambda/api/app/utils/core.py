"""Core configuration, error types and client setup for the prompt shaper API"""

import os
from typing import Optional

import boto3
from botocore.exceptions import ClientError
from openai import AsyncOpenAI
from aws_lambda_powertools import Logger

# Logger setup
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
logger = Logger(service="shape_core", level=LOG_LEVEL)

# リージョン設定
REGION = os.environ.get("REGION", "us-east-1")

# Gemini (OpenAI compatible endpoint)
GEMINI_API_KEY_ENV = "GEMINI_API_KEY"
GEMINI_API_KEY_SECRET_ID_ENV = "GEMINI_API_KEY_SECRET_ID"
GEMINI_BASE_URL = os.environ.get(
    "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai"
)

# Model parameters
DEFAULT_SHAPE_MODEL = "gemini-1.5-flash"
SHAPE_MAX_TOKENS = 1500
SHAPE_TEMPERATURE = 0.2
SHAPE_TIMEOUT_SECONDS = 30.0

SERVICE_NAME = "prompt-shaper"
DEFAULT_STRATEGY = "default"

# Public error messages
INVALID_JSON_MESSAGE = "Invalid JSON in request body"
INVALID_TEXT_MESSAGE = (
    "Invalid input: 'text' field is required and must be a non-empty string"
)
INVALID_STRATEGY_MESSAGE = "Invalid input: 'strategy' field must be a string"
TIMEOUT_MESSAGE = "Request timeout — please try again"
INTERNAL_ERROR_MESSAGE = "Internal server error — please try again later"


# Custom exception classes
class ShapeError(Exception):
    """Base class for errors that are returned to the caller as {"error": ...}"""

    status_code = 500
    public_message = INTERNAL_ERROR_MESSAGE

    def __init__(self, detail: Optional[str] = None, message: Optional[str] = None):
        self.detail = detail or self.public_message
        if message is not None:
            self.public_message = message
        super().__init__(self.detail)


class InvalidJSONError(ShapeError):
    """Request body could not be parsed as JSON"""

    status_code = 400
    public_message = INVALID_JSON_MESSAGE


class ValidationFailedError(ShapeError):
    """Request body was parsed but failed schema validation"""

    status_code = 400
    public_message = INVALID_TEXT_MESSAGE


class UpstreamTimeoutError(ShapeError):
    """Completion call did not finish within the time limit"""

    status_code = 408
    public_message = TIMEOUT_MESSAGE


class UpstreamError(ShapeError):
    """Completion call failed or returned an unusable response"""

    pass


class ConfigurationError(Exception):
    """Required configuration is missing"""

    pass


def get_secret_value(secret_id: str) -> str:
    """
    Reads a plain string secret from AWS Secrets Manager.

    Args:
    secret_id (str): Secret name or ARN

    Returns:
    str: The secret string

    Raises:
    ConfigurationError: If the secret cannot be read
    """
    client = boto3.client("secretsmanager", region_name=REGION)
    try:
        response = client.get_secret_value(SecretId=secret_id)
    except ClientError as e:
        logger.error(f"Error reading secret {secret_id}: {e}")
        raise ConfigurationError(f"Unable to read secret {secret_id}") from e

    secret = response.get("SecretString")
    if not secret:
        raise ConfigurationError(f"Secret {secret_id} has no string value")
    return secret.strip()


def load_api_key() -> str:
    """
    Resolves the Gemini API key.

    GEMINI_API_KEY wins; otherwise GEMINI_API_KEY_SECRET_ID is looked up in
    Secrets Manager.
    """
    api_key = os.environ.get(GEMINI_API_KEY_ENV, "").strip()
    if api_key:
        return api_key

    secret_id = os.environ.get(GEMINI_API_KEY_SECRET_ID_ENV, "").strip()
    if secret_id:
        logger.info(f"Loading Gemini API key from Secrets Manager: {secret_id}")
        return get_secret_value(secret_id)

    raise ConfigurationError(
        f"{GEMINI_API_KEY_ENV} or {GEMINI_API_KEY_SECRET_ID_ENV} environment variable not set"
    )


def create_completion_client(api_key: Optional[str] = None) -> AsyncOpenAI:
    """
    Builds the async client for the Gemini OpenAI compatible endpoint.

    Retries are disabled: each shaping request makes a single attempt.
    """
    return AsyncOpenAI(
        api_key=api_key or load_api_key(),
        base_url=GEMINI_BASE_URL,
        max_retries=0,
    )


def get_allowed_origins() -> list:
    origins = os.environ.get("ALLOWED_ORIGINS", "*")
    return [o.strip() for o in origins.split(",") if o.strip()] or ["*"]
