"""プロンプト整形APIのスキーマ定義"""
from pydantic import BaseModel, Field, StrictStr, field_validator
from typing import Optional


class ShapeRequest(BaseModel):
    text: StrictStr = Field(..., description="整形する元のテキスト")
    strategy: Optional[StrictStr] = Field(None, description="任意の整形戦略")

    @field_validator("text")
    @classmethod
    def validate_non_empty_string(cls, v: str) -> str:
        # 元の長さをメタデータに使うため、値自体はトリムしない
        if not v.strip():
            raise ValueError("must be non-empty string")
        return v


class ShapeMetadata(BaseModel):
    originalLength: int = Field(..., description="元のテキストの文字数")
    improvedLength: int = Field(..., description="整形後のテキストの文字数")
    strategyUsed: str = Field(..., description="使用した戦略（未指定時は default）")
    timestamp: str = Field(..., description="ISO-8601 タイムスタンプ")


class ShapeResponse(BaseModel):
    result: str = Field(..., description="整形後のプロンプト")
    metadata: ShapeMetadata


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str
