"""Pydantic models for the proxy API and its request-scoped values."""

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, constr

DEFAULT_TEMPERATURE = 0.7
DEFAULT_TOP_K = 40
DEFAULT_TOP_P = 0.95
DEFAULT_MAX_OUTPUT_TOKENS = 2048


class GenerationParameters(BaseModel):
    """Sampling controls forwarded to Gemini as ``generationConfig``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    temperature: float = DEFAULT_TEMPERATURE
    top_k: int = Field(default=DEFAULT_TOP_K, alias="topK")
    top_p: float = Field(default=DEFAULT_TOP_P, alias="topP")
    max_output_tokens: int = Field(default=DEFAULT_MAX_OUTPUT_TOKENS, alias="maxOutputTokens")

    def to_generation_config(self) -> Dict[str, object]:
        return self.model_dump(by_alias=True)


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    parameters: GenerationParameters = GenerationParameters()


class Principal(BaseModel):
    """Caller identity resolved from a verified bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str


class GenerationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    model_id: str


class UsageRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    message_length: int
    response_length: int


class AiProxyResponse(BaseModel):
    response: str
    model: str


class ErrorDetail(BaseModel):
    status: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail


class AuthRequest(BaseModel):
    username: constr(min_length=1)
    password: constr(min_length=1)


class AuthResponse(BaseModel):
    user_id: str
    username: str
    token: str
