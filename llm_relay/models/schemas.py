"""
Pydantic schemas for configuration input and request/response models
"""

from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field, ConfigDict

from .data_classes import DISABLED, GenerationParameters


class ServiceConfig(BaseModel):
    """Configuration for one service key, as supplied by services.json"""
    model_config = ConfigDict(protected_namespaces=(), extra="ignore")

    default_model: str = Field(..., min_length=1, description="Primary model; its name selects the primary provider")
    retry: int = Field(3, ge=1, description="Attempts per provider before failing over")
    retry_delay: int = Field(1000, ge=0, description="Fixed delay between attempts in milliseconds")
    other_models: Dict[str, str] = Field(default_factory=dict, description="Ordered fallback mapping provider -> model")
    endpoint: Optional[str] = Field(None, description="Endpoint override, e.g. an Azure deployment URL")

    api_key: Optional[str] = None
    openai_key: Optional[str] = None
    claude_key: Optional[str] = None
    gemini_key: Optional[str] = None
    azure_key: Optional[str] = None

    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(None, gt=0)
    clean_json_response: Optional[bool] = None
    response_schema: Optional[Dict[str, Any]] = None
    response_mime_type: Optional[str] = None

    def default_parameters(self) -> GenerationParameters:
        return GenerationParameters(
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            clean_json_response=self.clean_json_response,
            response_schema=self.response_schema,
            response_mime_type=self.response_mime_type
        )

    def key_for(self, provider: str) -> Optional[str]:
        """Configured API key for a provider, falling back to the generic api_key"""
        return getattr(self, f"{provider}_key", None) or self.api_key


class Message(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    role: Literal["user", "assistant", "system"] = Field(..., description="Role: user, assistant, system")
    content: str = Field(..., description="Message content")


class ChatOptions(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    messages: List[Message] = Field(..., min_length=1, description="Conversation messages")
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(None, ge=0.0, le=1.0)
    max_tokens: Optional[int] = Field(None, gt=0)
    clean_json_response: Optional[bool] = None
    response_schema: Optional[Union[Dict[str, Any], Literal[False]]] = Field(
        None, description="JSON schema for structured output; false disables a configured schema"
    )
    response_mime_type: Optional[str] = None

    def generation_parameters(self) -> GenerationParameters:
        return GenerationParameters(
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            clean_json_response=self.clean_json_response,
            response_schema=DISABLED if self.response_schema is False else self.response_schema,
            response_mime_type=self.response_mime_type
        )


class TTSOptions(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    text: str = Field(..., min_length=1)
    voice: Optional[str] = Field(None, description="Voice name, provider default if omitted")
    format: Optional[str] = Field(None, description="Audio format, e.g. mp3")
    speed: Optional[float] = Field(None, gt=0.0)


class STTOptions(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    audio: bytes = Field(..., description="Raw audio bytes")
    format: Optional[str] = None
    language: Optional[str] = None
    filename: str = "audio"


class STTRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    audio_base64: str = Field(..., description="Base64 encoded audio")
    format: Optional[str] = None
    language: Optional[str] = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    success: bool
    service_key: str
    content: Optional[str] = None


class TranscriptionResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    success: bool
    service_key: str
    text: Optional[str] = None


class ErrorResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    success: bool = False
    error_code: str
    message: str
    attempted_providers: Optional[List[str]] = None
