"""
FastAPI application and endpoints for llm-relay
"""

import base64
import binascii
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, BackgroundTasks, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..core.errors import AllProvidersExhausted, ConfigurationError, ManagerDestroyedError
from ..core.manager import LLMManager
from ..models.schemas import (
    ChatOptions, TTSOptions, STTOptions, STTRequest,
    ChatResponse, TranscriptionResponse, ErrorResponse
)
from .. import __version__
from .lifespan import lifespan, get_llm_manager, refresh_if_changed

AUDIO_MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/opus",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/pcm",
}


def _error(status_code: int, error_code: str, message: str, attempted=None) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, attempted_providers=attempted)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(manager: Optional[LLMManager] = None) -> FastAPI:
    """Create and configure the FastAPI application

    Args:
        manager: Use this manager instead of building one from services.json
    """
    app = FastAPI(
        title="llm-relay",
        description="Failover routing and health ranking for LLM, TTS and STT providers",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.preset_manager = manager

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =============================================================================
    # ERROR MAPPING
    # =============================================================================

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        return _error(404, "configuration_error", str(exc))

    @app.exception_handler(AllProvidersExhausted)
    async def exhausted_handler(request: Request, exc: AllProvidersExhausted):
        return _error(502, "all_providers_failed", str(exc), exc.attempted)

    @app.exception_handler(ManagerDestroyedError)
    async def destroyed_handler(request: Request, exc: ManagerDestroyedError):
        return _error(503, "service_unavailable", str(exc))

    # =============================================================================
    # ROUTED CALLS
    # =============================================================================

    @app.post("/chat/{service_key}", response_model=ChatResponse)
    async def chat(service_key: str, request: ChatOptions, background_tasks: BackgroundTasks):
        """Chat completion with retry and failover"""
        background_tasks.add_task(refresh_if_changed)
        content = await get_llm_manager().chat(service_key, request)
        return ChatResponse(success=True, service_key=service_key, content=content)

    @app.post("/tts/{service_key}")
    async def tts(service_key: str, request: TTSOptions, background_tasks: BackgroundTasks):
        """Text to speech; returns the audio bytes"""
        background_tasks.add_task(refresh_if_changed)
        audio = await get_llm_manager().tts(service_key, request)
        media_type = AUDIO_MEDIA_TYPES.get(request.format or "mp3", "application/octet-stream")
        return Response(content=audio, media_type=media_type)

    @app.post("/stt/{service_key}", response_model=TranscriptionResponse)
    async def stt(service_key: str, request: STTRequest, background_tasks: BackgroundTasks):
        """Speech to text from base64 encoded audio"""
        try:
            audio = base64.b64decode(request.audio_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=422, detail="audio_base64 is not valid base64")

        background_tasks.add_task(refresh_if_changed)
        options = STTOptions(audio=audio, format=request.format, language=request.language)
        text = await get_llm_manager().stt(service_key, options)
        return TranscriptionResponse(success=True, service_key=service_key, text=text)

    # =============================================================================
    # STATUS AND MONITORING ENDPOINTS
    # =============================================================================

    @app.get("/health")
    async def health_check():
        """System health check"""
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__
        }

    @app.get("/providers/health")
    async def providers_health():
        """Health records of every provider, best rank first"""
        records = get_llm_manager().provider_health()
        return {"providers": [record.to_dict() for record in records]}

    @app.get("/providers/health/{provider}")
    async def provider_health(provider: str):
        record = get_llm_manager().provider_health(provider)
        if record is None:
            raise HTTPException(status_code=404, detail=f"Unknown provider: {provider}")
        return record.to_dict()

    @app.get("/providers/order")
    async def providers_order():
        return {"order": get_llm_manager().ordered_providers()}

    @app.post("/providers/health/check")
    async def run_health_check():
        """Probe every provider now and return the fresh ranking"""
        manager = get_llm_manager()
        results = await manager.manual_health_check()
        return {
            "results": [
                {
                    "provider": result.provider,
                    "status": result.status.value,
                    "last_checked": result.last_checked.isoformat(),
                    "response_time_ms": result.response_time_ms,
                    "error": result.error
                }
                for result in results
            ],
            "order": manager.ordered_providers()
        }

    return app
