"""
API handler module
Routes the OpenAI-compatible requests to NVIDIA NIM
"""
import time
import logging
from typing import Dict

from fastapi.responses import StreamingResponse, JSONResponse

from nimproxy.config import Config
from nimproxy.constants import (
    MODEL_MAPPING, THINKING_MODELS, APIConstants, RequestDefaults,
    HeaderConstants, LogMessages
)
from nimproxy.exceptions import ConfigurationError, NimProxyError
from nimproxy.models import ChatCompletionRequest, ModelsResponse, ModelInfo
from nimproxy.model_resolver import ModelResolver
from nimproxy.response_processor import ResponseProcessor
from nimproxy.utils import error_text

logger = logging.getLogger(__name__)

class APIHandler:
    """API handler"""

    def __init__(self, config: Config, transport=None):
        self.config = config
        self.response_processor = ResponseProcessor(config, transport)
        self.model_resolver = ModelResolver(config)

    def get_health(self) -> Dict:
        """Health check payload"""
        return {
            "status": "ok",
            "service": f"{APIConstants.SERVICE_NAME} ({APIConstants.OPTIMIZED_FOR} Optimized)",
            "reasoning_display": self.config.SHOW_REASONING,
            "thinking_mode": self.config.ENABLE_THINKING_MODE,
            "nim_api_configured": self.config.is_api_key_configured(),
            "available_models": len(MODEL_MAPPING),
            "optimized_for": APIConstants.OPTIMIZED_FOR
        }

    def get_service_info(self) -> Dict:
        """Static service metadata"""
        return {
            "service": APIConstants.SERVICE_NAME,
            "version": APIConstants.SERVICE_VERSION,
            "optimized_for": APIConstants.OPTIMIZED_FOR,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "models": "/v1/models",
                "chat": "/v1/chat/completions"
            },
            "featured_models": {
                "best_quality": "gpt-4 → deepseek-v3.2 (685B params)",
                "balanced": "claude-sonnet → llama-3.3-nemotron-super (49B)",
                "fastest": "gpt-3.5-turbo → llama-3.1-nemotron-nano (8B)"
            }
        }

    async def get_models(self) -> ModelsResponse:
        """List the caller-facing models"""
        created = int(time.time())
        return ModelsResponse(data=[
            ModelInfo(
                id=model,
                created=created,
                owned_by=APIConstants.MODEL_OWNER,
                nim_model=nim_model,
                supports_thinking=nim_model in THINKING_MODELS
            )
            for model, nim_model in MODEL_MAPPING.items()
        ])

    @staticmethod
    def build_nim_payload(request: ChatCompletionRequest, nim_model: str) -> Dict:
        """Build the NIM request body; message order is preserved"""
        return {
            "model": nim_model,
            "messages": [msg.model_dump(exclude_unset=True) for msg in request.messages],
            "temperature": (
                request.temperature if request.temperature is not None
                else RequestDefaults.TEMPERATURE
            ),
            "max_tokens": (
                request.max_tokens if request.max_tokens is not None
                else RequestDefaults.MAX_TOKENS
            ),
            "stream": request.stream if request.stream is not None else RequestDefaults.STREAM
        }

    async def chat_completions(self, request: ChatCompletionRequest):
        """Handle a chat completion request"""
        if not self.config.is_api_key_configured():
            raise ConfigurationError()

        logger.info(LogMessages.REQUEST_RECEIVED.format(
            request.model, len(request.messages), bool(request.stream)
        ))

        client = self.response_processor.create_http_client()
        streaming = False
        try:
            nim_model = await self.model_resolver.resolve(request.model, client)
            nim_payload = self.build_nim_payload(request, nim_model)

            if nim_payload["stream"]:
                stream_response = await self._handle_stream_response(client, nim_payload)
                streaming = True
                return stream_response

            openai_response = await self.response_processor.process_non_stream_response(
                client, nim_payload, request.model
            )
            return JSONResponse(content=openai_response)

        except NimProxyError as e:
            logger.error(LogMessages.PROXY_ERROR.format(e.message))
            raise
        except Exception as e:
            logger.error(LogMessages.PROXY_ERROR.format(error_text(e)))
            raise NimProxyError(error_text(e))
        finally:
            # the streaming generator closes the client itself
            if not streaming:
                await client.aclose()

    async def _handle_stream_response(self, client, nim_payload: Dict) -> StreamingResponse:
        """Open the upstream stream; the returned response owns the client"""
        response = await self.response_processor.send(client, nim_payload, stream=True)
        return StreamingResponse(
            self.response_processor.process_stream_response(client, response),
            media_type=HeaderConstants.TEXT_EVENT_STREAM,
            headers={
                HeaderConstants.CACHE_CONTROL: HeaderConstants.NO_CACHE,
                HeaderConstants.CONNECTION: HeaderConstants.KEEP_ALIVE,
                HeaderConstants.X_ACCEL_BUFFERING: HeaderConstants.NO_BUFFERING
            }
        )
