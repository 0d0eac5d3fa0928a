"""
Response processing module
Upstream HTTP calls, non-streaming response translation and stream forwarding
"""
import json
import time
import logging
from typing import AsyncGenerator, Dict, Optional

import httpx

from nimproxy.constants import (
    ResponseConstants, NumericConstants, LogMessages, ErrorMessages
)
from nimproxy.exceptions import UpstreamError, UpstreamFormatError
from nimproxy.stream_reframer import reframe_stream
from nimproxy.utils import build_upstream_headers, generate_completion_id, error_text

logger = logging.getLogger(__name__)

class ResponseProcessor:
    """Response processor"""

    def __init__(self, config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport

    def create_http_client(self) -> httpx.AsyncClient:
        """Create the per-request HTTP client"""
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.config.REQUEST_TIMEOUT, connect=self.config.CONNECT_TIMEOUT),
            limits=httpx.Limits(
                max_keepalive_connections=self.config.MAX_KEEPALIVE_CONNECTIONS,
                max_connections=self.config.MAX_CONNECTIONS
            ),
            follow_redirects=True
        )

    def build_request(self, client: httpx.AsyncClient, nim_payload: dict) -> httpx.Request:
        return client.build_request(
            "POST",
            self.config.chat_completions_url(),
            headers=build_upstream_headers(self.config.NIM_API_KEY),
            json=nim_payload
        )

    async def send(self, client: httpx.AsyncClient, nim_payload: dict, stream: bool = False) -> httpx.Response:
        """Issue the main upstream call, raising UpstreamError on failure.

        With stream=True the body is left unread and the caller owns the response.
        """
        request = self.build_request(client, nim_payload)
        try:
            response = await client.send(request, stream=stream)
        except httpx.HTTPError as e:
            logger.error(LogMessages.UPSTREAM_REQUEST_ERROR.format(error_text(e)))
            raise UpstreamError(error_text(e))

        if not response.is_success:
            try:
                await response.aread()
            finally:
                await response.aclose()
            logger.error(LogMessages.UPSTREAM_STATUS_ERROR.format(
                response.status_code,
                response.text[:NumericConstants.CONTENT_PREVIEW_LENGTH]
            ))
            raise UpstreamError.from_status(response.status_code, self._extract_detail(response))

        return response

    @staticmethod
    def _extract_detail(response: httpx.Response) -> Optional[str]:
        """Pull a human readable "detail" out of an upstream error body"""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict) or not body.get("detail"):
            return None
        detail = body["detail"]
        if isinstance(detail, str):
            return detail
        return json.dumps(detail, ensure_ascii=False)

    async def process_non_stream_response(
        self,
        client: httpx.AsyncClient,
        nim_payload: dict,
        requested_model: str
    ) -> dict:
        """Call the upstream and translate its body into a chat completion"""
        response = await self.send(client, nim_payload, stream=False)
        try:
            body = response.json()
        except ValueError:
            raise UpstreamFormatError(ErrorMessages.INVALID_JSON)
        return self.create_completion_response(body, requested_model)

    async def process_stream_response(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response
    ) -> AsyncGenerator[bytes, None]:
        """Forward the upstream event stream, reframed.

        Upstream failures end the stream quietly; the upstream response and
        client are always closed, including when the caller disconnects.
        """
        frames = 0
        try:
            async for frame in reframe_stream(response.aiter_bytes()):
                frames += 1
                yield frame
        except httpx.HTTPError as e:
            logger.error(LogMessages.STREAM_ERROR.format(error_text(e)))
        finally:
            await response.aclose()
            await client.aclose()
            logger.debug(LogMessages.STREAM_CLOSED.format(frames))

    def create_completion_response(self, body: dict, requested_model: str) -> dict:
        """Translate a complete upstream body into the outbound chat completion"""
        if not isinstance(body, dict) or not isinstance(body.get("choices"), list):
            raise UpstreamFormatError()

        return {
            "id": generate_completion_id(),
            "object": ResponseConstants.CHAT_COMPLETION_OBJECT,
            "created": int(time.time()),
            "model": requested_model,
            "choices": [self._translate_choice(choice) for choice in body["choices"]],
            "usage": body.get("usage") or {
                "prompt_tokens": NumericConstants.DEFAULT_PROMPT_TOKENS,
                "completion_tokens": NumericConstants.DEFAULT_COMPLETION_TOKENS,
                "total_tokens": NumericConstants.DEFAULT_TOTAL_TOKENS
            }
        }

    @staticmethod
    def _translate_choice(choice: Dict) -> Dict:
        if not isinstance(choice, dict):
            raise UpstreamFormatError(f"Upstream choice is not an object: {json.dumps(choice)}")
        message = choice.get("message") or {}
        return {
            "index": choice.get("index"),
            "message": {
                "role": message.get("role") or ResponseConstants.DEFAULT_ROLE,
                "content": message.get("content") or ""
            },
            "finish_reason": choice.get("finish_reason")
        }
