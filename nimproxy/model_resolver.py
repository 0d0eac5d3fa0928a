"""
Model resolution
Maps a caller model id to an NVIDIA NIM model id
"""
import logging
from typing import Mapping, Optional, Sequence, Tuple

import httpx

from nimproxy.constants import (
    MODEL_MAPPING, FALLBACK_RULES, DEFAULT_FALLBACK_MODEL,
    RequestDefaults, LogMessages
)
from nimproxy.utils import build_upstream_headers, error_text

logger = logging.getLogger(__name__)


def match_fallback_rule(
    model: str,
    rules: Sequence[Tuple[Tuple[str, ...], str]] = FALLBACK_RULES,
    default: str = DEFAULT_FALLBACK_MODEL
) -> str:
    """Pick a NIM model by substring patterns; first matching rule wins"""
    model_lower = model.lower()
    for patterns, nim_model in rules:
        if any(pattern in model_lower for pattern in patterns):
            return nim_model
    return default


class ModelResolver:
    """Resolves caller model ids through an ordered chain of strategies:
    exact mapping, live upstream probe, then name heuristics.
    """

    def __init__(self, config, mapping: Mapping[str, str] = MODEL_MAPPING):
        self.config = config
        self.mapping = mapping
        self.strategies = (
            self._from_mapping,
            self._from_probe,
            self._from_patterns,
        )

    async def resolve(self, model: str, client: httpx.AsyncClient) -> str:
        """Return the upstream model id; never raises"""
        for strategy in self.strategies:
            resolved = await strategy(model, client)
            if resolved:
                return resolved
        return DEFAULT_FALLBACK_MODEL

    async def _from_mapping(self, model: str, client: httpx.AsyncClient) -> Optional[str]:
        nim_model = self.mapping.get(model)
        if nim_model:
            logger.info(LogMessages.MODEL_MAPPED.format(model, nim_model))
        return nim_model

    async def _from_probe(self, model: str, client: httpx.AsyncClient) -> Optional[str]:
        """Send a one-token request with the caller id; adopt it if the upstream accepts"""
        probe_payload = {
            "model": model,
            "messages": [{"role": "user", "content": RequestDefaults.PROBE_MESSAGE}],
            "max_tokens": RequestDefaults.PROBE_MAX_TOKENS
        }
        try:
            response = await client.post(
                self.config.chat_completions_url(),
                headers=build_upstream_headers(self.config.NIM_API_KEY),
                json=probe_payload
            )
        except httpx.HTTPError as e:
            logger.info(LogMessages.MODEL_PROBE_FAILED.format(model, error_text(e)))
            return None

        if response.is_success:
            logger.info(LogMessages.MODEL_PROBE_ACCEPTED.format(model))
            return model

        logger.info(LogMessages.MODEL_PROBE_REJECTED.format(model, response.status_code))
        return None

    async def _from_patterns(self, model: str, client: httpx.AsyncClient) -> Optional[str]:
        nim_model = match_fallback_rule(model)
        logger.info(LogMessages.MODEL_FALLBACK.format(model, nim_model))
        return nim_model
