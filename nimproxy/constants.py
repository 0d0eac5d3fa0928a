"""
Constants module
Model tables, magic numbers and hard-coded strings
"""
from types import MappingProxyType

# Caller-facing model name -> NVIDIA NIM model name
MODEL_MAPPING = MappingProxyType({
    # Premium reasoning models
    "gpt-4": "deepseek-ai/deepseek-v3.2",
    "gpt-4-turbo": "deepseek-ai/deepseek-v3.1",
    "gpt-4o": "deepseek-ai/deepseek-v3.1-terminus",
    "claude-opus": "nvidia/llama-3.1-nemotron-ultra-253b-v1",
    "claude-sonnet": "nvidia/llama-3.3-nemotron-super-49b-v1.5",

    # Fast and efficient models
    "gpt-3.5-turbo": "nvidia/llama-3.1-nemotron-nano-8b-v1",
    "gpt-3.5-turbo-16k": "nvidia/nvidia-nemotron-nano-9b-v2",
    "claude-haiku": "nvidia/nemotron-3-nano-30b-a3b",

    # Specialized models
    "gemini-pro": "qwen/qwen3-next-80b-a3b-thinking",
    "gemini-pro-vision": "nvidia/nemotron-nano-12b-v2-vl",

    # Alternative premium options
    "gpt-4-reasoning": "moonshotai/kimi-k2-instruct-1113",
    "deepseek": "deepseek-ai/deepseek-v3.1",

    # Meta Llama fallbacks
    "llama-70b": "meta/llama-3.1-70b-instruct",
    "llama-405b": "meta/llama-3.1-405b-instruct",
    "llama-8b": "meta/llama-3.1-8b-instruct",
})

# NIM models that support reasoning mode (advertised only)
THINKING_MODELS = frozenset({
    "deepseek-ai/deepseek-v3.2",
    "deepseek-ai/deepseek-v3.1",
    "deepseek-ai/deepseek-v3.1-terminus",
    "qwen/qwen3-next-80b-a3b-thinking",
    "nvidia/llama-3.1-nemotron-ultra-253b-v1",
    "nvidia/llama-3.3-nemotron-super-49b-v1.5",
    "nvidia/llama-3.1-nemotron-nano-8b-v1",
    "nvidia/nvidia-nemotron-nano-9b-v2",
    "nvidia/nemotron-3-nano-30b-a3b",
})

BEST_QUALITY_MODEL = "deepseek-ai/deepseek-v3.2"
BALANCED_MODEL = "nvidia/llama-3.3-nemotron-super-49b-v1.5"
FAST_MODEL = "nvidia/llama-3.1-nemotron-nano-8b-v1"

# Substring heuristics for unmapped models. Order matters: first match wins.
FALLBACK_RULES = (
    (("gpt-4", "opus"), BEST_QUALITY_MODEL),
    (("deepseek",), "deepseek-ai/deepseek-v3.1"),
    (("claude-sonnet", "70b"), BALANCED_MODEL),
    (("3.5", "haiku", "fast"), FAST_MODEL),
    (("gemini", "qwen"), "qwen/qwen3-next-80b-a3b-thinking"),
)
DEFAULT_FALLBACK_MODEL = BALANCED_MODEL


# API constants
class APIConstants:
    SERVICE_NAME = "OpenAI to NVIDIA NIM Proxy"
    SERVICE_VERSION = "2.0"
    OPTIMIZED_FOR = "Janitor AI"
    MODEL_OWNER = "nvidia-nim-proxy"

    # HTTP status codes
    HTTP_BAD_REQUEST = 400
    HTTP_UNAUTHORIZED = 401
    HTTP_NOT_FOUND = 404
    HTTP_TOO_MANY_REQUESTS = 429
    HTTP_INTERNAL_ERROR = 500

    BEARER_PREFIX = "Bearer "

    AVAILABLE_ENDPOINTS = "/health, /v1/models, /v1/chat/completions"


# Request defaults
class RequestDefaults:
    TEMPERATURE = 0.7
    MAX_TOKENS = 4096
    STREAM = False

    # Model probe payload
    PROBE_MESSAGE = "test"
    PROBE_MAX_TOKENS = 1


# Response constants
class ResponseConstants:
    CHAT_COMPLETION_OBJECT = "chat.completion"
    MODEL_OBJECT = "model"
    LIST_OBJECT = "list"
    COMPLETION_ID_PREFIX = "chatcmpl-"
    DEFAULT_ROLE = "assistant"

    # SSE framing
    STREAM_DATA_PREFIX = b"data: "
    STREAM_DONE_PAYLOAD = b"[DONE]"
    LINE_SEPARATOR = b"\n"
    FRAME_TERMINATOR = b"\n\n"

    # Delta fields that must never reach the caller
    REASONING_FIELDS = ("reasoning", "reasoning_content")


# Error message constants
class ErrorMessages:
    CONFIGURATION_ERROR = "configuration_error"
    INVALID_REQUEST_ERROR = "invalid_request_error"

    API_KEY_MISSING = (
        "NIM_API_KEY not configured. Please add your NVIDIA API key "
        "in the environment variables."
    )
    API_KEY_REJECTED = "Invalid NVIDIA API key. Please check your NIM_API_KEY in environment variables."
    RATE_LIMITED = "Rate limit exceeded. Please try again in a moment."
    STATUS_FAILED = "Request failed with status code {}"
    MISSING_CHOICES = "Upstream response is missing 'choices'"
    INVALID_JSON = "Upstream response is not valid JSON"
    ENDPOINT_NOT_FOUND = "Endpoint {} not found. Available endpoints: " + APIConstants.AVAILABLE_ENDPOINTS


# Log message constants
class LogMessages:
    MODEL_MAPPED = "🎯 Model mapped: {} -> {}"
    MODEL_PROBE_ACCEPTED = "🔎 Upstream accepted model directly: {}"
    MODEL_PROBE_REJECTED = "🔎 Upstream rejected model probe for {} (status {})"
    MODEL_PROBE_FAILED = "🔎 Model probe for {} failed: {}"
    MODEL_FALLBACK = "🧭 Fallback rule matched: {} -> {}"
    REQUEST_RECEIVED = "📥 Chat request: model={}, messages={}, stream={}"
    UPSTREAM_STATUS_ERROR = "❌ Upstream returned status {}: {}"
    UPSTREAM_REQUEST_ERROR = "❌ Upstream request failed: {}"
    STREAM_ERROR = "Stream error: {}"
    STREAM_CLOSED = "Stream closed after {} frames"
    PROXY_ERROR = "Proxy error: {}"


# HTTP header constants
class HeaderConstants:
    AUTHORIZATION = "Authorization"
    CONTENT_TYPE = "Content-Type"
    CACHE_CONTROL = "Cache-Control"
    CONNECTION = "Connection"
    X_ACCEL_BUFFERING = "X-Accel-Buffering"

    APPLICATION_JSON = "application/json"
    TEXT_EVENT_STREAM = "text/event-stream"
    NO_CACHE = "no-cache"
    KEEP_ALIVE = "keep-alive"
    NO_BUFFERING = "no"


# Numeric constants
class NumericConstants:
    # Default token usage
    DEFAULT_PROMPT_TOKENS = 0
    DEFAULT_COMPLETION_TOKENS = 0
    DEFAULT_TOTAL_TOKENS = 0

    # Upstream error body preview length in logs
    CONTENT_PREVIEW_LENGTH = 200
