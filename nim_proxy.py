"""
OpenAI to NVIDIA NIM API proxy
Exposes an OpenAI-compatible API and forwards requests to NVIDIA NIM
"""
import sys
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nimproxy.config import Config
from nimproxy.constants import APIConstants, ErrorMessages, MODEL_MAPPING
from nimproxy.exceptions import ConfigurationError, NimProxyError, RouteNotFoundError
from nimproxy.models import ChatCompletionRequest
from nimproxy.api_handler import APIHandler
from nimproxy.utils import configure_logging_encoding, error_text

# Initialize configuration
try:
    Config.validate()
    Config.setup_logging()
    configure_logging_encoding()
except Exception as e:
    print(f"Configuration error: {error_text(e)}")
    sys.exit(1)

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("NIM proxy starting...")
    yield
    logger.info("NIM proxy shutting down...")

app = FastAPI(
    title="NVIDIA NIM Proxy",
    description="OpenAI-compatible proxy for the NVIDIA NIM API",
    version=APIConstants.SERVICE_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_handler = APIHandler(Config)

@app.get("/health")
async def health_check():
    """Health check"""
    return JSONResponse(content=api_handler.get_health())

@app.get("/")
async def homepage():
    """Service metadata"""
    return JSONResponse(content=api_handler.get_service_info())

@app.get("/v1/models")
async def get_models():
    """List models"""
    return await api_handler.get_models()

# Runs before body validation: a missing key is reported even for a malformed body
async def require_api_key():
    if not Config.is_api_key_configured():
        raise ConfigurationError()

@app.post("/v1/chat/completions", dependencies=[Depends(require_api_key)])
async def chat_completions(request: ChatCompletionRequest):
    """Chat completions"""
    return await api_handler.chat_completions(request)

# Must stay the last route: it also catches known paths with the wrong method
@app.api_route(
    "/{full_path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"],
    include_in_schema=False
)
async def not_found(request: Request, full_path: str):
    raise RouteNotFoundError(request.url.path)

@app.exception_handler(NimProxyError)
async def proxy_exception_handler(request: Request, exc: NimProxyError):
    """Render proxy errors"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

def format_validation_errors(errors) -> str:
    """Join pydantic errors as "loc: msg" pairs, e.g. "body.messages: Field required"."""
    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in errors
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render malformed request bodies"""
    error = NimProxyError(
        format_validation_errors(exc.errors()),
        ErrorMessages.INVALID_REQUEST_ERROR,
        APIConstants.HTTP_BAD_REQUEST
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())

def log_banner() -> None:
    """Log the startup summary"""
    rule = "═" * 55
    logger.info(rule)
    logger.info("🚀 OpenAI → NVIDIA NIM Proxy (%s Optimized)", APIConstants.OPTIMIZED_FOR)
    logger.info(rule)
    logger.info("📡 Server running on %s:%s", Config.HOST, Config.PORT)
    logger.info("🏥 Health check: http://localhost:%s/health", Config.PORT)
    logger.info("📋 Models list: http://localhost:%s/v1/models", Config.PORT)
    logger.info("⚙️  Configuration:")
    logger.info("   • Reasoning display: %s", "✅ ENABLED" if Config.SHOW_REASONING else "❌ DISABLED")
    logger.info("   • Thinking mode: %s", "✅ ENABLED" if Config.ENABLE_THINKING_MODE else "❌ DISABLED")
    logger.info("   • API key: %s", "✅ Configured" if Config.is_api_key_configured() else "❌ Missing")
    logger.info("   • Upstream: %s", Config.NIM_API_BASE)
    logger.info("   • Mapped models: %d", len(MODEL_MAPPING))
    logger.info("🎯 Featured Models:")
    logger.info("   • Best Quality: gpt-4 → DeepSeek V3.2 (685B)")
    logger.info("   • Balanced: claude-sonnet → Llama Nemotron Super (49B)")
    logger.info("   • Fastest: gpt-3.5-turbo → Llama Nemotron Nano (8B)")
    logger.info(rule)

if __name__ == "__main__":
    import uvicorn

    log_level = "debug" if Config.DEBUG_LOGGING else "info"
    log_banner()

    uvicorn.run(
        app,
        host=Config.HOST,
        port=Config.PORT,
        access_log=Config.ENABLE_ACCESS_LOG,
        log_level=log_level
    )
