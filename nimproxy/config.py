"""
Configuration module
Central place for environment variables and configuration values
"""
import os
import logging
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    """Application configuration"""

    # NVIDIA NIM upstream
    NIM_API_BASE: str = os.getenv("NIM_API_BASE", "https://integrate.api.nvidia.com/v1")
    NIM_API_KEY: str = os.getenv("NIM_API_KEY", "")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    # Feature toggles, fixed for this deployment
    SHOW_REASONING: bool = False
    ENABLE_THINKING_MODE: bool = False

    DEBUG_LOGGING: bool = os.getenv("DEBUG_LOGGING", "false").lower() == "true"
    ENABLE_ACCESS_LOG: bool = os.getenv("ENABLE_ACCESS_LOG", "true").lower() == "true"

    # Transport, shared by the model probe and the main upstream call
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "120"))
    CONNECT_TIMEOUT: float = float(os.getenv("CONNECT_TIMEOUT", "10"))
    MAX_KEEPALIVE_CONNECTIONS: int = int(os.getenv("MAX_KEEPALIVE_CONNECTIONS", "20"))
    MAX_CONNECTIONS: int = int(os.getenv("MAX_CONNECTIONS", "100"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS
    CORS_ORIGINS: List[str] = (
        os.getenv("CORS_ORIGINS", "*").split(",")
        if os.getenv("CORS_ORIGINS", "*") != "*"
        else ["*"]
    )

    @classmethod
    def validate(cls) -> None:
        """Validate startup configuration.

        The NIM API key is not checked here; a missing key is reported per
        request as a configuration error.
        """
        if cls.PORT < 1 or cls.PORT > 65535:
            raise ValueError(f"PORT value {cls.PORT} is outside the valid range (1-65535)")

        if cls.REQUEST_TIMEOUT <= 0:
            raise ValueError(f"REQUEST_TIMEOUT must be greater than 0, got: {cls.REQUEST_TIMEOUT}")

        if cls.CONNECT_TIMEOUT <= 0:
            raise ValueError(f"CONNECT_TIMEOUT must be greater than 0, got: {cls.CONNECT_TIMEOUT}")

        if not cls.NIM_API_BASE.startswith(("http://", "https://")):
            raise ValueError(f"NIM_API_BASE must be an http(s) URL, got: {cls.NIM_API_BASE}")

    @classmethod
    def setup_logging(cls) -> None:
        """Configure logging"""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR
        }

        log_level = level_map.get(cls.LOG_LEVEL, logging.INFO)
        if cls.DEBUG_LOGGING:
            log_level = logging.DEBUG
        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    @classmethod
    def is_api_key_configured(cls) -> bool:
        return bool(cls.NIM_API_KEY)

    @classmethod
    def chat_completions_url(cls) -> str:
        """Upstream chat completions endpoint"""
        return f"{cls.NIM_API_BASE.rstrip('/')}/chat/completions"
