"""
Utility functions
"""
import logging
import sys
import uuid
from typing import Dict

from nimproxy.constants import APIConstants, HeaderConstants, ResponseConstants


def error_text(exc: BaseException) -> str:
    """Exception text, falling back to the class name for empty messages (e.g. httpx timeouts)"""
    return str(exc) or type(exc).__name__


def build_upstream_headers(api_key: str) -> Dict[str, str]:
    """Headers for every NIM API call"""
    return {
        HeaderConstants.AUTHORIZATION: f"{APIConstants.BEARER_PREFIX}{api_key}",
        HeaderConstants.CONTENT_TYPE: HeaderConstants.APPLICATION_JSON
    }


def generate_completion_id() -> str:
    """Unique id for an outbound chat completion"""
    return f"{ResponseConstants.COMPLETION_ID_PREFIX}{uuid.uuid4().hex}"


def configure_logging_encoding():
    """
    Make stdout/stderr and existing log handlers emit UTF-8
    """
    try:
        if hasattr(sys.stdout, 'reconfigure'):
            sys.stdout.reconfigure(encoding='utf-8', errors='replace')
        if hasattr(sys.stderr, 'reconfigure'):
            sys.stderr.reconfigure(encoding='utf-8', errors='replace')

        root_logger = logging.getLogger()
        for handler in root_logger.handlers:
            if hasattr(handler, 'stream'):
                if hasattr(handler.stream, 'reconfigure'):
                    handler.stream.reconfigure(encoding='utf-8', errors='replace')

    except Exception as e:
        print(f"Failed to configure logging encoding: {e}")
