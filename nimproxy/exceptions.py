"""
Custom exceptions module
All proxy errors are rendered as {"error": {"message", "type", "code"}}
"""
from nimproxy.constants import APIConstants, ErrorMessages

class NimProxyError(Exception):
    """Base exception for the NIM proxy"""
    def __init__(self, message: str, error_type: str = ErrorMessages.INVALID_REQUEST_ERROR, status_code: int = 500):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.status_code
            }
        }

class ConfigurationError(NimProxyError):
    """Missing or invalid configuration"""
    def __init__(self, message: str = ErrorMessages.API_KEY_MISSING):
        super().__init__(message, ErrorMessages.CONFIGURATION_ERROR, APIConstants.HTTP_INTERNAL_ERROR)

class UpstreamError(NimProxyError):
    """Upstream call failed (network error or non-2xx status)"""
    def __init__(self, message: str, status_code: int = APIConstants.HTTP_INTERNAL_ERROR):
        super().__init__(message, ErrorMessages.INVALID_REQUEST_ERROR, status_code)

    @classmethod
    def from_status(cls, status_code: int, detail: str = None) -> "UpstreamError":
        """Build an error for an upstream HTTP status, substituting readable messages"""
        if status_code == APIConstants.HTTP_UNAUTHORIZED:
            message = ErrorMessages.API_KEY_REJECTED
        elif status_code == APIConstants.HTTP_TOO_MANY_REQUESTS:
            message = ErrorMessages.RATE_LIMITED
        elif detail:
            message = detail
        else:
            message = ErrorMessages.STATUS_FAILED.format(status_code)
        return cls(message, status_code)

class UpstreamFormatError(NimProxyError):
    """Upstream response body does not have the expected shape"""
    def __init__(self, message: str = ErrorMessages.MISSING_CHOICES):
        super().__init__(message, ErrorMessages.INVALID_REQUEST_ERROR, APIConstants.HTTP_INTERNAL_ERROR)

class RouteNotFoundError(NimProxyError):
    """Unsupported path or method"""
    def __init__(self, path: str):
        super().__init__(
            ErrorMessages.ENDPOINT_NOT_FOUND.format(path),
            ErrorMessages.INVALID_REQUEST_ERROR,
            APIConstants.HTTP_NOT_FOUND
        )
