"""Application exception types."""

from parish_api.schemas.error import ErrorResponse


class ApiError(Exception):
    """Structured API error that maps directly to contract error payloads."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.payload = ErrorResponse(code=code, message=message, details=details)
        self.headers = headers
        super().__init__(message)


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting is missing."""


def unauthorized(message: str = "Invalid or missing bearer token") -> ApiError:
    return ApiError(status_code=401, code="UNAUTHORIZED", message=message)


def forbidden(message: str = "Insufficient role") -> ApiError:
    return ApiError(status_code=403, code="FORBIDDEN", message=message)


def not_found(message: str = "Resource not found") -> ApiError:
    return ApiError(status_code=404, code="RESOURCE_NOT_FOUND", message=message)


__all__ = ["ApiError", "ConfigurationError", "forbidden", "not_found", "unauthorized"]
