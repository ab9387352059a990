"""
Compliance Tracker — Hijerarhija iznimki

Sve iznimke servisa nasljeđuju TrackerError. ApiError nosi HTTP status
i kod greške koji API sloj pretvara u standardni envelope.
"""

from typing import Any, Dict, Optional


class TrackerError(Exception):
    """Bazna iznimka za Compliance Tracker."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class DataLoadError(TrackerError):
    """Neispravan ili nedostupan JSON izvor podataka."""

    def __init__(self, message: str, path: str = "",
                 original_error: Optional[Exception] = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path
        self.original_error = original_error

    def __str__(self) -> str:
        base = super().__str__()
        if self.original_error:
            return f"{base} | Caused by: {type(self.original_error).__name__}: {self.original_error}"
        return base


class ApiError(TrackerError):
    """Greška koja se vraća klijentu kao {success: false, error: {...}}."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, details)
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class RateLimitError(ApiError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
