"""Error taxonomy shared by routes, backends and parsers."""

from __future__ import annotations

from typing import Any


class SourceLensError(Exception):
    """Base error rendered as a JSON body by the application handler."""

    status_code: int = 500
    kind: str = "internal"

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "kind": self.kind}
        if self.detail is not None:
            body["error"] = self.detail
        return body


class RequestValidationFailed(SourceLensError):
    status_code = 400
    kind = "validation"


class AuthenticationRequired(SourceLensError):
    status_code = 401
    kind = "authentication"


class NotFound(SourceLensError):
    status_code = 404
    kind = "not_found"


class ConfigurationError(SourceLensError):
    kind = "configuration"


class ProviderError(SourceLensError):
    kind = "provider"


class FallbackExhausted(ProviderError):
    """Every provider in a fallback chain failed."""

    def __init__(self, message: str, errors: dict[str, str]) -> None:
        super().__init__(message, detail=errors)
        self.errors = errors


class ParsingError(SourceLensError):
    kind = "parsing"
