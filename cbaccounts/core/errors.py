"""Error hierarchy raised by the Coinbase accounts client."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

import httpx


class CoinbaseError(Exception):
    """Root of every error raised by this package."""


class TransportError(CoinbaseError):
    """A request failed at the network or HTTP level."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_id: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        response: Optional[httpx.Response] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_id = error_id
        self.errors = errors or []
        self.response = response

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code} ({self.error_id or 'unknown'}): {self.message}"


class InvalidRequestError(TransportError):
    pass


class AuthenticationError(TransportError):
    pass


class ExpiredTokenError(AuthenticationError):
    pass


class RevokedTokenError(AuthenticationError):
    pass


class InvalidTokenError(AuthenticationError):
    pass


class TwoFactorRequiredError(TransportError):
    """The server wants a CB-2FA-Token; re-issue the call with one obtained out-of-band."""


class PersonalDetailsRequiredError(TransportError):
    pass


class UnverifiedEmailError(TransportError):
    pass


class InvalidScopeError(TransportError):
    pass


class NotFoundError(TransportError):
    pass


class ValidationError(TransportError):
    """The server rejected the request payload."""


class RateLimitExceededError(TransportError):
    pass


class InternalServerError(TransportError):
    pass


class ServiceUnavailableError(TransportError):
    pass


class MalformedResponseError(CoinbaseError):
    """The server answered with something that cannot be turned into a resource."""


_ERROR_ID_TO_CLASS: Dict[str, Type[TransportError]] = {
    "param_required": InvalidRequestError,
    "invalid_request": InvalidRequestError,
    "personal_details_required": PersonalDetailsRequiredError,
    "authentication_error": AuthenticationError,
    "unverified_email": UnverifiedEmailError,
    "invalid_token": InvalidTokenError,
    "revoked_token": RevokedTokenError,
    "expired_token": ExpiredTokenError,
    "two_factor_required": TwoFactorRequiredError,
    "invalid_scope": InvalidScopeError,
    "not_found": NotFoundError,
    "validation_error": ValidationError,
    "rate_limit_exceeded": RateLimitExceededError,
    "internal_server_error": InternalServerError,
}

_STATUS_TO_CLASS: Dict[int, Type[TransportError]] = {
    400: InvalidRequestError,
    401: AuthenticationError,
    402: TwoFactorRequiredError,
    403: InvalidScopeError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitExceededError,
    500: InternalServerError,
    503: ServiceUnavailableError,
}


def _extract_errors(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict):
        return []
    errors = payload.get("errors")
    if isinstance(errors, list):
        return [entry for entry in errors if isinstance(entry, dict)]
    # OAuth endpoints answer with a flat {"error": ..., "error_description": ...}
    if isinstance(payload.get("error"), str):
        return [{"id": payload["error"], "message": payload.get("error_description") or payload["error"]}]
    return []


def build_api_error(response: httpx.Response) -> TransportError:
    """Map an HTTP error response onto the most specific TransportError subclass."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    errors = _extract_errors(payload)
    first = errors[0] if errors else {}
    error_id = first.get("id")
    message = first.get("message") or response.text or response.reason_phrase

    error_class = _ERROR_ID_TO_CLASS.get(error_id or "")
    if error_class is None:
        error_class = _STATUS_TO_CLASS.get(response.status_code)
    if error_class is None:
        error_class = InternalServerError if response.status_code >= 500 else TransportError

    return error_class(
        message,
        status_code=response.status_code,
        error_id=error_id,
        errors=errors,
        response=response,
    )
