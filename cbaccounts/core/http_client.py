"""HTTP transport for the accounts API.

``APITransport`` owns one ``httpx.AsyncClient``. It authenticates every request
with an HMAC signature or an OAuth bearer token, unwraps the
``{data, pagination, warnings}`` envelope and turns error statuses into
exceptions from ``errors``. Only connection failures are retried.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urljoin

import httpx
from pydantic import ValidationError as PydanticValidationError
from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_exponential

from .data_models import Pagination
from .errors import MalformedResponseError, TransportError, build_api_error

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coinbase.com/v2/"
DEFAULT_API_VERSION = "2016-02-18"
DEFAULT_TIMEOUT = httpx.Timeout(20.0, connect=5.0)
DEFAULT_CONNECT_RETRIES = 3

# Only failures where the request never reached the server are safe to replay.
RETRYABLE_EXCEPTIONS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, RETRYABLE_EXCEPTIONS)


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Connection attempt %d failed (%s); retrying", retry_state.attempt_number, exc)


@dataclass
class APIResponse:
    """Parsed response envelope: ``{data, pagination?, warnings?}``."""

    data: Any
    pagination: Optional[Pagination] = None
    warnings: List[Dict[str, Any]] = field(default_factory=list)


class APITransport:
    """Signs and sends requests to the accounts API and unwraps its envelope."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: Any = DEFAULT_TIMEOUT,
        connect_retries: int = DEFAULT_CONNECT_RETRIES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError("base_url is required.")
        if not access_token and not (api_key and api_secret):
            raise ValueError("Either access_token or both api_key and api_secret are required.")

        self.base_url = base_url.rstrip("/") + "/"
        self.api_version = api_version
        self._api_key = api_key
        self._api_secret = api_secret
        self._access_token = access_token
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)
        self._send_with_retry = retry(
            stop=stop_after_attempt(max(1, connect_retries)),
            wait=wait_exponential(multiplier=1, min=1, max=5),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        )(self._send)

    def _get_common_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "CB-VERSION": self.api_version,
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _sign(self, request: httpx.Request) -> None:
        """Attach HMAC API-key headers; no-op in OAuth mode."""
        if self._access_token:
            return
        timestamp = str(int(time.time()))
        message = (
            timestamp
            + request.method
            + request.url.raw_path.decode("ascii")
            + request.content.decode("utf-8")
        )
        signature = hmac.new(
            self._api_secret.encode("utf-8"),
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        request.headers["CB-ACCESS-KEY"] = self._api_key
        request.headers["CB-ACCESS-SIGN"] = signature
        request.headers["CB-ACCESS-TIMESTAMP"] = timestamp

    def _resolve(self, path: str) -> str:
        # Server-issued next_uri values are host-absolute ("/v2/accounts/...").
        return urljoin(self.base_url, path)

    async def _send(self, request: httpx.Request) -> httpx.Response:
        return await self._client.send(request)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> APIResponse:
        query = {key: value for key, value in (params or {}).items() if value is not None}
        request = self._client.build_request(
            method,
            self._resolve(path),
            params=query or None,
            json=dict(body) if body is not None else None,
            headers=self._get_common_headers(),
        )
        if headers:
            request.headers.update(headers)
        self._sign(request)

        logger.debug("%s %s", method, request.url)
        try:
            response = await self._send_with_retry(request)
        except httpx.RequestError as exc:
            logger.error("Request %s %s failed: %s", method, request.url, exc)
            raise TransportError(f"{method} {path} failed: {exc}") from exc

        if response.status_code >= 400:
            error = build_api_error(response)
            logger.warning(
                "%s %s returned %s (%s): %s",
                method,
                request.url,
                response.status_code,
                error.error_id,
                error.message,
            )
            raise error

        return self._parse_envelope(response)

    @staticmethod
    def _parse_envelope(response: httpx.Response) -> APIResponse:
        if response.status_code == 204 or not response.content:
            return APIResponse(data=None)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                f"Response from {response.request.url} is not valid JSON"
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                f"Response from {response.request.url} is not a JSON object"
            )

        warnings = payload.get("warnings")
        if not isinstance(warnings, list):
            warnings = []
        for warning in warnings:
            logger.warning("API warning for %s: %s", response.request.url, warning)

        pagination = None
        raw_pagination = payload.get("pagination")
        if isinstance(raw_pagination, dict):
            try:
                pagination = Pagination.model_validate(raw_pagination)
            except PydanticValidationError as exc:
                raise MalformedResponseError(f"Unreadable pagination block: {exc}") from exc

        return APIResponse(data=payload.get("data"), pagination=pagination, warnings=warnings)

    async def close(self) -> None:
        """Dispose the underlying HTTP client."""
        await self._client.aclose()
