from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from cbaccounts import Account, Client

BASE_URL = "https://api.coinbase.com/v2/"


def envelope(data: Any, next_uri: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"data": data}
    if isinstance(data, list):
        body["pagination"] = {
            "ending_before": None,
            "starting_after": None,
            "limit": 25,
            "order": "desc",
            "previous_uri": None,
            "next_uri": next_uri,
        }
    body.update(extra)
    return body


def error_body(error_id: str, message: str) -> Dict[str, Any]:
    return {"errors": [{"id": error_id, "message": message}]}


class RecordingHandler:
    """MockTransport handler that records requests and delegates to a responder."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


@pytest.fixture
def make_client():
    def _make(responder: Callable[[httpx.Request], httpx.Response], **kwargs: Any):
        handler = RecordingHandler(responder)
        options = {"connect_retries": 1, "base_url": BASE_URL}
        options.update(kwargs)
        if "access_token" not in options:
            options.setdefault("api_key", "test-key")
            options.setdefault("api_secret", "test-secret")
        client = Client(http_transport=httpx.MockTransport(handler), **options)
        return client, handler

    return _make


@pytest.fixture
def account_data() -> Dict[str, Any]:
    return {
        "id": "A1",
        "name": "My Wallet",
        "primary": True,
        "type": "wallet",
        "currency": "BTC",
        "balance": {"amount": "1.50000000", "currency": "BTC"},
        "resource": "account",
        "resource_path": "/v2/accounts/A1",
    }


@pytest.fixture
def bind_account(account_data):
    def _bind(client: Client) -> Account:
        return Account.build(client, account_data)

    return _bind
