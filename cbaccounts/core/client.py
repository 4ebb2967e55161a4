from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings
from ..config import settings as default_settings
from .account import Account
from .data_models import Page
from .http_client import (
    DEFAULT_API_VERSION,
    DEFAULT_BASE_URL,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_TIMEOUT,
    APITransport,
)
from .resources import walk_pages

logger = logging.getLogger(__name__)


class Client:
    """Process-wide handle owning the credentials and the HTTP transport.

    Accounts and resources built by a client borrow it; close the client only
    once they are no longer used.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        access_token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: Any = DEFAULT_TIMEOUT,
        connect_retries: int = DEFAULT_CONNECT_RETRIES,
        transport: Optional[APITransport] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.transport = transport or APITransport(
            base_url,
            api_key=api_key,
            api_secret=api_secret,
            access_token=access_token,
            api_version=api_version,
            timeout=timeout,
            connect_retries=connect_retries,
            transport=http_transport,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides: Any) -> "Client":
        settings = settings or default_settings
        options = {
            "api_key": settings.api_key,
            "api_secret": settings.api_secret,
            "access_token": settings.access_token,
            "base_url": settings.base_url,
            "api_version": settings.api_version,
            "timeout": httpx.Timeout(settings.timeout, connect=5.0),
            "connect_retries": settings.connect_retries,
        }
        options.update(overrides)
        return cls(**options)

    async def get_accounts(
        self, *, fetch_all: bool = False, next_uri: Optional[str] = None, **params: Any
    ) -> Page:
        return await walk_pages(
            self, "accounts", Account, params=params, fetch_all=fetch_all, next_uri=next_uri
        )

    async def get_account(self, account_id: str) -> Account:
        if not account_id:
            raise ValueError("account_id is required.")
        response = await self.transport.request("GET", f"accounts/{account_id}")
        return Account.build(self, response.data)

    async def create_account(self, params: Mapping[str, Any]) -> Account:
        response = await self.transport.request("POST", "accounts", body=params)
        account = Account.build(self, response.data)
        logger.info("Created account %s", account.id)
        return account

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
