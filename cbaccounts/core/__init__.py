"""Core package exposing the account client and its resource models."""

from .account import Account
from .client import Client
from .data_models import (
    Address,
    Buy,
    Deposit,
    Money,
    Page,
    Pagination,
    Resource,
    ResourceKind,
    Sell,
    Transaction,
    TransactionRequest,
    TransactionType,
    Withdrawal,
)
from .errors import (
    AuthenticationError,
    CoinbaseError,
    MalformedResponseError,
    NotFoundError,
    TransportError,
    TwoFactorRequiredError,
    ValidationError,
)
from .factory import build_resource
from .http_client import APIResponse, APITransport

__all__ = [
    "Account",
    "Address",
    "APIResponse",
    "APITransport",
    "AuthenticationError",
    "build_resource",
    "Buy",
    "Client",
    "CoinbaseError",
    "Deposit",
    "MalformedResponseError",
    "Money",
    "NotFoundError",
    "Page",
    "Pagination",
    "Resource",
    "ResourceKind",
    "Sell",
    "Transaction",
    "TransactionRequest",
    "TransactionType",
    "TransportError",
    "TwoFactorRequiredError",
    "ValidationError",
    "Withdrawal",
]
