"""Data models for the accounts API core."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterator, Optional, Tuple, Union
from urllib.parse import parse_qs, urlsplit

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from .errors import MalformedResponseError

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client


class ResourceKind(str, Enum):
    ADDRESS = "address"
    TRANSACTION = "transaction"
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionType(str, Enum):
    TRANSFER = "transfer"
    SEND = "send"
    REQUEST = "request"


class Money(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    amount: str
    currency: str

    @property
    def decimal(self) -> Decimal:
        return Decimal(self.amount)


class Pagination(BaseModel):
    """Cursor block returned next to every collection page."""

    model_config = ConfigDict(frozen=True, extra="allow")

    ending_before: Optional[str] = None
    starting_after: Optional[str] = None
    limit: Optional[int] = None
    order: Optional[str] = None
    previous_uri: Optional[str] = None
    next_uri: Optional[str] = None

    @property
    def has_next(self) -> bool:
        return bool(self.next_uri)

    @property
    def next_starting_after(self) -> Optional[str]:
        """Cursor to pass as ``starting_after`` to resume after this page."""
        if not self.next_uri:
            return None
        values = parse_qs(urlsplit(self.next_uri).query).get("starting_after")
        return values[0] if values else None


class Resource(BaseModel):
    """Immutable snapshot of a server-side record.

    Instances keep a borrowed reference to the ``Client`` that fetched them and
    the id of the account whose collection they came from. The client has to
    outlive every resource built from it.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    kind: ClassVar[Optional[ResourceKind]] = None
    collection: ClassVar[str]

    id: str
    resource: Optional[str] = None
    resource_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    _client: Any = PrivateAttr(default=None)
    _account_id: Optional[str] = PrivateAttr(default=None)

    @classmethod
    def build(cls, client: "Client", data: Any, account_id: Optional[str] = None):
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Expected an object for {cls.__name__}, got {type(data).__name__}"
            )
        try:
            instance = cls.model_validate(data)
        except PydanticValidationError as exc:
            raise MalformedResponseError(f"Cannot interpret {cls.__name__} payload: {exc}") from exc
        instance._client = client
        instance._account_id = account_id
        return instance

    @property
    def client(self) -> "Client":
        return self._client

    @property
    def account_id(self) -> Optional[str]:
        return self._account_id

    def _member_path(self) -> str:
        if not self._account_id:
            raise ValueError(f"{type(self).__name__} {self.id} is not bound to an account")
        return f"accounts/{self._account_id}/{self.collection}/{self.id}"

    async def _act(self, method: str, action: Optional[str] = None):
        """Run a member action and return the server's fresh snapshot (or None)."""
        if self._client is None:
            raise ValueError(f"{type(self).__name__} {self.id} is not bound to a client")
        path = self._member_path()
        if action:
            path = f"{path}/{action}"
        response = await self._client.transport.request(method, path)
        if response.data is None:
            return None
        return type(self).build(self._client, response.data, account_id=self._account_id)


class Address(Resource):
    kind: ClassVar[ResourceKind] = ResourceKind.ADDRESS
    collection: ClassVar[str] = "addresses"

    address: Optional[str] = None
    name: Optional[str] = None
    network: Optional[str] = None
    callback_url: Optional[str] = None


class Transaction(Resource):
    kind: ClassVar[ResourceKind] = ResourceKind.TRANSACTION
    collection: ClassVar[str] = "transactions"

    type: Optional[str] = None
    status: Optional[str] = None
    amount: Optional[Money] = None
    native_amount: Optional[Money] = None
    description: Optional[str] = None
    idem: Optional[str] = None
    network: Optional[Dict[str, Any]] = None
    to: Optional[Dict[str, Any]] = None
    from_: Optional[Dict[str, Any]] = Field(default=None, alias="from")
    details: Optional[Dict[str, Any]] = None

    async def complete(self) -> "Transaction":
        """Complete a money request addressed to this account."""
        return await self._act("POST", "complete")

    async def resend(self) -> "Transaction":
        """Resend the notification email of a pending money request."""
        return await self._act("POST", "resend")

    async def cancel(self) -> None:
        """Cancel a pending money request."""
        await self._act("DELETE")


class _Order(Resource):
    """Buy/sell/deposit/withdrawal share the same two-step create + commit flow."""

    status: Optional[str] = None
    payment_method: Optional[Dict[str, Any]] = None
    transaction: Optional[Dict[str, Any]] = None
    amount: Optional[Money] = None
    subtotal: Optional[Money] = None
    fee: Optional[Money] = None
    committed: Optional[bool] = None
    instant: Optional[bool] = None
    payout_at: Optional[datetime] = None

    async def commit(self):
        return await self._act("POST", "commit")


class Buy(_Order):
    kind: ClassVar[ResourceKind] = ResourceKind.BUY
    collection: ClassVar[str] = "buys"

    total: Optional[Money] = None


class Sell(_Order):
    kind: ClassVar[ResourceKind] = ResourceKind.SELL
    collection: ClassVar[str] = "sells"

    total: Optional[Money] = None


class Deposit(_Order):
    kind: ClassVar[ResourceKind] = ResourceKind.DEPOSIT
    collection: ClassVar[str] = "deposits"


class Withdrawal(_Order):
    kind: ClassVar[ResourceKind] = ResourceKind.WITHDRAWAL
    collection: ClassVar[str] = "withdrawals"


class TransactionRequest(BaseModel):
    """Payload for transfer/send/request calls. Unknown keys are passed through."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Optional[TransactionType] = None
    to: Optional[str] = None
    amount: Optional[Union[str, Decimal]] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    fee: Optional[Union[str, Decimal]] = None
    idem: Optional[str] = None
    skip_notifications: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class Page(Sequence):
    """Ordered resources from one or more pages plus the last page's cursor block."""

    items: Tuple[Any, ...] = field(default_factory=tuple)
    pagination: Optional[Pagination] = None

    def __getitem__(self, index):
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.items)

    @property
    def has_next(self) -> bool:
        return self.pagination is not None and self.pagination.has_next
