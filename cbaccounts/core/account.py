"""The Account model is the main entry point to per-account resources."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Mapping, Optional, Union

from .data_models import (
    Address,
    Buy,
    Deposit,
    Money,
    Page,
    Resource,
    ResourceKind,
    Sell,
    Transaction,
    TransactionRequest,
    TransactionType,
    Withdrawal,
)
from .resources import create_one, fetch_collection, fetch_one, initiate_transaction, walk_pages

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client

logger = logging.getLogger(__name__)

TxnArgs = Union[Mapping[str, Any], TransactionRequest]


def _with_type(args: TxnArgs, txn_type: TransactionType) -> TxnArgs:
    # The caller's payload is copied, never mutated.
    if isinstance(args, TransactionRequest):
        return args.model_copy(update={"type": txn_type})
    return {**args, "type": txn_type.value}


class Account(Resource):
    """Snapshot of one account plus bindings to its sub-resource collections.

    Usually obtained from ``Client.get_accounts()``/``Client.get_account()``;
    ``Account.build(client, {"id": "A1234"})`` is enough when the id is already
    known and a round trip should be avoided. Methods never modify the
    instance: ``update`` and ``set_primary`` return new snapshots.
    """

    collection: ClassVar[str] = "accounts"

    name: Optional[str] = None
    primary: Optional[bool] = None
    type: Optional[str] = None
    currency: Optional[Union[str, Dict[str, Any]]] = None
    balance: Optional[Money] = None
    native_balance: Optional[Money] = None

    @classmethod
    def build(cls, client: "Client", data: Any, account_id: Optional[str] = None) -> "Account":
        """Materialise an account bound to ``client``.

        An account is scoped by its own id, so ``account_id`` is ignored. It is
        accepted so that page walks can build accounts like any other resource.
        """
        account = super().build(client, data)
        account._account_id = account.id
        return account

    @property
    def path(self) -> str:
        return f"accounts/{self.id}"

    def _member_path(self) -> str:
        return self.path

    # Account-level mutation

    async def update(self, args: Optional[Mapping[str, Any]] = None, **fields: Any) -> "Account":
        """PUT new field values; returns a fresh Account and leaves this one untouched."""
        body = {**(args or {}), **fields}
        response = await self.client.transport.request("PUT", self.path, body=body)
        return Account.build(self.client, response.data)

    async def delete(self) -> None:
        await self.client.transport.request("DELETE", self.path)
        logger.info("Deleted account %s", self.id)

    async def set_primary(self) -> Optional["Account"]:
        return await self._act("POST", "primary")

    # Addresses

    async def get_addresses(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(
            self.client, self.id, "addresses", ResourceKind.ADDRESS, fetch_all=fetch_all, **params
        )

    async def get_address(self, address_id: str) -> Address:
        return await fetch_one(self.client, self.id, "addresses", ResourceKind.ADDRESS, address_id)

    async def create_address(self, args: Optional[Mapping[str, Any]] = None) -> Address:
        """Create a new receive address.

        args = {
            'name': address label (optional),
            'callback_url': callback url (optional),
        }
        """
        return await create_one(self.client, self.id, "addresses", ResourceKind.ADDRESS, args or {})

    async def get_address_transactions(
        self,
        address_id: str,
        *,
        fetch_all: bool = False,
        next_uri: Optional[str] = None,
        **params: Any,
    ) -> Page:
        """Transactions that were sent to one of this account's addresses."""
        return await walk_pages(
            self.client,
            f"{self.path}/addresses/{address_id}/transactions",
            Transaction,
            account_id=self.id,
            params=params,
            fetch_all=fetch_all,
            next_uri=next_uri,
        )

    # Transactions

    async def get_transactions(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(
            self.client, self.id, "transactions", ResourceKind.TRANSACTION, fetch_all=fetch_all, **params
        )

    async def get_transaction(self, transaction_id: str) -> Transaction:
        return await fetch_one(self.client, self.id, "transactions", ResourceKind.TRANSACTION, transaction_id)

    async def transfer_money(self, args: TxnArgs) -> Transaction:
        """Move funds to another account of the same user.

        args = {
            'to': account id,
            'amount': amount,
            'currency': currency,
            'description': notes (optional),
        }
        """
        return await initiate_transaction(self.client, self.id, _with_type(args, TransactionType.TRANSFER))

    async def send_money(self, args: TxnArgs, two_factor_token: Optional[str] = None) -> Transaction:
        """Send funds to a crypto address or email.

        args = {
            'to': address or email,
            'amount': amount,
            'currency': currency,
            'description': notes (optional),
            'skip_notifications': don't send notification emails (optional),
            'fee': transaction fee (optional),
            'idem': idempotency token (optional),
        }

        A ``TwoFactorRequiredError`` means the call has to be repeated with
        ``two_factor_token``; the token is only used for that one request.
        """
        return await initiate_transaction(
            self.client,
            self.id,
            _with_type(args, TransactionType.SEND),
            two_factor_token=two_factor_token,
        )

    async def request_money(self, args: TxnArgs) -> Transaction:
        return await initiate_transaction(self.client, self.id, _with_type(args, TransactionType.REQUEST))

    # Buys

    async def get_buys(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(self.client, self.id, "buys", ResourceKind.BUY, fetch_all=fetch_all, **params)

    async def get_buy(self, buy_id: str) -> Buy:
        return await fetch_one(self.client, self.id, "buys", ResourceKind.BUY, buy_id)

    async def buy(self, args: Mapping[str, Any]) -> Buy:
        """Place a buy order.

        args = {
            'amount': amount, or 'total': total,
            'currency': currency,
            'payment_method': payment method id,
            'agree_btc_amount_varies': bool,
            'commit': bool (False leaves the order for ``Buy.commit()``),
            'quote': bool,
        }
        """
        return await create_one(self.client, self.id, "buys", ResourceKind.BUY, args)

    # Sells

    async def get_sells(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(self.client, self.id, "sells", ResourceKind.SELL, fetch_all=fetch_all, **params)

    async def get_sell(self, sell_id: str) -> Sell:
        return await fetch_one(self.client, self.id, "sells", ResourceKind.SELL, sell_id)

    async def sell(self, args: Mapping[str, Any]) -> Sell:
        return await create_one(self.client, self.id, "sells", ResourceKind.SELL, args)

    # Deposits

    async def get_deposits(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(
            self.client, self.id, "deposits", ResourceKind.DEPOSIT, fetch_all=fetch_all, **params
        )

    async def get_deposit(self, deposit_id: str) -> Deposit:
        return await fetch_one(self.client, self.id, "deposits", ResourceKind.DEPOSIT, deposit_id)

    async def deposit(self, args: Mapping[str, Any]) -> Deposit:
        """
        args = {
            'amount': amount,
            'currency': currency,
            'payment_method': payment method id,
            'commit': bool,
        }
        """
        return await create_one(self.client, self.id, "deposits", ResourceKind.DEPOSIT, args)

    # Withdrawals

    async def get_withdrawals(self, *, fetch_all: bool = False, **params: Any) -> Page:
        return await fetch_collection(
            self.client, self.id, "withdrawals", ResourceKind.WITHDRAWAL, fetch_all=fetch_all, **params
        )

    async def get_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        return await fetch_one(self.client, self.id, "withdrawals", ResourceKind.WITHDRAWAL, withdrawal_id)

    async def withdraw(self, args: Mapping[str, Any]) -> Withdrawal:
        return await create_one(self.client, self.id, "withdrawals", ResourceKind.WITHDRAWAL, args)
