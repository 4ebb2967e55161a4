"""Account façade bindings, account mutation and resource member actions."""
from __future__ import annotations

import json

import httpx
import pytest
from pydantic import ValidationError as PydanticValidationError

from cbaccounts import Account, Address, Buy, Deposit, Sell, Transaction, Withdrawal
from conftest import envelope


def _record(resource_id: str, **fields) -> httpx.Response:
    return httpx.Response(200, json=envelope({"id": resource_id, **fields}))


@pytest.mark.asyncio
async def test_update_returns_new_account_and_leaves_original(make_client, bind_account, account_data):
    client, handler = make_client(lambda request: _record("A1", **{**account_data, "name": "x"}))
    account = bind_account(client)

    updated = await account.update({"name": "x"})

    assert updated is not account
    assert updated.name == "x"
    assert account.name == "My Wallet"
    assert updated.client is client
    request = handler.requests[0]
    assert request.method == "PUT"
    assert request.url.path == "/v2/accounts/A1"
    assert json.loads(request.content) == {"name": "x"}


@pytest.mark.asyncio
async def test_update_accepts_keyword_fields(make_client, bind_account):
    client, handler = make_client(lambda request: _record("A1", name="Vault"))

    updated = await bind_account(client).update(name="Vault")

    assert updated.name == "Vault"
    assert json.loads(handler.requests[0].content) == {"name": "Vault"}


@pytest.mark.asyncio
async def test_delete_issues_delete(make_client, bind_account):
    client, handler = make_client(lambda request: httpx.Response(204))

    assert await bind_account(client).delete() is None
    assert handler.requests[0].method == "DELETE"
    assert handler.requests[0].url.path == "/v2/accounts/A1"


@pytest.mark.asyncio
async def test_set_primary_posts_empty_body(make_client, bind_account, account_data):
    client, handler = make_client(lambda request: _record("A1", **{**account_data, "primary": True}))

    result = await bind_account(client).set_primary()

    assert isinstance(result, Account)
    assert result.primary is True
    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v2/accounts/A1/primary"
    assert request.content == b""


@pytest.mark.asyncio
async def test_set_primary_without_body_returns_none(make_client, bind_account):
    client, _ = make_client(lambda request: httpx.Response(204))

    assert await bind_account(client).set_primary() is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, collection, model",
    [
        ("get_address", "addresses", Address),
        ("get_transaction", "transactions", Transaction),
        ("get_buy", "buys", Buy),
        ("get_sell", "sells", Sell),
        ("get_deposit", "deposits", Deposit),
        ("get_withdrawal", "withdrawals", Withdrawal),
    ],
)
async def test_single_fetch_bindings(make_client, bind_account, method, collection, model):
    client, handler = make_client(lambda request: _record("R9"))

    resource = await getattr(bind_account(client), method)("R9")

    assert isinstance(resource, model)
    assert resource.id == "R9"
    assert handler.requests[0].url.path == f"/v2/accounts/A1/{collection}/R9"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, collection, model",
    [
        ("get_addresses", "addresses", Address),
        ("get_transactions", "transactions", Transaction),
        ("get_buys", "buys", Buy),
        ("get_sells", "sells", Sell),
        ("get_deposits", "deposits", Deposit),
        ("get_withdrawals", "withdrawals", Withdrawal),
    ],
)
async def test_collection_bindings(make_client, bind_account, method, collection, model):
    client, handler = make_client(lambda request: httpx.Response(200, json=envelope([{"id": "R1"}, {"id": "R2"}])))

    page = await getattr(bind_account(client), method)()

    assert [type(item) for item in page] == [model, model]
    assert handler.requests[0].method == "GET"
    assert handler.requests[0].url.path == f"/v2/accounts/A1/{collection}"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, collection, model",
    [
        ("create_address", "addresses", Address),
        ("buy", "buys", Buy),
        ("sell", "sells", Sell),
        ("deposit", "deposits", Deposit),
        ("withdraw", "withdrawals", Withdrawal),
    ],
)
async def test_create_bindings(make_client, bind_account, method, collection, model):
    client, handler = make_client(lambda request: _record("N1"))
    args = {"amount": "5", "currency": "USD", "payment_method": "pm-1"}

    resource = await getattr(bind_account(client), method)(args)

    assert isinstance(resource, model)
    request = handler.requests[0]
    assert request.method == "POST"
    assert request.url.path == f"/v2/accounts/A1/{collection}"
    assert json.loads(request.content) == args


@pytest.mark.asyncio
async def test_address_transactions(make_client, bind_account):
    client, handler = make_client(lambda request: httpx.Response(200, json=envelope([{"id": "t1"}])))

    page = await bind_account(client).get_address_transactions("ad1", limit=5)

    assert isinstance(page[0], Transaction)
    assert page[0].account_id == "A1"
    assert handler.requests[0].url.path == "/v2/accounts/A1/addresses/ad1/transactions"
    assert handler.requests[0].url.params["limit"] == "5"


@pytest.mark.asyncio
async def test_address_transactions_continue_from_next_uri(make_client, bind_account):
    path = "/v2/accounts/A1/addresses/ad1/transactions"

    def responder(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("starting_after") == "t1":
            return httpx.Response(200, json=envelope([{"id": "t2"}]))
        return httpx.Response(200, json=envelope([{"id": "t1"}], next_uri=f"{path}?limit=1&starting_after=t1"))

    client, handler = make_client(responder)
    account = bind_account(client)

    first = await account.get_address_transactions("ad1", limit=1)
    second = await account.get_address_transactions("ad1", next_uri=first.pagination.next_uri)

    assert [txn.id for txn in second] == ["t2"]
    assert not second.has_next
    assert handler.requests[1].url.path == path
    assert handler.requests[1].url.params["starting_after"] == "t1"


@pytest.mark.asyncio
@pytest.mark.parametrize("model, collection", [(Buy, "buys"), (Sell, "sells"), (Deposit, "deposits"), (Withdrawal, "withdrawals")])
async def test_commit_returns_new_snapshot(make_client, model, collection):
    client, handler = make_client(lambda request: _record("o1", status="completed", committed=True))
    order = model.build(client, {"id": "o1", "status": "created", "committed": False}, account_id="A1")

    committed = await order.commit()

    assert isinstance(committed, model)
    assert committed.committed is True
    assert order.committed is False
    assert handler.requests[0].method == "POST"
    assert handler.requests[0].url.path == f"/v2/accounts/A1/{collection}/o1/commit"


@pytest.mark.asyncio
async def test_money_request_actions(make_client):
    client, handler = make_client(
        lambda request: httpx.Response(204) if request.method == "DELETE" else _record("t1", status="completed")
    )
    request_txn = Transaction.build(client, {"id": "t1", "type": "request", "status": "pending"}, account_id="A1")

    completed = await request_txn.complete()
    resent = await request_txn.resend()
    cancelled = await request_txn.cancel()

    assert completed.status == "completed"
    assert resent.status == "completed"
    assert cancelled is None
    assert request_txn.status == "pending"
    assert [(r.method, r.url.path) for r in handler.requests] == [
        ("POST", "/v2/accounts/A1/transactions/t1/complete"),
        ("POST", "/v2/accounts/A1/transactions/t1/resend"),
        ("DELETE", "/v2/accounts/A1/transactions/t1"),
    ]


def test_resources_are_frozen(make_client, bind_account):
    client, _ = make_client(lambda request: httpx.Response(204))
    account = bind_account(client)

    with pytest.raises(PydanticValidationError):
        account.id = "other"
    with pytest.raises(PydanticValidationError):
        account.name = "renamed"


def test_account_snapshot_fields(make_client, bind_account):
    client, _ = make_client(lambda request: httpx.Response(204))
    account = bind_account(client)

    assert account.balance.amount == "1.50000000"
    assert str(account.balance.decimal) == "1.50000000"
    assert account.account_id == "A1"
    assert account.resource_path == "/v2/accounts/A1"


def test_unbound_resource_cannot_act():
    orphan = Buy.model_validate({"id": "b1"})

    with pytest.raises(ValueError):
        orphan._member_path()


def test_account_member_path_is_its_own_path(make_client, bind_account):
    client, _ = make_client(lambda request: httpx.Response(204))
    account = bind_account(client)

    assert Account.kind is None
    assert account._member_path() == "accounts/A1"


def test_account_build_ignores_foreign_account_id(make_client, account_data):
    client, _ = make_client(lambda request: httpx.Response(204))

    account = Account.build(client, account_data, account_id="B9")

    assert account.account_id == "A1"
    assert account.client is client
    assert account.path == "accounts/A1"


@pytest.mark.asyncio
async def test_set_primary_posts_to_account_not_nested_path(make_client, bind_account):
    client, handler = make_client(lambda request: _record("A1", primary=True))

    result = await bind_account(client).set_primary()

    assert isinstance(result, Account)
    assert result.account_id == "A1"
    assert handler.requests[0].url.path == "/v2/accounts/A1/primary"
