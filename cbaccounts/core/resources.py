"""Generic resource access shared by Account and Client.

Every function here performs plain request/response calls through the client's
transport and materialises the returned records. Nothing is retried and no
partially collected result is ever returned: an exception anywhere aborts the
whole call.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Type, Union

from .data_models import Page, Resource, ResourceKind, Transaction, TransactionRequest, TransactionType
from .errors import MalformedResponseError
from .factory import build_resource, model_for

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client

logger = logging.getLogger(__name__)

TWO_FACTOR_HEADER = "CB-2FA-Token"


def collection_path(account_id: str, collection: str) -> str:
    if not account_id:
        raise ValueError("account_id is required.")
    return f"accounts/{account_id}/{collection}"


def _materialize_page(
    model: Type[Resource],
    client: "Client",
    data: Any,
    account_id: Optional[str],
) -> List[Resource]:
    if not isinstance(data, list):
        raise MalformedResponseError(
            f"Expected a list of {model.__name__} records, got {type(data).__name__}"
        )
    return [model.build(client, raw, account_id=account_id) for raw in data]


async def walk_pages(
    client: "Client",
    path: str,
    model: Type[Resource],
    *,
    account_id: Optional[str] = None,
    params: Optional[Mapping[str, Any]] = None,
    fetch_all: bool = False,
    next_uri: Optional[str] = None,
) -> Page:
    """GET a collection; with ``fetch_all`` follow ``next_uri`` until it runs out."""
    if next_uri:
        response = await client.transport.request("GET", next_uri)
    else:
        response = await client.transport.request("GET", path, params=params)

    items = _materialize_page(model, client, response.data, account_id)
    pagination = response.pagination
    page_num = 1

    while fetch_all and pagination is not None and pagination.next_uri:
        page_num += 1
        logger.info("Fetching %s page %d (next=%s)", path, page_num, pagination.next_uri)
        response = await client.transport.request("GET", pagination.next_uri)
        items.extend(_materialize_page(model, client, response.data, account_id))
        pagination = response.pagination

    if fetch_all:
        logger.info("Fetched %d %s records from %s in %d page(s)", len(items), model.__name__, path, page_num)
    return Page(items=tuple(items), pagination=pagination)


async def fetch_collection(
    client: "Client",
    account_id: str,
    collection: str,
    kind: ResourceKind,
    *,
    fetch_all: bool = False,
    limit: Optional[int] = None,
    starting_after: Optional[str] = None,
    ending_before: Optional[str] = None,
    order: Optional[str] = None,
    next_uri: Optional[str] = None,
    **params: Any,
) -> Page:
    query: Dict[str, Any] = {
        "limit": limit,
        "starting_after": starting_after,
        "ending_before": ending_before,
        "order": order,
        **params,
    }
    return await walk_pages(
        client,
        collection_path(account_id, collection),
        model_for(kind),
        account_id=account_id,
        params=query,
        fetch_all=fetch_all,
        next_uri=next_uri,
    )


async def fetch_one(
    client: "Client",
    account_id: str,
    collection: str,
    kind: ResourceKind,
    resource_id: str,
) -> Resource:
    if not resource_id:
        raise ValueError(f"An id is required to fetch from {collection}.")
    response = await client.transport.request("GET", f"{collection_path(account_id, collection)}/{resource_id}")
    return build_resource(kind, client, response.data, account_id=account_id)


async def create_one(
    client: "Client",
    account_id: str,
    collection: str,
    kind: ResourceKind,
    params: Optional[Mapping[str, Any]] = None,
) -> Resource:
    response = await client.transport.request(
        "POST",
        collection_path(account_id, collection),
        body=dict(params) if params is not None else None,
    )
    return build_resource(kind, client, response.data, account_id=account_id)


def _transaction_payload(args: Union[Mapping[str, Any], TransactionRequest]) -> Dict[str, Any]:
    if isinstance(args, TransactionRequest):
        payload = args.to_payload()
    else:
        payload = dict(args)

    raw_type = payload.get("type")
    try:
        payload["type"] = TransactionType(raw_type).value
    except ValueError:
        allowed = ", ".join(item.value for item in TransactionType)
        raise ValueError(f"Transaction type must be one of {allowed}; got {raw_type!r}") from None
    return payload


async def initiate_transaction(
    client: "Client",
    account_id: str,
    args: Union[Mapping[str, Any], TransactionRequest],
    two_factor_token: Optional[str] = None,
) -> Transaction:
    """POST a transfer/send/request; the 2FA token rides on this one request only."""
    payload = _transaction_payload(args)
    headers = {TWO_FACTOR_HEADER: two_factor_token} if two_factor_token else None

    logger.info(
        "Initiating %s of %s %s from account %s (idem=%s, 2fa=%s)",
        payload["type"],
        payload.get("amount"),
        payload.get("currency"),
        account_id,
        payload.get("idem"),
        "yes" if headers else "no",
    )
    response = await client.transport.request(
        "POST",
        collection_path(account_id, "transactions"),
        body=payload,
        headers=headers,
    )
    return build_resource(ResourceKind.TRANSACTION, client, response.data, account_id=account_id)
