"""Static mapping from resource kinds to the models that materialise them."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional, Type

from .data_models import Address, Buy, Deposit, Resource, ResourceKind, Sell, Transaction, Withdrawal

if TYPE_CHECKING:  # pragma: no cover
    from .client import Client


RESOURCE_MODELS: Dict[ResourceKind, Type[Resource]] = {
    ResourceKind.ADDRESS: Address,
    ResourceKind.TRANSACTION: Transaction,
    ResourceKind.BUY: Buy,
    ResourceKind.SELL: Sell,
    ResourceKind.DEPOSIT: Deposit,
    ResourceKind.WITHDRAWAL: Withdrawal,
}


def model_for(kind: ResourceKind) -> Type[Resource]:
    return RESOURCE_MODELS[ResourceKind(kind)]


def build_resource(
    kind: ResourceKind,
    client: "Client",
    data: Any,
    account_id: Optional[str] = None,
) -> Resource:
    """Turn one raw server record into the typed resource for ``kind``."""
    return model_for(kind).build(client, data, account_id=account_id)
