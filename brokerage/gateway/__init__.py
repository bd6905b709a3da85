"""Remote boundary: gateway interfaces and in-memory reference gateways."""

from brokerage.gateway.base import ClientGateway, EntityGateway, Page, TransactionGateway
from brokerage.gateway.memory import (
    InMemoryClientGateway,
    InMemoryGateway,
    InMemoryPropertyGateway,
    InMemoryTransactionGateway,
)

__all__ = [
    "ClientGateway",
    "EntityGateway",
    "InMemoryClientGateway",
    "InMemoryGateway",
    "InMemoryPropertyGateway",
    "InMemoryTransactionGateway",
    "Page",
    "TransactionGateway",
]
