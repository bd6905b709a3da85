"""Collection stores for properties, clients and transactions."""

from brokerage.store.base import CollectionStore
from brokerage.store.clients import ClientStore
from brokerage.store.properties import PropertyStore
from brokerage.store.transactions import TransactionStore

__all__ = ["ClientStore", "CollectionStore", "PropertyStore", "TransactionStore"]
