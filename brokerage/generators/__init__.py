"""Faker-backed generators of sample creation payloads."""

from brokerage.generators.base import BaseGenerator
from brokerage.generators.client import ClientGenerator
from brokerage.generators.property import PropertyGenerator
from brokerage.generators.transaction import TransactionGenerator

__all__ = ["BaseGenerator", "ClientGenerator", "PropertyGenerator", "TransactionGenerator"]
