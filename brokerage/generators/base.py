"""Base generator class for sample payload generators."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Any, Iterator

from faker import Faker


class BaseGenerator(ABC):
    """Base class for generators of creation payloads.

    Payloads are plain dictionaries in the shape the stores' ``create``
    accepts, so generated data goes through the same validation as any
    other input.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)
            random.seed(seed)

    @abstractmethod
    def generate(self, **overrides: Any) -> dict[str, Any]:
        """Generate one payload; ``overrides`` replace generated top-level keys."""

    def generate_batch(self, count: int, **overrides: Any) -> Iterator[dict[str, Any]]:
        """Generate ``count`` payloads.

        Yields
        ------
        dict[str, Any]
            Generated payloads.
        """
        for _ in range(count):
            yield self.generate(**overrides)

    def _address(self) -> dict[str, str]:
        return {
            "street": self.fake.street_address(),
            "city": self.fake.city(),
            "state": self.fake.state_abbr(),
            "zip_code": self.fake.zipcode(),
            "country": "US",
        }
