"""Catalog records as seen by the edit engine.

The catalog is an external collaborator.  Only the fields needed to pick a
product for a new line are modelled; everything else the catalog returns is
ignored at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ProductRecord:
    id: int
    name: str
    product_type: str = ""
    unit_of_measure: str = ""
    photo: str | None = None
    price: Decimal | None = None


@dataclass(frozen=True)
class ProductPage:
    """One page of catalog search results."""

    items: list[ProductRecord]
    page: int
    per_page: int
    total: int

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, -(-self.total // self.per_page))

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page
