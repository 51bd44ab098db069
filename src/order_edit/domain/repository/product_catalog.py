"""Abstract product catalog used by the add-item flow."""

from __future__ import annotations

from abc import ABC, abstractmethod

from order_edit.domain.model.product import ProductPage, ProductRecord

PRODUCTS_PER_PAGE = 8


class ProductCatalog(ABC):

    @abstractmethod
    def get_by_id(self, product_id: int) -> ProductRecord | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def search(
        self,
        term: str | None = None,
        product_type: str | None = None,
        page: int = 1,
        per_page: int = PRODUCTS_PER_PAGE,
    ) -> ProductPage:
        """Return one page of products matching *term* and *product_type*."""

    @abstractmethod
    def list_product_types(self) -> list[str]:
        """Return the distinct product types, for filtering."""
