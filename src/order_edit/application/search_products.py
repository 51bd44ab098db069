"""Application service: Search Products use case (query).

Feeds the add-item flow.  Product existence is not checked again when the
item is staged; the backend is the authority on that.
"""

from __future__ import annotations

from order_edit.application.dto import ProductDTO, ProductPageDTO
from order_edit.domain.model.product import ProductRecord
from order_edit.domain.repository.product_catalog import PRODUCTS_PER_PAGE, ProductCatalog


class SearchProductsHandler:

    def __init__(self, catalog: ProductCatalog) -> None:
        self._catalog = catalog

    def handle(
        self,
        term: str | None = None,
        product_type: str | None = None,
        page: int = 1,
    ) -> ProductPageDTO:
        result = self._catalog.search(
            term=term.strip() if term else None,
            product_type=product_type or None,
            page=max(page, 1),
            per_page=PRODUCTS_PER_PAGE,
        )
        return ProductPageDTO(
            items=[self._to_dto(p) for p in result.items],
            page=result.page,
            last_page=result.last_page,
            total=result.total,
        )

    @staticmethod
    def _to_dto(product: ProductRecord) -> ProductDTO:
        return ProductDTO(
            id=product.id,
            name=product.name,
            product_type=product.product_type,
            unit_of_measure=product.unit_of_measure,
            price=f"${product.price:.2f}" if product.price is not None else "",
        )
