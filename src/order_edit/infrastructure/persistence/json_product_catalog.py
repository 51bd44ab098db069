"""JSON-file-backed implementation of ProductCatalog."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from order_edit.domain.model.product import ProductPage, ProductRecord
from order_edit.domain.repository.product_catalog import PRODUCTS_PER_PAGE, ProductCatalog


class JsonProductCatalog(ProductCatalog):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    # --- ProductCatalog interface ---------------------------------------------

    def get_by_id(self, product_id: int) -> ProductRecord | None:
        for product in self._load():
            if product.id == product_id:
                return product
        return None

    def search(
        self,
        term: str | None = None,
        product_type: str | None = None,
        page: int = 1,
        per_page: int = PRODUCTS_PER_PAGE,
    ) -> ProductPage:
        matches = self._load()
        if term:
            needle = term.lower()
            matches = [p for p in matches if needle in p.name.lower()]
        if product_type:
            matches = [p for p in matches if p.product_type == product_type]

        page = max(page, 1)
        start = (page - 1) * per_page
        return ProductPage(
            items=matches[start:start + per_page],
            page=page,
            per_page=per_page,
            total=len(matches),
        )

    def list_product_types(self) -> list[str]:
        return sorted({p.product_type for p in self._load() if p.product_type})

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> list[ProductRecord]:
        raw = json.loads(self._file_path.read_text(encoding="utf-8"))
        return [
            ProductRecord(
                id=item["id"],
                name=item.get("product_name") or item.get("name", ""),
                product_type=item.get("product_type", ""),
                unit_of_measure=item.get("unit_of_measure", ""),
                photo=item.get("photo"),
                price=Decimal(str(item["price"])) if item.get("price") is not None else None,
            )
            for item in raw
        ]

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
