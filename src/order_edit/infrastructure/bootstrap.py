"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import os
from pathlib import Path

from order_edit.infrastructure.persistence.json_order_edit_gateway import (
    JsonOrderEditGateway,
)
from order_edit.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from order_edit.infrastructure.persistence.json_product_catalog import (
    JsonProductCatalog,
)

DATA_DIR_ENV = "ORDER_EDIT_DATA_DIR"

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def data_dir() -> Path:
    configured = os.environ.get(DATA_DIR_ENV)
    return Path(configured) if configured else _DEFAULT_DATA_DIR


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(data_dir() / "orders.json")


def order_edit_gateway() -> JsonOrderEditGateway:
    return JsonOrderEditGateway(order_repository())


def product_catalog() -> JsonProductCatalog:
    return JsonProductCatalog(data_dir() / "products.json")
