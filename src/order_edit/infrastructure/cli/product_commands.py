"""CLI commands for the product catalog."""

from __future__ import annotations

import click

from order_edit.application.search_products import SearchProductsHandler
from order_edit.infrastructure.bootstrap import product_catalog


@click.command("search")
@click.option("--term", default=None, help="Part of the product name.")
@click.option("--type", "product_type", default=None, help="Exact product type.")
@click.option("--page", default=1, type=int, show_default=True, help="Result page.")
def product_search(term: str | None, product_type: str | None, page: int) -> None:
    """Search the catalog for products to add to an order."""
    handler = SearchProductsHandler(catalog=product_catalog())
    result = handler.handle(term=term, product_type=product_type, page=page)

    if not result.items:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<28} {'Type':<14} {'Unit':<8} {'Price':>10}")
    click.echo("-" * 70)
    for p in result.items:
        click.echo(
            f"{p.id:<6} {p.name:<28} {p.product_type:<14} {p.unit_of_measure:<8} {p.price:>10}"
        )
    click.echo(f"Page {result.page} of {result.last_page} ({result.total} products)")
