import logging

import click

from order_edit.infrastructure.cli.order_commands import order_edit, order_show
from order_edit.infrastructure.cli.product_commands import product_search


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log staging detail.")
def cli(verbose: bool) -> None:
    """Order Edit — stage and save batch edits to placed orders"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.group()
def order() -> None:
    """View and edit orders."""


@cli.group()
def product() -> None:
    """Browse the product catalog."""


# Register subcommands
order.add_command(order_edit)
order.add_command(order_show)
product.add_command(product_search)
