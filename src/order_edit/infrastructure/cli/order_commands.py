"""CLI commands for viewing and editing orders."""

from __future__ import annotations

import json

import click

from order_edit.application.begin_order_edit import BeginOrderEditHandler
from order_edit.application.dto import DeliverySlotEdit, ItemEditSpec, NewItemSpec
from order_edit.application.save_order_edit import SaveOrderEditHandler
from order_edit.application.show_order import ShowOrderHandler
from order_edit.domain.exceptions import DomainException, SaveFailedError
from order_edit.infrastructure.bootstrap import (
    order_edit_gateway,
    order_repository,
    product_catalog,
)


def _parse_slot(raw: str) -> DeliverySlotEdit:
    """Parse '[#ID/]YYYY-MM-DD[THH:MM]*QTY' into a DeliverySlotEdit."""
    token = raw.strip()
    slot_id = None
    if token.startswith("#"):
        if "/" not in token:
            raise click.BadParameter(f"Invalid slot '{raw}'. Expected '#ID/DATE*QTY'.")
        id_str, token = token[1:].split("/", 1)
        try:
            slot_id = int(id_str)
        except ValueError:
            raise click.BadParameter(f"Invalid delivery id '{id_str}' in slot '{raw}'.")
    if "*" not in token:
        raise click.BadParameter(f"Invalid slot '{raw}'. Expected 'DATE*QTY'.")
    when, qty = token.rsplit("*", 1)
    date_str, _, time_str = when.partition("T")
    return DeliverySlotEdit(
        quantity=qty.strip(),
        date=date_str.strip(),
        time=time_str.strip() or None,
        id=slot_id,
    )


def _parse_item(raw: str) -> tuple[int, str, list[DeliverySlotEdit] | None]:
    """Parse 'ID:QTY@SLOT;SLOT' into (id, quantity, slots).

    Slots are None when the argument has no '@' part.
    """
    head, has_slots, tail = raw.partition("@")
    if ":" not in head:
        raise click.BadParameter(f"Invalid item format '{raw}'. Expected 'ID:Quantity'.")
    id_str, qty = head.split(":", 1)
    try:
        item_id = int(id_str)
    except ValueError:
        raise click.BadParameter(f"Invalid id '{id_str}' in '{raw}'.")
    slots = None
    if has_slots:
        slots = [_parse_slot(s) for s in tail.split(";") if s.strip()]
    return item_id, qty.strip(), slots


def _display_order(dto) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  PO {dto.po_number or '-'}  (status={dto.status or '-'})")
    click.echo(f"Contact:      {dto.contact_person_name or '-'}  {dto.contact_person_number}")
    click.echo(f"Instructions: {dto.site_instructions or '-'}")
    click.echo()
    click.echo(f"  {'Item':<6} {'Product':<24} {'Qty':>8} {'Delivered':>10}")
    click.echo(f"  {'-'*51}")
    for item in dto.items:
        click.echo(
            f"  {item.id:<6} {item.product_name:<24} {item.quantity:>8} {item.delivered_quantity:>10}"
        )
        for d in item.deliveries:
            marker = "locked" if d.locked else ""
            slot_id = f"#{d.id}" if d.id is not None else "new"
            click.echo(
                f"      {slot_id:<7} {d.date:<11} {d.time:<6} {d.quantity:>8}  {d.status:<10} {marker}"
            )


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show an order with its items and delivery slots."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("edit")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to edit.")
@click.option("--contact-name", default=None, help="New contact person name.")
@click.option("--contact-number", default=None, help="New contact person number.")
@click.option("--site-instructions", default=None, help="New site instructions.")
@click.option("--add", "adds", multiple=True, help="New item as 'PRODUCT_ID:QTY@DATE*QTY;...'.")
@click.option("--update", "updates", multiple=True, help="Item change as 'ITEM_ID:QTY[@[#ID/]DATE[THH:MM]*QTY;...]'.")
@click.option("--remove", "removes", multiple=True, type=int, help="Item ID to remove.")
@click.option("--admin", is_flag=True, default=False, help="Edit as admin (sends delivery costs).")
@click.option("--dry-run", is_flag=True, default=False, help="Print the payload instead of saving.")
def order_edit(
    order_id: int,
    contact_name: str | None,
    contact_number: str | None,
    site_instructions: str | None,
    adds: tuple[str, ...],
    updates: tuple[str, ...],
    removes: tuple[int, ...],
    admin: bool,
    dry_run: bool,
) -> None:
    """Stage a batch of edits to an order and save them in one request."""
    parsed_adds = [_parse_item(raw) for raw in adds]
    parsed_updates = [_parse_item(raw) for raw in updates]

    try:
        session = BeginOrderEditHandler(order_repository()).handle(order_id, is_admin=admin)

        for field_name, value in (
            ("contact_person_name", contact_name),
            ("contact_person_number", contact_number),
            ("site_instructions", site_instructions),
        ):
            if value is not None:
                session.stage_field_edit(field_name, value)

        problems: list[str] = []
        for item_id in removes:
            if not session.stage_remove_item(item_id):
                problems.append(f"Item #{item_id} has delivered quantities and cannot be removed")

        for item_id, qty, slots in parsed_updates:
            result = session.stage_item_edit(item_id, ItemEditSpec(quantity=qty, deliveries=slots))
            problems.extend(f"Item #{item_id}: {e}" for e in result.errors)
            for notice in result.notices:
                click.echo(f"Item #{item_id}: {notice}")

        catalog = product_catalog()
        for product_id, qty, slots in parsed_adds:
            product = catalog.get_by_id(product_id)
            spec = NewItemSpec(
                product_id=product_id,
                quantity=qty,
                deliveries=slots or [],
                product_name=product.name if product else "",
            )
            result = session.stage_add_item(spec)
            problems.extend(f"Product #{product_id}: {e}" for e in result.errors)
            for notice in result.notices:
                click.echo(f"Product #{product_id}: {notice}")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if problems:
        for problem in problems:
            click.echo(f"  - {problem}", err=True)
        raise click.ClickException("Nothing saved; fix the problems above.")

    payload = session.build_payload()
    if payload is None:
        click.echo("No changes to save.")
        return

    if dry_run:
        click.echo(json.dumps(payload, indent=2))
        return

    summary = session.summary()
    try:
        SaveOrderEditHandler(order_edit_gateway()).handle(session)
    except SaveFailedError as exc:
        for section, messages in exc.errors.items():
            for message in messages:
                click.echo(f"  - {section}: {message}", err=True)
        raise click.ClickException(f"Order #{order_id} was not saved: {exc}")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} saved.")
    for line in summary:
        click.echo(f"  {line}")
