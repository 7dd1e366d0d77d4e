# Overview: Flask CLI command groups for bootstrap, ledger maintenance, and inspection.

# backend/pharmacy_inventory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="pharmacy_inventory").
# - Use: python -m flask <group> <command> [options]
#
# Store bootstrap/reset:
# - python -m flask store init
#   Create tables and seed both collections if they are absent (idempotent).
# - python -m flask store reset --yes
#   DEV/TEST only: delete both collections; the next read re-seeds them.
#
# Ledger maintenance:
# - python -m flask ledger replay 3 [--baseline 100]
#   Fold product 3's transactions and compare with the catalog stock.
# - python -m flask ledger reconcile [--product-id 3] [--dry-run]
#   Detect (and unless --dry-run, repair) drift between catalog and ledger.
#
# Inspection:
# - python -m flask products low-stock
#   List products at or below their reorder level.

import click
from flask.cli import with_appcontext

from .extensions import db, get_inventory
from .services import monitor_service
from .validation import NotFoundError, ValidationError


@click.group('store')
def store_group():
    """Key-value store bootstrap and reset commands."""


@store_group.command('init')
@with_appcontext
def init_store():
    """Create the kv_documents table and seed both collections."""
    db.create_all()
    inventory = get_inventory()
    for collection in inventory.collections():
        records = collection.load()
        click.echo(f"PASS {collection.key}: {len(records)} {collection.root}")


@store_group.command('reset')
@click.option('--yes', is_flag=True, help='Confirm deletion of all inventory data')
@with_appcontext
def reset_store(yes):
    """Delete both collections. The next read bootstraps from the seed data."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    for collection in get_inventory().collections():
        collection.clear()
        click.echo(f"PASS Cleared {collection.key}")


@click.group('ledger')
def ledger_group():
    """Ledger replay and reconciliation commands."""


@ledger_group.command('replay')
@click.argument('product_id', type=int)
@click.option('--baseline', type=int, default=None, help='Starting stock (default: stock before first transaction)')
@with_appcontext
def replay_product(product_id, baseline):
    """Replay one product's transactions and compare with the catalog."""
    try:
        summary = get_inventory().ledger.replay_summary(product_id, baseline=baseline)
    except NotFoundError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    catalog = summary["catalog_stock"] if summary["catalog_stock"] is not None else "deleted"
    click.echo(
        f"Product {product_id}: baseline={summary['baseline']} "
        f"transactions={summary['transaction_count']} "
        f"replayed={summary['replayed_stock']} catalog={catalog}"
    )


@ledger_group.command('reconcile')
@click.option('--product-id', type=int, default=None, help='Only this product (default: all)')
@click.option('--dry-run', is_flag=True, help='Report drift without repairing it')
@with_appcontext
def reconcile_products(product_id, dry_run):
    """Detect and repair drift between catalog stock and the ledger."""
    inventory = get_inventory()
    if product_id is not None:
        product_ids = [product_id]
    else:
        product_ids = [p.id for p in inventory.catalog.list()]

    drifted = 0
    for pid in product_ids:
        try:
            if dry_run:
                drift = inventory.ledger.check_drift(pid)
            else:
                drift = inventory.ledger.reconcile(pid)
        except (NotFoundError, ValidationError) as e:
            click.echo(f"FAIL Product {pid}: {e}")
            continue

        if drift.drifted:
            drifted += 1
            if not dry_run:
                action = "repaired"
            elif drift.repairable:
                action = "would repair"
            else:
                action = "not repairable"
            click.echo(
                f"WARN  Product {pid}: catalog={drift.catalog_stock} ledger={drift.ledger_stock} ({action})"
            )

    click.echo(f"DONE Checked {len(product_ids)} products, {drifted} drifted")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('low-stock')
@with_appcontext
def list_low_stock():
    """List products at or below their reorder level."""
    products = monitor_service.low_stock(get_inventory().catalog.list())
    if not products:
        click.echo("No low stock products.")
        return
    for p in products:
        click.echo(f"{p.id:>5}  {p.name:<40} stock={p.stock:<6} reorder={p.reorder_level}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
    app.cli.add_command(ledger_group)
    app.cli.add_command(products_group)
