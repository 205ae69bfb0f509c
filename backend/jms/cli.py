# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/jms/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to jms (PowerShell: $env:FLASK_APP="jms").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Products:
# - python -m flask products add --name "Ring 22K" --category Gold --type standard --stock 5 --weight 50
#   Create a product with opening stock and weight.
# - python -m flask products list [--all]
#   List active products (use --all to include inactive).
#
# Counters:
# - python -m flask counters show [invoiceNumber]
#   Show the last value handed out per sequence.
#
# Gahan (pawn records):
# - python -m flask gahan create --customer "Suresh Rao" --item "Gold Bangle" --weight 24.5 --amount 50000 --rate 1.5 --due 2027-01-01
#   Open a pawn record; the record number comes from the gahanRecord sequence.
# - python -m flask gahan release 3
#   Mark a record Released (terminal).
# - python -m flask gahan list [--all]
#   Active records with their display status (use --all to include released).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models.inventory import PRODUCT_TYPES
from .services import gahan_service, inventory_service, sequence_service
from .validation import ServiceError


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.confirm("This deletes ALL data. Continue?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('products')
def products_group():
    """Product master data commands."""


@products_group.command('add')
@click.option('--name', required=True, help='Product name')
@click.option('--category', required=True, help='Category (Gold, Silver, Others)')
@click.option('--type', 'product_type', type=click.Choice(PRODUCT_TYPES), default='standard', show_default=True)
@click.option('--stock', type=int, default=0, show_default=True, help='Opening unit count (standard only)')
@click.option('--weight', required=True, help='Opening weight in grams')
@click.option('--purity', default=None, help='Purity in karat')
@click.option('--price-per-gram', default=None, help='Price per gram')
@click.option('--unit-price', default=None, help='Unit price')
@with_appcontext
def add_product(name, category, product_type, stock, weight, purity, price_per_gram, unit_price):
    """Create a product."""
    payload = {
        "name": name,
        "category": category,
        "type": product_type,
        "stock": stock,
        "weight": weight,
        "purity": purity,
        "pricePerGram": price_per_gram,
        "unitPrice": unit_price,
    }
    try:
        product = inventory_service.create_product(payload)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created product {product.id}: {product.name} ({product.type}, stock={product.stock}, weight={product.weight}g)")


@products_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive products')
@with_appcontext
def list_products_cli(include_inactive):
    """List products."""
    products = inventory_service.list_products(include_inactive=include_inactive)
    if not products:
        click.echo("No products found")
        return
    for p in products:
        flag = "" if p.is_active else " [inactive]"
        click.echo(f"{p.id:>5}  {p.name:<30} {p.type:<12} stock={p.stock:<5} weight={p.weight}g{flag}")


@click.group('counters')
def counters_group():
    """Sequence inspection commands."""


@counters_group.command('show')
@click.argument('name', required=False)
@with_appcontext
def show_counters(name):
    """Show current sequence values."""
    if name:
        click.echo(f"{name}: {sequence_service.current_value(name)}")
        return
    counters = sequence_service.list_counters()
    if not counters:
        click.echo("No counters allocated yet")
        return
    for counter in counters:
        click.echo(f"{counter.name}: {counter.value}")


@click.group('gahan')
def gahan_group():
    """Pawn record commands."""


@gahan_group.command('create')
@click.option('--customer', required=True, help='Customer name')
@click.option('--mobile', default=None, help='Customer mobile')
@click.option('--address', default=None, help='Customer address')
@click.option('--item', required=True, help='Pawned item description')
@click.option('--weight', required=True, help='Item weight in grams')
@click.option('--purity', default=None, help='Item purity')
@click.option('--amount', required=True, help='Amount given')
@click.option('--rate', required=True, help='Interest rate (percent per month)')
@click.option('--pawn-date', default=None, help='Pawn date (ISO-8601, default today)')
@click.option('--due', 'due_date', required=True, help='Due date (ISO-8601)')
@click.option('--notes', default=None)
@with_appcontext
def create_gahan(customer, mobile, address, item, weight, purity, amount, rate, pawn_date, due_date, notes):
    """Open a pawn record."""
    payload = {
        "customerName": customer,
        "customerMobile": mobile,
        "customerAddress": address,
        "itemName": item,
        "itemWeight": weight,
        "itemPurity": purity,
        "amountGiven": amount,
        "interestRate": rate,
        "pawnDate": pawn_date,
        "dueDate": due_date,
        "notes": notes,
    }
    try:
        gahan = gahan_service.create_gahan(payload)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Opened gahan record {gahan.record_number} (id={gahan.id}) due {gahan.due_date.date()}")


@gahan_group.command('release')
@click.argument('gahan_id', type=int)
@with_appcontext
def release_gahan(gahan_id):
    """Mark a pawn record Released."""
    try:
        gahan = gahan_service.release_gahan(gahan_id)
    except ServiceError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Released gahan record {gahan.record_number}")


@gahan_group.command('list')
@click.option('--all', 'include_released', is_flag=True, help='Include released records')
@with_appcontext
def list_gahans_cli(include_released):
    """List pawn records with their display status."""
    records = gahan_service.list_gahans(include_released=include_released)
    if not records:
        click.echo("No gahan records found")
        return
    for g in records:
        status = gahan_service.display_status(g)
        flag = " [due soon]" if gahan_service.is_due_soon(g) else ""
        click.echo(
            f"{g.record_number:>5}  {g.customer_name:<25} {g.item_name:<20} "
            f"{g.item_weight}g  due={g.due_date.date()}  {status}{flag}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(counters_group)
    app.cli.add_command(gahan_group)
