"""
Flask CLI commands for terminal maintenance.

Commands:
- flask pos-catalog: Print the backend catalog and low-stock items
- flask pos-customers: Print khata customers and their balances
"""

import click
from flask import current_app

from khatapos.exceptions import PosError
from khatapos.services.catalog_service import fetch_snapshot, fetch_customers
from khatapos.services.terminal_registry import get_registry
from khatapos.utils.formatters import money_in, num_in


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('pos-catalog')
    @click.option('--search', '-q', default='', help='Filter by name or barcode')
    @click.option('--low-stock', is_flag=True, help='Only list items at or below their reorder level')
    def pos_catalog(search, low_stock):
        """Fetch a fresh stock snapshot and print it."""
        client = get_registry().new_client()
        try:
            snapshot = fetch_snapshot(client, current_app.config.get('LOW_STOCK_REORDER_LEVEL', 5))
        except PosError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            raise SystemExit(1)

        items = snapshot.low_stock() if low_stock else snapshot.search(search)
        if not items:
            click.echo(click.style('No items to show.', fg='yellow'))
            return

        for item in items:
            colour = 'red' if item.is_low_stock else None
            click.echo(click.style(
                f'{item.name:<32} {money_in(item.price):>14} {num_in(item.total_quantity):>8}', fg=colour
            ))
            for variant in item.variants:
                click.echo(f'   - {variant.label:<27} {money_in(variant.price):>14} {num_in(variant.quantity):>8}')

        low = snapshot.low_stock()
        click.echo(f'\n{len(snapshot)} items, {len(low)} low on stock.')

    @app.cli.command('pos-customers')
    def pos_customers():
        """Print khata customers with outstanding balance and limit."""
        client = get_registry().new_client()
        try:
            customers = fetch_customers(client, current_app.config.get('DEFAULT_CREDIT_LIMIT', '5000'))
        except PosError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            raise SystemExit(1)

        for customer in customers:
            if customer.is_walk_in:
                continue
            over = customer.has_credit_limit and customer.outstanding_credit > customer.credit_limit
            click.echo(click.style(
                f'{customer.name:<32} {money_in(customer.outstanding_credit):>14} / {money_in(customer.credit_limit)}',
                fg='red' if over else None
            ))
