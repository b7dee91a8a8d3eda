"""Catalog and customer fetching (read-only boundary to the backend)."""
import logging
from decimal import Decimal
from typing import List, Optional

import requests

from khatapos.models import Customer, WALK_IN_CUSTOMER, DEFAULT_CREDIT_LIMIT, DEFAULT_REORDER_LEVEL
from khatapos.exceptions import PosError
from khatapos.services.pos_api_client import PosApiClient
from khatapos.services.stock_snapshot_service import StockSnapshot

logger = logging.getLogger(__name__)


def fetch_snapshot(client: PosApiClient, default_reorder_level: int = DEFAULT_REORDER_LEVEL) -> StockSnapshot:
    """Fetch the full catalog and build a fresh snapshot."""
    try:
        payload = client.get_inventory()
    except requests.RequestException as e:
        raise PosError(f'Could not load inventory: {str(e)}', status_code=502)

    snapshot = StockSnapshot.from_payload(payload, default_reorder_level=default_reorder_level)
    logger.info(f"[CATALOG] Snapshot loaded: {len(snapshot)} items, {len(snapshot.low_stock())} low on stock")
    return snapshot


def with_walk_in(customers: List[Customer]) -> List[Customer]:
    """Customer picker list: Walk-in first, never duplicated."""
    return [WALK_IN_CUSTOMER] + [c for c in customers if not c.is_walk_in]


def fetch_customers(client: PosApiClient, default_credit_limit: Decimal = DEFAULT_CREDIT_LIMIT) -> List[Customer]:
    """Fetch customers with their khata balances; Walk-in is prepended."""
    try:
        payload = client.get_customers()
    except requests.RequestException as e:
        raise PosError(f'Could not load customers: {str(e)}', status_code=502)

    customers = []
    for row in payload:
        try:
            customers.append(Customer.from_dict(row, default_credit_limit=default_credit_limit))
        except ValueError as e:
            logger.warning(f"[CATALOG] Skipping malformed customer row: {e}")
    logger.info(f"[CATALOG] Customers loaded: {len(customers)}")
    return with_walk_in(customers)


def find_customer(customers: List[Customer], customer_id: Optional[str]) -> Customer:
    """Look up a customer by id; anything unknown falls back to Walk-in."""
    if not customer_id:
        return WALK_IN_CUSTOMER
    for customer in customers:
        if customer.id == str(customer_id):
            return customer
    return WALK_IN_CUSTOMER
