"""Khata ledger - entries produced by the terminal, stored by the backend."""
import logging
from decimal import Decimal
from typing import List, Optional, Tuple

import requests

from khatapos.models import Customer, KhataEntry, KhataEntryType, PaymentMethod, SettlementResult
from khatapos.exceptions import PosError, ValidationError
from khatapos.services.pos_api_client import PosApiClient
from khatapos.utils.number_format import to_money
from khatapos.utils.formatters import money_in

logger = logging.getLogger(__name__)


def entries_for_sale(settlement: SettlementResult, customer: Customer, sale_id: Optional[str]) -> List[KhataEntry]:
    """A committed sale only touches the khata for its credited part."""
    if customer.is_walk_in or settlement.amount_credited <= 0:
        return []
    if settlement.method == PaymentMethod.CREDIT:
        details = f'Full sale to khata ({money_in(settlement.amount_credited)})'
    else:
        details = f'Remaining after paying {money_in(settlement.amount_paid)}'
    return [KhataEntry(
        customer_id=customer.id,
        amount=settlement.amount_credited,
        entry_type=KhataEntryType.CREDIT_SALE,
        reference_id=sale_id,
        details=details,
    )]


def post_entries(client: PosApiClient, entries: List[KhataEntry]) -> List[str]:
    """
    Send entries to the ledger history API.

    The sale is already committed at this point, so failures are reported
    back to the caller (and logged) instead of undoing anything.
    """
    failures = []
    for entry in entries:
        try:
            client.add_khata_entry(entry.customer_id, entry.to_payload())
        except requests.RequestException as e:
            logger.error(f"[KHATA] Could not record {entry.entry_type.value} for {entry.customer_id}: {e}")
            failures.append(f'Khata history not updated for customer {entry.customer_id}.')
    return failures


def record_payment(client: PosApiClient, customer: Customer, amount) -> Tuple[KhataEntry, Decimal]:
    """
    Record a khata payment received from a customer.

    The outstanding balance never drops below zero.

    Returns:
        (entry, new_outstanding)

    Raises:
        ValidationError: Walk-in customer or non-positive amount
        PosError: backend failure
    """
    if customer.is_walk_in:
        raise ValidationError('Walk-in customers have no khata to pay against.')
    amount = to_money(amount)
    if amount <= 0:
        raise ValidationError('Payment amount must be greater than zero.')

    entry = KhataEntry(
        customer_id=customer.id,
        amount=amount,
        entry_type=KhataEntryType.PAYMENT_RECEIVED,
        details=f'Payment received ({money_in(amount)})',
    )
    try:
        response = client.update_customer_credit(customer.id, -float(amount))
        client.add_khata_entry(customer.id, entry.to_payload())
    except requests.RequestException as e:
        raise PosError(f'Could not record payment: {str(e)}', status_code=502)

    updated = (response or {}).get('customer') or {}
    if 'outstandingCredit' in updated:
        new_outstanding = max(to_money(updated['outstandingCredit']), Decimal('0.00'))
    else:
        new_outstanding = max(customer.outstanding_credit - amount, Decimal('0.00'))

    logger.info(f"[KHATA] Payment {amount} recorded for {customer.id}; outstanding now {new_outstanding}")
    return entry, new_outstanding
