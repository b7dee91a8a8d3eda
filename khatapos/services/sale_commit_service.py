"""
Sale commit - hands an approved settlement to the backend.

The local credit check is only an optimistic pre-check; the backend re-checks
and may answer CREDIT_LIMIT_EXCEEDED on its own (e.g. another till raised the
balance meanwhile). That answer is mapped to the same recoverable
CreditLimitExceeded the local guard produces.
"""
import logging
from decimal import Decimal
from typing import Dict, Any, Optional

import requests

from khatapos.models import Cart, Customer, SettlementResult
from khatapos.exceptions import CreditLimitExceeded, CommitFailure
from khatapos.services.pos_api_client import PosApiClient
from khatapos.utils.number_format import to_money

logger = logging.getLogger(__name__)

CREDIT_LIMIT_EXCEEDED_CODE = 'CREDIT_LIMIT_EXCEEDED'


def build_sale_payload(cart: Cart, settlement: SettlementResult, customer: Customer, force_override: bool = False) -> Dict[str, Any]:
    """Request body for POST /sales."""
    return {
        'totalAmount': float(settlement.total),
        'paymentMethod': settlement.method.value,
        'customerId': None if customer.is_walk_in else customer.id,
        'items': [line.to_sale_item() for line in cart],
        'amountPaid': float(settlement.amount_paid),
        'amountCredited': float(settlement.amount_credited),
        'forceOverride': bool(force_override),
    }


def _error_body(response) -> Dict[str, Any]:
    if response is None:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {'message': response.text}
    if not isinstance(body, dict):
        return {'message': str(body)}
    # Some routes nest the payload under "error"
    if isinstance(body.get('error'), dict):
        return body['error']
    return body


def _to_decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return to_money(value)
    except ValueError:
        return None


def translate_commit_error(error: requests.RequestException, settlement: SettlementResult) -> Exception:
    """Map a transport/HTTP failure to CreditLimitExceeded or CommitFailure."""
    response = getattr(error, 'response', None)
    if response is None:
        return CommitFailure(f'Failed to record sale: {str(error)}')

    body = _error_body(response)
    if body.get('code') == CREDIT_LIMIT_EXCEEDED_CODE:
        return CreditLimitExceeded(
            limit=_to_decimal(body.get('limit')),
            projected_balance=_to_decimal(body.get('projectedBalance')) or settlement.resulting_outstanding,
            message=body.get('message'),
            source='server',
        )

    message = body.get('message') or body.get('error') or 'Failed to record sale.'
    return CommitFailure(str(message), upstream_status=response.status_code)


def extract_sale_id(response: Dict[str, Any]) -> Optional[str]:
    sale = response.get('newSale') or response.get('sale') or response
    sale_id = sale.get('_id', sale.get('id')) if isinstance(sale, dict) else None
    return str(sale_id) if sale_id is not None else None


def commit_sale(
    client: PosApiClient,
    cart: Cart,
    settlement: SettlementResult,
    customer: Customer,
    force_override: bool = False,
) -> Dict[str, Any]:
    """
    Submit the sale. Runs to completion; there is no cancellation.

    Returns:
        Backend response body

    Raises:
        CreditLimitExceeded: backend re-check blocked the sale (recoverable)
        CommitFailure: any other backend or transport error
    """
    payload = build_sale_payload(cart, settlement, customer, force_override)
    try:
        response = client.create_sale(payload)
    except requests.RequestException as e:
        error = translate_commit_error(e, settlement)
        logger.warning(f"[COMMIT] Sale rejected: {error}")
        raise error

    logger.info(f"[COMMIT] Sale recorded: id={extract_sale_id(response)} total={settlement.total}")
    return response
