"""Ledger blueprint - khata balances and payments received."""
from flask import Blueprint, jsonify, current_app, Response

from khatapos.exceptions import NotFoundError, ValidationError
from khatapos.services.terminal_registry import get_registry
from khatapos.blueprints.pos import _terminal_id, _payload
from khatapos.utils.formatters import money_in

ledger_bp = Blueprint('ledger', __name__, url_prefix='/ledger')


@ledger_bp.route('/customers/<customer_id>', methods=['GET'])
def customer_balance(customer_id: str) -> Response:
    checkout = get_registry().get(_terminal_id())
    for customer in checkout.customers:
        if customer.id == customer_id:
            data = customer.to_dict()
            data['outstanding_display'] = money_in(customer.outstanding_credit)
            return jsonify(data)
    raise NotFoundError(f'Customer {customer_id} not found.')


@ledger_bp.route('/customers/<customer_id>/payments', methods=['POST'])
def record_payment(customer_id: str) -> Response:
    """Record a khata payment received; balance is clamped at zero."""
    checkout = get_registry().get(_terminal_id())
    amount = _payload().get('amount')
    if amount in (None, ''):
        raise ValidationError('Missing amount')
    try:
        customer = checkout.record_payment(customer_id, amount)
    except ValueError as e:
        raise ValidationError(str(e))

    current_app.logger.info(
        f"[ledger] payment recorded customer={customer_id} amount={amount} "
        f"outstanding={customer.outstanding_credit}"
    )
    return jsonify({
        'status': 'ok',
        'message': f'Payment recorded. Outstanding khata: {money_in(customer.outstanding_credit)}',
        'customer': customer.to_dict(),
    })
