"""POS blueprint - cart, payment and confirmation endpoints for the till UI (JSON)."""
from flask import Blueprint, request, jsonify, current_app, session, Response
from typing import Any, Dict

from khatapos.models import InventoryItem
from khatapos.exceptions import BusinessLogicError, ValidationError
from khatapos.services.cart_service import Added, NeedsVariantChoice
from khatapos.services.checkout_service import CheckoutSession
from khatapos.services.terminal_registry import get_registry
from khatapos.utils.number_format import parse_quantity

pos_bp = Blueprint('pos', __name__, url_prefix='/pos')


def _payload() -> Dict[str, Any]:
    """JSON body or form fields, whichever the till sent."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def _terminal_id() -> str:
    header = current_app.config.get('TERMINAL_HEADER', 'X-Terminal-Id')
    terminal_id = request.headers.get(header) or session.get('terminal_id')
    if not terminal_id:
        terminal_id = current_app.config.get('DEFAULT_TERMINAL_ID', 'till-1')
    session['terminal_id'] = terminal_id
    return terminal_id


def _checkout() -> CheckoutSession:
    return get_registry().get(_terminal_id())


def _variant_id(payload: Dict[str, Any]):
    value = payload.get('variant_id')
    return str(value) if value not in (None, '') else None


def _item_id(payload: Dict[str, Any]) -> str:
    item_id = payload.get('item_id')
    if not item_id:
        raise BusinessLogicError('Missing item_id')
    return str(item_id)


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def serialize_item(item: InventoryItem) -> Dict[str, Any]:
    return {
        'id': item.id,
        'name': item.name,
        'price': str(item.price),
        'quantity': item.total_quantity,
        'barcode': item.barcode,
        'low_stock': item.is_low_stock,
        'variants': [
            {
                'id': v.id,
                'label': v.label,
                'price': str(v.price),
                'quantity': v.quantity,
                'sku': v.sku,
                'low_stock': v.quantity <= item.variant_reorder_level(v),
            }
            for v in item.variants
        ],
    }


def _add_response(checkout: CheckoutSession, result) -> Response:
    if isinstance(result, NeedsVariantChoice):
        return jsonify({
            'status': 'variant_required',
            'item': serialize_item(result.item),
            'cart': checkout.cart.to_dict(),
        })
    return jsonify({
        'status': 'ok',
        'message': f'Added {result.line.name}',
        'line_quantity': result.line.quantity,
        'cart': checkout.cart.to_dict(),
    })


@pos_bp.route('/state', methods=['GET'])
def state() -> Response:
    """Full terminal state: cart, customer, payment inputs and preview."""
    return jsonify(_checkout().to_dict())


# ============================================================================
# Catalog
# ============================================================================

@pos_bp.route('/catalog', methods=['GET'])
def catalog() -> Response:
    """In-stock items filtered by name/barcode, sorted by name."""
    checkout = _checkout()
    search_query = request.args.get('q', '')[:100]
    items = checkout.search(search_query)
    return jsonify({
        'items': [serialize_item(item) for item in items],
        'fetched_at': checkout.snapshot.fetched_at.isoformat(),
    })


@pos_bp.route('/catalog/low-stock', methods=['GET'])
def low_stock() -> Response:
    checkout = _checkout()
    return jsonify({'items': [serialize_item(item) for item in checkout.snapshot.low_stock()]})


@pos_bp.route('/catalog/reload', methods=['POST'])
def reload_catalog() -> Response:
    checkout = _checkout()
    snapshot = checkout.reload()
    current_app.logger.info(f"[pos] terminal={checkout.terminal_id} catalog reloaded ({len(snapshot)} items)")
    return jsonify({'status': 'ok', 'items': len(snapshot), 'customers': len(checkout.customers)})


@pos_bp.route('/customers', methods=['GET'])
def customers() -> Response:
    checkout = _checkout()
    return jsonify({'customers': [c.to_dict() for c in checkout.customers]})


@pos_bp.route('/customer', methods=['POST'])
def select_customer() -> Response:
    checkout = _checkout()
    customer = checkout.select_customer(_payload().get('customer_id'))
    return jsonify({
        'customer': customer.to_dict(),
        'payment_mode': checkout.payment_mode.value,
        'settlement': checkout.preview().to_dict(),
    })


# ============================================================================
# Cart
# ============================================================================

@pos_bp.route('/cart', methods=['GET'])
def cart() -> Response:
    return jsonify(_checkout().cart.to_dict())


@pos_bp.route('/cart/add', methods=['POST'])
def cart_add() -> Response:
    """Add one unit; items with variants answer variant_required instead."""
    checkout = _checkout()
    payload = _payload()
    result = checkout.add_item(_item_id(payload), _variant_id(payload))
    if isinstance(result, Added):
        current_app.logger.info(
            f"[pos] terminal={checkout.terminal_id} cart_add item={result.line.item_id} "
            f"variant={result.line.variant_id} qty={result.line.quantity}"
        )
    return _add_response(checkout, result)


@pos_bp.route('/cart/increment', methods=['POST'])
def cart_increment() -> Response:
    checkout = _checkout()
    payload = _payload()
    try:
        delta = parse_quantity(payload.get('delta', 1))
    except ValueError as e:
        raise ValidationError(str(e))
    updated = checkout.increment(_item_id(payload), _variant_id(payload), delta)
    return jsonify({'status': 'ok', 'cart': updated.to_dict()})


@pos_bp.route('/cart/remove', methods=['POST'])
def cart_remove() -> Response:
    checkout = _checkout()
    payload = _payload()
    updated = checkout.remove(_item_id(payload), _variant_id(payload))
    return jsonify({'status': 'ok', 'message': 'Item removed from cart.', 'cart': updated.to_dict()})


@pos_bp.route('/cart/clear', methods=['POST'])
def cart_clear() -> Response:
    checkout = _checkout()
    updated = checkout.clear_cart()
    current_app.logger.info(f"[pos] terminal={checkout.terminal_id} cart cleared")
    return jsonify({'status': 'ok', 'cart': updated.to_dict()})


@pos_bp.route('/scan', methods=['POST'])
def scan() -> Response:
    """Consume a code decoded by the barcode scanner component."""
    checkout = _checkout()
    code = str(_payload().get('code', '')).strip()
    if not code:
        raise BusinessLogicError('Missing code')
    _, result = checkout.scan(code)
    return _add_response(checkout, result)


# ============================================================================
# Payment & confirmation
# ============================================================================

@pos_bp.route('/payment/open', methods=['POST'])
def payment_open() -> Response:
    checkout = _checkout()
    settlement = checkout.open_payment()
    return jsonify({'payment_mode': checkout.payment_mode.value, 'settlement': settlement.to_dict()})


@pos_bp.route('/payment', methods=['POST'])
def payment_update() -> Response:
    """Recompute the settlement preview for new mode/tender inputs."""
    checkout = _checkout()
    payload = _payload()
    try:
        settlement = checkout.set_payment(payload.get('mode'), payload.get('amount_tendered'))
    except ValueError as e:
        raise ValidationError(str(e))
    return jsonify({'payment_mode': checkout.payment_mode.value, 'settlement': settlement.to_dict()})


@pos_bp.route('/payment/cancel', methods=['POST'])
def payment_cancel() -> Response:
    checkout = _checkout()
    checkout.cancel_payment()
    return jsonify({'status': 'ok', 'cart': checkout.cart.to_dict()})


@pos_bp.route('/confirm', methods=['POST'])
def confirm() -> Response:
    """
    Confirm the sale.

    A 402 CREDIT_LIMIT_EXCEEDED answer is recoverable: post again with
    force_override=true to bypass it for the same settlement.
    """
    checkout = _checkout()
    force_override = _as_bool(_payload().get('force_override', False))
    receipt = checkout.confirm(force_override=force_override)
    current_app.logger.info(
        f"[pos] terminal={checkout.terminal_id} sale confirmed id={receipt.sale_id} "
        f"method={receipt.settlement.method.value} forced={receipt.forced}"
    )
    return jsonify({'status': 'ok', 'receipt': receipt.to_dict(), 'cart': checkout.cart.to_dict()})
