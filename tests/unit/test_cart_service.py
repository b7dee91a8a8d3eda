"""
Unit tests for the cart manager.
"""

import pytest
from decimal import Decimal

from khatapos.models import Cart, CartLine, LineIdentity
from khatapos.exceptions import BusinessLogicError, NotFoundError, StockLimitExceeded
from khatapos.services import cart_service
from khatapos.services.cart_service import Added, NeedsVariantChoice
from khatapos.services.stock_snapshot_service import StockSnapshot


def _add(cart, snapshot, item, variant=None):
    result = cart_service.add_item(cart, snapshot, item, variant)
    assert isinstance(result, Added)
    return result.cart


class TestAddItem:
    """Tests for add_item."""

    def test_repeated_add_merges_into_one_line(self, snapshot, rice):
        cart = cart_service.empty_cart()
        for _ in range(3):
            cart = _add(cart, snapshot, rice)

        assert len(cart) == 1
        assert cart.lines[0].quantity == 3
        assert cart.total == Decimal('300.00')

    def test_new_line_captures_price(self, snapshot, rice):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        line = cart.lines[0]
        assert line.unit_price == Decimal('100.00')
        assert line.name == 'Basmati Rice 1kg'
        assert line.variant_id is None

    def test_item_with_variants_requires_choice(self, snapshot, soap):
        cart = cart_service.empty_cart()
        result = cart_service.add_item(cart, snapshot, soap)

        assert isinstance(result, NeedsVariantChoice)
        assert [v.id for v in result.variants] == ['sandal', 'neem']
        assert cart.is_empty

    def test_variant_line_uses_variant_price_and_label(self, snapshot, soap):
        cart = _add(cart_service.empty_cart(), snapshot, soap, soap.get_variant('sandal'))
        line = cart.lines[0]
        assert line.identity == LineIdentity('soap', 'sandal')
        assert line.unit_price == Decimal('45.00')
        assert line.name == 'Bath Soap (Sandal)'

    def test_variants_of_same_item_are_separate_lines(self, snapshot, soap):
        cart = _add(cart_service.empty_cart(), snapshot, soap, soap.get_variant('sandal'))
        cart = _add(cart, snapshot, soap, soap.get_variant('sandal'))
        assert len(cart) == 1
        assert cart.item_count == 2

    def test_out_of_stock_variant_rejected(self, snapshot, soap):
        with pytest.raises(StockLimitExceeded) as exc:
            cart_service.add_item(cart_service.empty_cart(), snapshot, soap, soap.get_variant('neem'))
        assert 'out of stock' in exc.value.message

    def test_out_of_stock_item_rejected(self, snapshot):
        oil = snapshot.get_item('oil')
        with pytest.raises(StockLimitExceeded):
            cart_service.add_item(cart_service.empty_cart(), snapshot, oil)

    def test_variant_for_plain_item_rejected(self, snapshot, rice, soap):
        with pytest.raises(BusinessLogicError):
            cart_service.add_item(cart_service.empty_cart(), snapshot, rice, soap.get_variant('sandal'))

    def test_add_beyond_stock_keeps_cart(self, snapshot):
        milk = snapshot.get_item('milk')
        cart = _add(cart_service.empty_cart(), snapshot, milk)
        cart = _add(cart, snapshot, milk)

        with pytest.raises(StockLimitExceeded) as exc:
            cart_service.add_item(cart, snapshot, milk)

        assert exc.value.available == 2
        assert exc.value.status_code == 409
        assert cart.lines[0].quantity == 2


class TestIncrement:
    """Tests for increment / remove / clear."""

    def test_sixth_increment_rejected_against_stock_of_five(self, snapshot, rice):
        cart = cart_service.empty_cart()
        for _ in range(3):
            cart = _add(cart, snapshot, rice)
        identity = LineIdentity('rice')

        cart = cart_service.increment(cart, snapshot, identity, 1)
        cart = cart_service.increment(cart, snapshot, identity, 1)
        with pytest.raises(StockLimitExceeded) as exc:
            cart_service.increment(cart, snapshot, identity, 1)

        assert 'Only 5 units available' in exc.value.message
        assert cart.find(identity).quantity == 5
        assert cart.total == Decimal('500.00')

    def test_increment_keeps_captured_price_after_reload(self, snapshot, rice):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        repriced = StockSnapshot.from_payload(
            [{'_id': 'rice', 'name': 'Basmati Rice 1kg', 'price': 150, 'quantity': 5}]
        )

        cart = cart_service.increment(cart, repriced, LineIdentity('rice'), 1)

        assert cart.lines[0].unit_price == Decimal('100.00')
        assert cart.lines[0].quantity == 2
        assert cart.total == Decimal('200.00')

    def test_decrement_to_zero_removes_line(self, snapshot, rice):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        cart = cart_service.increment(cart, snapshot, LineIdentity('rice'), -1)
        assert cart.is_empty
        assert cart.total == Decimal('0.00')

    def test_decrement_never_checks_stock(self, rice):
        cart = Cart((CartLine('rice', None, rice.name, rice.price, 4),))
        emptied = StockSnapshot()

        cart = cart_service.increment(cart, emptied, LineIdentity('rice'), -1)
        assert cart.lines[0].quantity == 3

    def test_increment_missing_line(self, snapshot):
        with pytest.raises(NotFoundError):
            cart_service.increment(cart_service.empty_cart(), snapshot, LineIdentity('rice'), 1)

    def test_remove_is_idempotent(self, snapshot, rice):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        cart = cart_service.remove(cart, LineIdentity('rice'))
        again = cart_service.remove(cart, LineIdentity('rice'))
        assert cart.is_empty
        assert again is cart

    def test_remove_keeps_order_of_other_lines(self, snapshot, rice, soap):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        cart = _add(cart, snapshot, snapshot.get_item('milk'))
        cart = _add(cart, snapshot, soap, soap.get_variant('sandal'))

        cart = cart_service.remove(cart, LineIdentity('milk'))
        assert [line.item_id for line in cart] == ['rice', 'soap']

    def test_clear(self, snapshot, rice):
        cart = _add(cart_service.empty_cart(), snapshot, rice)
        assert cart_service.clear(cart).is_empty

    def test_cart_line_quantity_must_be_positive(self):
        with pytest.raises(ValueError):
            CartLine('rice', None, 'Rice', Decimal('1.00'), 0)
