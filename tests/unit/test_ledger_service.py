"""
Unit tests for khata ledger entries and payments.
"""

import pytest
import requests
from decimal import Decimal

from khatapos.models import KhataEntryType, PaymentMode
from khatapos.exceptions import PosError, ValidationError
from khatapos.services import ledger_service
from khatapos.services.settlement_service import settle_for_customer


def test_no_entry_for_cash_sale(ramesh):
    settlement = settle_for_customer(100, PaymentMode.CASH_OR_MIXED, 100, ramesh)
    assert ledger_service.entries_for_sale(settlement, ramesh, 'sale-1') == []


def test_no_entry_for_walk_in(walk_in):
    settlement = settle_for_customer(100, PaymentMode.CASH_OR_MIXED, 40, walk_in)
    assert ledger_service.entries_for_sale(settlement, walk_in, 'sale-1') == []


def test_credit_sale_entry(ramesh):
    settlement = settle_for_customer(300, PaymentMode.CASH_OR_MIXED, 100, ramesh)
    [entry] = ledger_service.entries_for_sale(settlement, ramesh, 'sale-9')

    assert entry.entry_type == KhataEntryType.CREDIT_SALE
    assert entry.amount == Decimal('200.00')
    assert entry.reference_id == 'sale-9'
    assert entry.to_payload() == {
        'amount': 200.0,
        'type': 'credit_sale',
        'referenceId': 'sale-9',
        'details': 'Remaining after paying ₹100.00',
    }


def test_post_entries_collects_failures(ramesh, backend):
    settlement = settle_for_customer(300, PaymentMode.FULL_CREDIT, 0, ramesh)
    entries = ledger_service.entries_for_sale(settlement, ramesh, 'sale-1')
    backend.khata_error = requests.ConnectionError('down')

    failures = ledger_service.post_entries(backend, entries)

    assert len(failures) == 1
    assert 'c1' in failures[0]


def test_record_payment_reduces_balance(ramesh, backend):
    entry, outstanding = ledger_service.record_payment(backend, ramesh, '150')

    assert outstanding == Decimal('50.00')
    assert entry.entry_type == KhataEntryType.PAYMENT_RECEIVED
    assert backend.credit_updates == [('c1', -150.0)]
    assert backend.khata[0][1]['type'] == 'payment_received'


def test_record_payment_never_goes_negative(ramesh, backend):
    _, outstanding = ledger_service.record_payment(backend, ramesh, 1000)
    assert outstanding == Decimal('0.00')


@pytest.mark.parametrize('amount', [0, '-5'])
def test_record_payment_requires_positive_amount(ramesh, backend, amount):
    with pytest.raises(ValidationError):
        ledger_service.record_payment(backend, ramesh, amount)
    assert backend.credit_updates == []


def test_record_payment_rejects_walk_in(walk_in, backend):
    with pytest.raises(ValidationError):
        ledger_service.record_payment(backend, walk_in, 10)


def test_record_payment_backend_failure(ramesh, backend):
    backend.khata_error = requests.Timeout('slow')
    with pytest.raises(PosError) as exc:
        ledger_service.record_payment(backend, ramesh, 10)
    assert exc.value.status_code == 502


def test_entry_types():
    assert {t.value for t in KhataEntryType} == {'credit_sale', 'payment_received'}
