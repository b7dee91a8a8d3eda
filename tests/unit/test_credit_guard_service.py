"""
Unit tests for the credit ledger guard and its override protocol.
"""

import pytest
from dataclasses import replace
from decimal import Decimal

from khatapos.models import PaymentMode
from khatapos.exceptions import BusinessLogicError, CreditLimitExceeded, ValidationError
from khatapos.services import credit_guard_service
from khatapos.services.credit_guard_service import GuardStatus
from khatapos.services.settlement_service import settle_for_customer


def test_balance_exactly_at_limit_is_approved(ramesh):
    settlement = settle_for_customer(300, PaymentMode.CASH_OR_MIXED, 100, ramesh)
    decision = credit_guard_service.evaluate(settlement, ramesh)

    assert settlement.resulting_outstanding == ramesh.credit_limit
    assert decision.approved
    assert decision.raise_for_rejection() is decision


def test_over_limit_is_recoverable_block(ramesh):
    customer = replace(ramesh, credit_limit=Decimal('350.00'))
    settlement = settle_for_customer(300, PaymentMode.CASH_OR_MIXED, 100, customer)

    decision = credit_guard_service.evaluate(settlement, customer)

    assert decision.status == GuardStatus.BLOCKED
    assert decision.recoverable
    assert decision.error.limit == Decimal('350.00')
    assert decision.error.projected_balance == Decimal('400.00')
    assert decision.error.status_code == 402
    assert decision.error.to_dict()['code'] == 'CREDIT_LIMIT_EXCEEDED'
    with pytest.raises(CreditLimitExceeded):
        decision.raise_for_rejection()


def test_override_approves_same_settlement(ramesh):
    customer = replace(ramesh, credit_limit=Decimal('350.00'))
    settlement = settle_for_customer(300, PaymentMode.FULL_CREDIT, 0, customer)

    decision = credit_guard_service.evaluate(settlement, customer).override()

    assert decision.approved
    assert decision.force_override
    assert decision.settlement == settlement


def test_zero_limit_means_unlimited(ramesh):
    customer = replace(ramesh, credit_limit=Decimal('0.00'), outstanding_credit=Decimal('99999.00'))
    settlement = settle_for_customer(5000, PaymentMode.FULL_CREDIT, 0, customer)
    assert credit_guard_service.evaluate(settlement, customer).approved


def test_walk_in_credit_is_hard_block(walk_in):
    settlement = settle_for_customer(300, PaymentMode.CASH_OR_MIXED, 100, walk_in)
    decision = credit_guard_service.evaluate(settlement, walk_in, force_override=True)

    assert not decision.approved
    assert not decision.recoverable
    assert isinstance(decision.error, ValidationError)
    assert decision.error.payload['code'] == 'CUSTOMER_REQUIRED'
    with pytest.raises(BusinessLogicError):
        decision.override()


def test_walk_in_cash_sale_approved(walk_in):
    settlement = settle_for_customer(300, PaymentMode.CASH_OR_MIXED, 500, walk_in)
    assert credit_guard_service.evaluate(settlement, walk_in).approved


def test_negative_tender_rejected(ramesh):
    settlement = settle_for_customer(100, PaymentMode.CASH_OR_MIXED, -10, ramesh)
    decision = credit_guard_service.evaluate(settlement, ramesh)

    assert decision.error.payload['code'] == 'NEGATIVE_AMOUNT'
    assert decision.error.status_code == 422


def test_override_does_not_bypass_validation(ramesh):
    settlement = settle_for_customer(100, PaymentMode.CASH_OR_MIXED, -10, ramesh)
    decision = credit_guard_service.evaluate(settlement, ramesh, force_override=True)
    assert not decision.approved
