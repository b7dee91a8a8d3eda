"""
Credit Ledger Guard - confirmation-time checks on a settlement.

The guard returns a GuardDecision instead of raising, so the two-phase
override protocol is explicit at the call site:

    decision = evaluate(settlement, customer)
    if decision.recoverable:
        # show decision.error.projected_balance, ask the operator...
        decision = decision.override()
    decision.raise_for_rejection()

Only a CreditLimitExceeded block can be overridden; override is absolute for
that condition and bypasses nothing else.
"""
from dataclasses import dataclass
from typing import Optional
import enum

from khatapos.models import Customer, SettlementResult
from khatapos.exceptions import BusinessLogicError, ValidationError, CreditLimitExceeded


class GuardStatus(str, enum.Enum):
    APPROVED = 'APPROVED'
    BLOCKED = 'BLOCKED'


@dataclass(frozen=True)
class GuardDecision:
    """Outcome of one confirmation attempt."""

    status: GuardStatus
    settlement: SettlementResult
    customer: Customer
    force_override: bool = False
    error: Optional[BusinessLogicError] = None

    @property
    def approved(self) -> bool:
        return self.status == GuardStatus.APPROVED

    @property
    def recoverable(self) -> bool:
        """True only for a credit-limit block, the one state with a re-entry."""
        return isinstance(self.error, CreditLimitExceeded)

    def raise_for_rejection(self) -> 'GuardDecision':
        if self.error is not None:
            raise self.error
        return self

    def override(self) -> 'GuardDecision':
        """Re-evaluate the identical settlement with force_override set."""
        if not self.recoverable:
            raise BusinessLogicError('Only a credit limit block can be overridden.')
        return evaluate(self.settlement, self.customer, force_override=True)


def _blocked(settlement, customer, force_override, error) -> GuardDecision:
    return GuardDecision(GuardStatus.BLOCKED, settlement, customer, force_override, error)


def evaluate(settlement: SettlementResult, customer: Customer, force_override: bool = False) -> GuardDecision:
    """
    Validate a settlement for the active customer.

    Rules, in order:
    1. Credit on a Walk-in sale is a hard block (no ledger to credit).
    2. A negative paid amount is invalid.
    3. Exceeding a non-zero credit limit blocks, unless force_override.
       The comparison is strictly greater-than: landing exactly on the limit
       is allowed.
    """
    if settlement.amount_credited > 0 and customer.is_walk_in:
        return _blocked(settlement, customer, force_override, ValidationError(
            'No specific customer selected for credited amount. '
            'Please select a customer to add the remaining amount to Khata.',
            payload={'code': 'CUSTOMER_REQUIRED'},
        ))

    if settlement.amount_paid < 0 or settlement.amount_tendered < 0:
        return _blocked(settlement, customer, force_override, ValidationError(
            'Amount paid cannot be negative.',
            payload={'code': 'NEGATIVE_AMOUNT'},
        ))

    if (
        customer.has_credit_limit
        and settlement.resulting_outstanding > customer.credit_limit
        and not force_override
    ):
        return _blocked(settlement, customer, force_override, CreditLimitExceeded(
            limit=customer.credit_limit,
            projected_balance=settlement.resulting_outstanding,
        ))

    return GuardDecision(GuardStatus.APPROVED, settlement, customer, force_override)
