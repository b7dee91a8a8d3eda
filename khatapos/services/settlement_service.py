"""Settlement Calculator - splits a sale total into paid now, credited and change."""
from decimal import Decimal
from typing import Union

from khatapos.models import Customer, PaymentMode, PaymentMethod, SettlementResult, normalize_payment_mode
from khatapos.utils.number_format import to_money

ZERO = Decimal('0.00')

Amount = Union[Decimal, int, float, str]


def resolve_payment_mode(mode, customer: Customer) -> PaymentMode:
    """
    Full credit needs a ledger to credit against: a Walk-in sale is always
    forced back to cash/mixed.
    """
    mode = normalize_payment_mode(mode)
    if mode == PaymentMode.FULL_CREDIT and customer.is_walk_in:
        return PaymentMode.CASH_OR_MIXED
    return mode


def calculate_settlement(
    total: Amount,
    mode,
    amount_tendered: Amount = ZERO,
    prior_outstanding: Amount = ZERO,
) -> SettlementResult:
    """
    Compute the speculative settlement for the payment dialog.

    Never rejects: validation happens at confirmation so the operator can see
    the resulting khata balance before being blocked.

    Full credit:
        everything goes to khata, nothing is paid now.
    Cash/mixed:
        tendered >= total  -> Cash, surplus returned as change
        0 < tendered < total -> Mixed, remainder credited
        tendered <= 0      -> Credit, remainder credited
    """
    total = to_money(total)
    mode = normalize_payment_mode(mode)
    prior = to_money(prior_outstanding)

    if mode == PaymentMode.FULL_CREDIT:
        tendered = ZERO
        paid = ZERO
        credited = total
        change = ZERO
        method = PaymentMethod.CREDIT
    else:
        tendered = to_money(amount_tendered)
        if tendered >= total:
            change = tendered - total
            paid = tendered - change
            credited = ZERO
            method = PaymentMethod.CASH
        else:
            credited = total - tendered
            paid = tendered
            change = ZERO
            method = PaymentMethod.MIXED if tendered > 0 else PaymentMethod.CREDIT

    return SettlementResult(
        total=total,
        amount_tendered=tendered,
        amount_paid=paid,
        amount_credited=credited,
        change_due=change,
        prior_outstanding=prior,
        resulting_outstanding=prior + credited,
        method=method,
        mode=mode,
    )


def settle_for_customer(total: Amount, mode, amount_tendered: Amount, customer: Customer) -> SettlementResult:
    """Resolve the mode for the active customer and settle against their khata."""
    effective_mode = resolve_payment_mode(mode, customer)
    prior = ZERO if customer.is_walk_in else customer.outstanding_credit
    return calculate_settlement(total, effective_mode, amount_tendered, prior)
