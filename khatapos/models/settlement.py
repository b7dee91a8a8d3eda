"""Settlement models: payment mode, method label and the computed split."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Any
import enum


class PaymentMode(str, enum.Enum):
    """Mode chosen by the operator in the payment dialog."""
    CASH_OR_MIXED = 'CASH_OR_MIXED'
    FULL_CREDIT = 'FULL_CREDIT'


class PaymentMethod(str, enum.Enum):
    """Effective payment-method label sent with the sale."""
    CASH = 'Cash'
    CREDIT = 'Credit'
    MIXED = 'Mixed'


def normalize_payment_mode(value) -> PaymentMode:
    """Accept enum values, names, and the till's legacy labels."""
    if isinstance(value, PaymentMode):
        return value
    if value is None:
        return PaymentMode.CASH_OR_MIXED

    key = str(value).strip().upper().replace('/', '_').replace(' ', '_').replace('-', '_')
    aliases = {
        'CASH_OR_MIXED': PaymentMode.CASH_OR_MIXED,
        'CASH': PaymentMode.CASH_OR_MIXED,
        'CASH_UPI': PaymentMode.CASH_OR_MIXED,
        'MIXED': PaymentMode.CASH_OR_MIXED,
        'FULL_CREDIT': PaymentMode.FULL_CREDIT,
        'CREDIT': PaymentMode.FULL_CREDIT,
        'FULL_KHATA': PaymentMode.FULL_CREDIT,
        'KHATA': PaymentMode.FULL_CREDIT,
    }
    if key not in aliases:
        raise ValueError(f'Unknown payment mode: {value!r}')
    return aliases[key]


@dataclass(frozen=True)
class SettlementResult:
    """
    Speculative split of a sale total.

    amount_paid + amount_credited == total always holds. When the operator
    over-tenders, the surplus is change_due and amount_tendered keeps the raw
    figure typed at the till.
    """

    total: Decimal
    amount_tendered: Decimal
    amount_paid: Decimal
    amount_credited: Decimal
    change_due: Decimal
    prior_outstanding: Decimal
    resulting_outstanding: Decimal
    method: PaymentMethod
    mode: PaymentMode

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': str(self.total),
            'amount_tendered': str(self.amount_tendered),
            'amount_paid': str(self.amount_paid),
            'amount_credited': str(self.amount_credited),
            'change_due': str(self.change_due),
            'prior_outstanding': str(self.prior_outstanding),
            'resulting_outstanding': str(self.resulting_outstanding),
            'method': self.method.value,
            'mode': self.mode.value,
        }
