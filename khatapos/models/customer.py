"""Customer model (khata holder)."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any

from khatapos.utils.number_format import to_money

WALK_IN_ID = 'walk_in'
DEFAULT_CREDIT_LIMIT = Decimal('5000.00')


@dataclass(frozen=True)
class Customer:
    """
    Customer with a running khata.

    A `credit_limit` of 0 means no limit is enforced.
    """

    id: str
    name: str
    credit_limit: Decimal = Decimal('0.00')
    outstanding_credit: Decimal = Decimal('0.00')
    phone: Optional[str] = None

    def __repr__(self):
        return f"<Customer(id={self.id!r}, name={self.name!r}, outstanding={self.outstanding_credit})>"

    @property
    def is_walk_in(self) -> bool:
        return self.id == WALK_IN_ID

    @property
    def has_credit_limit(self) -> bool:
        return self.credit_limit > 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_credit_limit: Decimal = DEFAULT_CREDIT_LIMIT) -> 'Customer':
        customer_id = data.get('_id', data.get('id'))
        if customer_id is None:
            raise ValueError(f"Customer without id: {data!r}")
        limit = data.get('creditLimit')
        outstanding = to_money(data.get('outstandingCredit') or 0)
        return cls(
            id=str(customer_id),
            name=str(data.get('name', '')).strip(),
            credit_limit=to_money(limit) if limit is not None else to_money(default_credit_limit),
            outstanding_credit=max(outstanding, Decimal('0.00')),
            phone=data.get('phone') or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'credit_limit': str(self.credit_limit),
            'outstanding_credit': str(self.outstanding_credit),
            'is_walk_in': self.is_walk_in,
        }


# Unidentified cash buyer: no ledger, can never carry credit
WALK_IN_CUSTOMER = Customer(id=WALK_IN_ID, name='Walk-in Customer')
