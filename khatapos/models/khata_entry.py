"""Khata (customer credit ledger) entry."""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any
import enum


class KhataEntryType(str, enum.Enum):
    CREDIT_SALE = 'credit_sale'            # increases due
    PAYMENT_RECEIVED = 'payment_received'  # decreases due


@dataclass(frozen=True)
class KhataEntry:
    """Entry handed to the ledger history API; storage is the backend's concern."""

    customer_id: str
    amount: Decimal
    entry_type: KhataEntryType
    reference_id: Optional[str] = None
    details: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            'amount': float(self.amount),
            'type': self.entry_type.value,
            'referenceId': self.reference_id,
            'details': self.details,
        }
