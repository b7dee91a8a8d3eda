"""Consumer side of the barcode scanning component."""
from dataclasses import dataclass
from typing import Optional

from khatapos.models import InventoryItem, Variant
from khatapos.services.stock_snapshot_service import StockSnapshot


@dataclass(frozen=True)
class ScanOutcome:
    """Either found(item[, variant]) or not_found(code); decoding is not our concern."""

    code: str
    item: Optional[InventoryItem] = None
    variant: Optional[Variant] = None

    @property
    def found_item(self) -> bool:
        return self.item is not None

    @classmethod
    def found(cls, code: str, item: InventoryItem, variant: Optional[Variant] = None) -> 'ScanOutcome':
        return cls(code=code, item=item, variant=variant)

    @classmethod
    def not_found(cls, code: str) -> 'ScanOutcome':
        return cls(code=code)


def resolve_scan(snapshot: StockSnapshot, code: str) -> ScanOutcome:
    """Resolve a decoded code against the current snapshot."""
    code = (code or '').strip()
    match = snapshot.find_by_barcode(code)
    if match is None:
        return ScanOutcome.not_found(code)
    item, variant = match
    return ScanOutcome.found(code, item, variant)
