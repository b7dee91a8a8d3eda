"""
Stock Snapshot - locally held view of catalog availability.

A snapshot is built once per catalog fetch and never patched afterwards;
reloading replaces it wholesale so readers always see a consistent view.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple, Any

from khatapos.models import InventoryItem, Variant, LineIdentity, DEFAULT_REORDER_LEVEL
from khatapos.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class StockSnapshot:
    """Immutable per-fetch view of items and variants."""

    def __init__(self, items: Iterable[InventoryItem] = (), fetched_at: Optional[datetime] = None):
        self._items: Dict[str, InventoryItem] = {item.id: item for item in items}
        self.fetched_at = fetched_at or datetime.now(timezone.utc)

    def __len__(self):
        return len(self._items)

    def __contains__(self, item_id):
        return str(item_id) in self._items

    def __repr__(self):
        return f"<StockSnapshot(items={len(self._items)}, fetched_at={self.fetched_at.isoformat()})>"

    @classmethod
    def from_payload(cls, payload: Iterable[Dict[str, Any]], default_reorder_level: int = DEFAULT_REORDER_LEVEL) -> 'StockSnapshot':
        """Build a snapshot from the catalog API payload; nameless or malformed rows are skipped."""
        items = []
        for row in payload:
            if not row.get('name'):
                continue
            try:
                items.append(InventoryItem.from_dict(row, default_reorder_level=default_reorder_level))
            except (ValueError, TypeError) as e:
                logger.warning(f"[CATALOG] Skipping malformed inventory row: {e}")
        return cls(items)

    @property
    def items(self) -> List[InventoryItem]:
        return list(self._items.values())

    def get_item(self, item_id) -> InventoryItem:
        item = self._items.get(str(item_id))
        if item is None:
            raise NotFoundError(f'Item {item_id} not found in catalog.')
        return item

    def resolve(self, item_id, variant_id=None) -> Tuple[InventoryItem, Optional[Variant]]:
        """Return (item, variant) for an identity, raising NotFoundError if unknown."""
        item = self.get_item(item_id)
        if variant_id is None:
            return item, None
        variant = item.get_variant(variant_id)
        if variant is None:
            raise NotFoundError(f'Variant {variant_id} not found for "{item.name}".')
        return item, variant

    def quantity_for(self, item_id, variant_id=None) -> int:
        """Stock ceiling for a line identity; unknown identities have none."""
        item = self._items.get(str(item_id))
        if item is None:
            return 0
        if variant_id is None:
            return item.quantity if not item.has_variants else 0
        variant = item.get_variant(variant_id)
        return variant.quantity if variant else 0

    def quantity_for_identity(self, identity: LineIdentity) -> int:
        return self.quantity_for(identity.item_id, identity.variant_id)

    def search(self, term: str = '') -> List[InventoryItem]:
        """
        Items shown on the till grid: in stock only, filtered by name or
        barcode, sorted by name.
        """
        in_stock = [item for item in self._items.values() if item.total_quantity > 0]
        needle = (term or '').strip().lower()
        if needle:
            in_stock = [
                item for item in in_stock
                if needle in item.name.lower() or (item.barcode and needle in item.barcode.lower())
            ]
        return sorted(in_stock, key=lambda item: item.name.lower())

    def find_by_barcode(self, code: str) -> Optional[Tuple[InventoryItem, Optional[Variant]]]:
        """Exact match on item barcode first, then on variant SKU."""
        code = (code or '').strip()
        if not code:
            return None
        for item in self._items.values():
            if item.barcode and item.barcode == code:
                return item, None
        for item in self._items.values():
            for variant in item.variants:
                if variant.sku and variant.sku == code:
                    return item, variant
        return None

    def low_stock(self) -> List[InventoryItem]:
        return sorted(
            (item for item in self._items.values() if item.is_low_stock),
            key=lambda item: item.name.lower(),
        )


EMPTY_SNAPSHOT = StockSnapshot()
