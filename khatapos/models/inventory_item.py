"""Inventory item and variant models (catalog snapshot entries)."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple, Dict, Any

from khatapos.utils.number_format import to_money

DEFAULT_REORDER_LEVEL = 5


def _external_id(data: Dict[str, Any]) -> str:
    """Backend documents carry either `_id` or `id`."""
    value = data.get('_id', data.get('id'))
    if value is None:
        raise ValueError(f"Catalog entry without id: {data!r}")
    return str(value)


@dataclass(frozen=True)
class Variant:
    """
    Sellable option of an item (size, brand, pack).

    Owned by its item; `id` is only unique within that item.
    """

    id: str
    label: str
    price: Decimal
    quantity: int = 0
    reorder_level: Optional[int] = None  # None inherits from the parent item
    sku: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Variant':
        reorder = data.get('reorderLevel')
        return cls(
            id=_external_id(data),
            label=str(data.get('label', '')).strip(),
            price=to_money(data.get('price', 0)),
            quantity=int(data.get('quantity') or 0),
            reorder_level=int(reorder) if reorder is not None else None,
            sku=str(data.get('sku') or '').strip(),
        )


@dataclass(frozen=True)
class InventoryItem:
    """Catalog item as last fetched from the backend."""

    id: str
    name: str
    price: Decimal = Decimal('0.00')
    quantity: int = 0
    reorder_level: int = DEFAULT_REORDER_LEVEL
    barcode: Optional[str] = None
    variants: Tuple[Variant, ...] = field(default_factory=tuple)

    def __repr__(self):
        return f"<InventoryItem(id={self.id!r}, name={self.name!r}, variants={len(self.variants)})>"

    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0

    @property
    def total_quantity(self) -> int:
        """Sum of variant stock, or base stock when the item has no variants."""
        if self.has_variants:
            return sum(v.quantity for v in self.variants)
        return self.quantity

    def get_variant(self, variant_id: str) -> Optional[Variant]:
        for variant in self.variants:
            if variant.id == str(variant_id):
                return variant
        return None

    def variant_reorder_level(self, variant: Variant) -> int:
        if variant.reorder_level is not None:
            return variant.reorder_level
        return self.reorder_level

    @property
    def is_low_stock(self) -> bool:
        if self.has_variants:
            return any(v.quantity <= self.variant_reorder_level(v) for v in self.variants)
        return self.quantity <= self.reorder_level

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_reorder_level: int = DEFAULT_REORDER_LEVEL) -> 'InventoryItem':
        variants = tuple(Variant.from_dict(v) for v in (data.get('variants') or []))
        reorder = data.get('reorderLevel')
        # Base price/stock are meaningless once variants exist
        return cls(
            id=_external_id(data),
            name=str(data.get('name', '')).strip(),
            price=Decimal('0.00') if variants else to_money(data.get('price') or 0),
            quantity=0 if variants else int(data.get('quantity') or 0),
            reorder_level=int(reorder) if reorder is not None else default_reorder_level,
            barcode=(str(data['barcode']).strip() or None) if data.get('barcode') else None,
            variants=variants,
        )
