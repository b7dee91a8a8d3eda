"""Cart and cart line value objects."""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple, Dict, Any


class LineIdentity(NamedTuple):
    """Identity of a cart line: unique within a cart."""
    item_id: str
    variant_id: Optional[str] = None


@dataclass(frozen=True)
class CartLine:
    """
    Single cart line.

    `unit_price` is captured when the line is created and never re-read from
    the catalog, so a price edit mid-session does not touch a started sale.
    """

    item_id: str
    variant_id: Optional[str]
    name: str
    unit_price: Decimal
    quantity: int

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError('CartLine quantity must be at least 1')

    @property
    def identity(self) -> LineIdentity:
        return LineIdentity(self.item_id, self.variant_id)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> 'CartLine':
        return replace(self, quantity=quantity)

    def to_sale_item(self) -> Dict[str, Any]:
        """Line as expected by the sale-commit API."""
        item = {
            'itemId': self.item_id,
            'name': self.name,
            'quantity': self.quantity,
            'price': float(self.unit_price),
        }
        if self.variant_id is not None:
            item['variantId'] = self.variant_id
        return item


@dataclass(frozen=True)
class Cart:
    """Immutable ordered collection of cart lines."""

    lines: Tuple[CartLine, ...] = field(default_factory=tuple)

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    @property
    def total(self) -> Decimal:
        """Derived on every read, never stored."""
        return sum((line.line_total for line in self.lines), Decimal('0.00'))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find(self, identity: LineIdentity) -> Optional[CartLine]:
        for line in self.lines:
            if line.identity == identity:
                return line
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lines': [
                {
                    'item_id': line.item_id,
                    'variant_id': line.variant_id,
                    'name': line.name,
                    'unit_price': str(line.unit_price),
                    'quantity': line.quantity,
                    'line_total': str(line.line_total),
                }
                for line in self.lines
            ],
            'item_count': self.item_count,
            'total': str(self.total),
        }
