"""
Cart Manager - pure cart operations over an explicit Cart value.

Every operation takes the current cart plus a command and returns a new cart;
nothing is mutated in place, so a rejected operation leaves the caller's cart
exactly as it was.
"""
from dataclasses import dataclass
from typing import Optional, Union

from khatapos.models import Cart, CartLine, LineIdentity, InventoryItem, Variant
from khatapos.exceptions import BusinessLogicError, NotFoundError, StockLimitExceeded
from khatapos.services.stock_snapshot_service import StockSnapshot


@dataclass(frozen=True)
class Added:
    """The item landed in the cart (new line or +1 on an existing line)."""
    cart: Cart
    line: CartLine


@dataclass(frozen=True)
class NeedsVariantChoice:
    """The item is only sellable per variant; the operator must pick one."""
    item: InventoryItem

    @property
    def variants(self):
        return self.item.variants


AddResult = Union[Added, NeedsVariantChoice]


def empty_cart() -> Cart:
    return Cart()


def line_identity(item: InventoryItem, variant: Optional[Variant] = None) -> LineIdentity:
    return LineIdentity(item.id, variant.id if variant is not None else None)


def _line_name(item: InventoryItem, variant: Optional[Variant]) -> str:
    if variant is None:
        return item.name
    return f"{item.name} ({variant.label})"


def _replace_line(cart: Cart, identity: LineIdentity, new_line: Optional[CartLine]) -> Cart:
    """Swap (or drop, when new_line is None) the line with this identity, keeping order."""
    lines = []
    for line in cart.lines:
        if line.identity == identity:
            if new_line is not None:
                lines.append(new_line)
        else:
            lines.append(line)
    return Cart(tuple(lines))


def add_item(cart: Cart, snapshot: StockSnapshot, item: InventoryItem, variant: Optional[Variant] = None) -> AddResult:
    """
    Add one unit of an item (or one of its variants) to the cart.

    Items with variants cannot be added without a variant: NeedsVariantChoice
    is returned and the cart is left untouched. An existing line is
    incremented by one; otherwise a new line is created with the price of the
    item/variant at this instant.

    Raises:
        StockLimitExceeded: the line would exceed the snapshot stock
        BusinessLogicError: a variant was given for an item without variants
        NotFoundError: the variant does not belong to the item
    """
    if item.has_variants and variant is None:
        return NeedsVariantChoice(item)

    if variant is not None:
        if not item.has_variants:
            raise BusinessLogicError(f'"{item.name}" has no variants.')
        if item.get_variant(variant.id) is None:
            raise NotFoundError(f'Variant {variant.id} not found for "{item.name}".')

    identity = line_identity(item, variant)
    existing = cart.find(identity)
    if existing is not None:
        new_cart = increment(cart, snapshot, identity, 1)
        return Added(new_cart, new_cart.find(identity))

    available = snapshot.quantity_for_identity(identity)
    if available < 1:
        raise StockLimitExceeded(_line_name(item, variant), 1, available)

    line = CartLine(
        item_id=item.id,
        variant_id=variant.id if variant is not None else None,
        name=_line_name(item, variant),
        unit_price=variant.price if variant is not None else item.price,
        quantity=1,
    )
    return Added(Cart(cart.lines + (line,)), line)


def increment(cart: Cart, snapshot: StockSnapshot, identity: LineIdentity, delta: int) -> Cart:
    """
    Change a line's quantity by delta (positive or negative).

    Increases are checked against the snapshot on every call; decreases are
    never blocked. A resulting quantity <= 0 deletes the line.

    Raises:
        NotFoundError: no line with this identity
        StockLimitExceeded: delta > 0 and the new quantity exceeds stock
    """
    identity = LineIdentity(*identity)
    line = cart.find(identity)
    if line is None:
        raise NotFoundError('Item is not in the cart.')

    new_quantity = line.quantity + delta
    if delta > 0:
        available = snapshot.quantity_for_identity(identity)
        if new_quantity > available:
            raise StockLimitExceeded(line.name, new_quantity, available)

    if new_quantity <= 0:
        return _replace_line(cart, identity, None)
    return _replace_line(cart, identity, line.with_quantity(new_quantity))


def remove(cart: Cart, identity: LineIdentity) -> Cart:
    """Delete the line if present; absent identities are a no-op."""
    identity = LineIdentity(*identity)
    if cart.find(identity) is None:
        return cart
    return _replace_line(cart, identity, None)


def clear(cart: Optional[Cart] = None) -> Cart:
    """Empty the cart (cancel, or after a committed sale)."""
    return empty_cart()
