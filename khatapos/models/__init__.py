"""Models package - exports all terminal-side value objects."""
from khatapos.models.inventory_item import InventoryItem, Variant, DEFAULT_REORDER_LEVEL
from khatapos.models.cart import Cart, CartLine, LineIdentity
from khatapos.models.customer import Customer, WALK_IN_CUSTOMER, WALK_IN_ID, DEFAULT_CREDIT_LIMIT
from khatapos.models.settlement import PaymentMode, PaymentMethod, SettlementResult, normalize_payment_mode
from khatapos.models.khata_entry import KhataEntry, KhataEntryType

__all__ = [
    # Catalog
    'InventoryItem', 'Variant', 'DEFAULT_REORDER_LEVEL',
    # Cart
    'Cart', 'CartLine', 'LineIdentity',
    # Customers
    'Customer', 'WALK_IN_CUSTOMER', 'WALK_IN_ID', 'DEFAULT_CREDIT_LIMIT',
    # Settlement
    'PaymentMode', 'PaymentMethod', 'SettlementResult', 'normalize_payment_mode',
    # Ledger
    'KhataEntry', 'KhataEntryType',
]
