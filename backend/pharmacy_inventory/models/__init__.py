from .inventory import Product, InventoryTransaction, TRANSACTION_IN, TRANSACTION_OUT, TRANSACTION_TYPES
from .store import KeyValueDocument

__all__ = [
    'Product', 'InventoryTransaction',
    'TRANSACTION_IN', 'TRANSACTION_OUT', 'TRANSACTION_TYPES',
    'KeyValueDocument',
]
