# Overview: Wiring of the inventory core onto explicit store handles.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..time_utils import utcnow
from .catalog_service import ProductCatalog
from .documents import DocumentCollection, SeedSource
from .kv_store import KeyValueStore
from .ledger_service import TransactionLedger

INVENTORY_SEED = "inventory"
TRANSACTIONS_SEED = "transactions"


@dataclass
class InventoryServices:
    """The catalog and the ledger sharing one store, plus their collections."""
    store: KeyValueStore
    products: DocumentCollection
    transactions: DocumentCollection
    catalog: ProductCatalog
    ledger: TransactionLedger

    def collections(self) -> tuple[DocumentCollection, DocumentCollection]:
        return (self.products, self.transactions)


def build_services(
    store: KeyValueStore,
    *,
    seed: SeedSource | None = None,
    inventory_key: str = "pharmacy_inventory",
    transactions_key: str = "pharmacy_transactions",
    default_user_id: Any = 1,
    clock: Callable = utcnow,
) -> InventoryServices:
    products = DocumentCollection(store, inventory_key, "products", seed=seed, seed_name=INVENTORY_SEED)
    transactions = DocumentCollection(
        store, transactions_key, "transactions", seed=seed, seed_name=TRANSACTIONS_SEED
    )
    catalog = ProductCatalog(products, clock=clock)
    ledger = TransactionLedger(transactions, catalog, clock=clock, default_user_id=default_user_id)
    return InventoryServices(
        store=store,
        products=products,
        transactions=transactions,
        catalog=catalog,
        ledger=ledger,
    )
