# Overview: Service-layer operations for the inventory transaction ledger.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..models import InventoryTransaction, TRANSACTION_IN, TRANSACTION_TYPES
from ..time_utils import to_utc_z, utcnow
from ..validation import NotFoundError, ValidationError, coerce_non_negative_int
from .catalog_service import ProductCatalog
from .documents import DocumentCollection
from .kv_store import PersistenceError
"""
Inventory Ledger Invariants (authoritative)

- The ledger ({"transactions": [...]}) is append-only. Entries are never
  edited or deleted; corrections are compensating entries.
- Transaction ids are max(existing) + 1, or 1 for an empty ledger.
- date is server time at append, serialized ISO-8601 'Z' with milliseconds.
- newStock = previousStock + quantity (in) / previousStock - quantity (out).
- An out transaction may never take stock below zero. A rejected append
  persists nothing.
- Product.stock equals the fold of that product's transactions in id order,
  starting from the stock it had before its first transaction.

Write order:
- append writes the ledger first, then the catalog stock. If the catalog
  write fails the ledger entry stays and PartialCommitError carries it;
  reconcile() repairs the catalog from the ledger.
- The ledger collection lock is held across snapshot, validation and both
  writes, so appends inside one process cannot race on previousStock.
"""

logger = logging.getLogger(__name__)


class InsufficientStockError(ValueError):
    """An out transaction asked for more units than are on hand."""

    def __init__(self, product_id: int, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"insufficient stock for product {product_id}: "
            f"{available} available, {requested} requested"
        )


class PartialCommitError(RuntimeError):
    """
    The ledger entry was persisted but the catalog stock write failed.

    The transaction is durable; the catalog is stale until the write is
    retried or reconcile() runs.
    """

    def __init__(self, transaction: InventoryTransaction, cause: Exception):
        self.transaction = transaction
        self.cause = cause
        super().__init__(
            f"transaction {transaction.id} recorded but stock update for "
            f"product {transaction.product_id} failed: {cause}"
        )


@dataclass(frozen=True)
class StockDrift:
    product_id: int
    catalog_stock: int
    ledger_stock: int
    baseline: int
    transaction_count: int
    # catalog stock is a previousStock in the product's history
    repairable: bool = False

    @property
    def drifted(self) -> bool:
        return self.catalog_stock != self.ledger_stock

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "catalog_stock": self.catalog_stock,
            "ledger_stock": self.ledger_stock,
            "baseline": self.baseline,
            "transaction_count": self.transaction_count,
            "drifted": self.drifted,
            "repairable": self.drifted and self.repairable,
        }


def _validate_quantity(quantity: Any) -> int:
    # bool is an int subclass; True must not mean "1 unit"
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise ValidationError("quantity must be a positive integer")
    if quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    return quantity


def _validate_product_id(product_id: Any) -> int:
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        raise ValidationError("productId must be an integer")
    return product_id


def _next_id(records: list[dict]) -> int:
    return max((int(r["id"]) for r in records), default=0) + 1


def fold_stock(transactions, baseline: int = 0) -> int:
    """Apply transactions, in the order given, to a starting stock."""
    stock = baseline
    for tx in transactions:
        stock += tx.delta
    return stock


class TransactionLedger:
    def __init__(
        self,
        collection: DocumentCollection,
        catalog: ProductCatalog,
        *,
        clock: Callable = utcnow,
        default_user_id: Any = 1,
    ):
        self.collection = collection
        self.catalog = catalog
        self.clock = clock
        self.default_user_id = default_user_id

    def list(self) -> list[InventoryTransaction]:
        """All transactions in storage order. Callers sort via query_service."""
        records = self.collection.load()
        try:
            return [InventoryTransaction.from_dict(r) for r in records]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(
                f"document {self.collection.key!r} holds a malformed transaction: {exc!r}",
                key=self.collection.key,
            ) from exc

    def get_by_id(self, transaction_id: int) -> InventoryTransaction:
        for tx in self.list():
            if tx.id == transaction_id:
                return tx
        raise NotFoundError("Transaction", transaction_id)

    def for_product(self, product_id: int) -> list[InventoryTransaction]:
        txs = [tx for tx in self.list() if tx.product_id == product_id]
        return sorted(txs, key=lambda tx: tx.id)

    def append(
        self,
        product_id: int,
        type: str,
        quantity: int,
        notes: Optional[str] = None,
        user_id: Any = None,
    ) -> InventoryTransaction:
        """
        Record a stock movement and update the product's stock.

        Raises ValidationError, NotFoundError or InsufficientStockError before
        anything is written, PersistenceError if the ledger write fails (no
        effect), and PartialCommitError if only the ledger write succeeded.
        """
        product_id = _validate_product_id(product_id)
        quantity = _validate_quantity(quantity)
        if type not in TRANSACTION_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(TRANSACTION_TYPES)}")
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be a string")

        with self.collection.lock():
            product = self.catalog.get_by_id(product_id)

            previous_stock = product.stock
            if type == TRANSACTION_IN:
                new_stock = previous_stock + quantity
            else:
                new_stock = previous_stock - quantity
                if new_stock < 0:
                    raise InsufficientStockError(product_id, available=previous_stock, requested=quantity)

            records = self.collection.load()
            tx = InventoryTransaction(
                id=_next_id(records),
                product_id=product_id,
                type=type,
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=new_stock,
                date=to_utc_z(self.clock()),
                user_id=user_id if user_id not in (None, "") else self.default_user_id,
                notes=notes or "",
            )
            records.append(tx.to_dict())
            self.collection.save(records)

            try:
                self.catalog.set_stock(product_id, new_stock)
            except (PersistenceError, NotFoundError) as exc:
                logger.error(
                    "Transaction %s persisted but stock write for product %s failed",
                    tx.id, product_id,
                )
                raise PartialCommitError(tx, exc) from exc

        logger.info(
            "Recorded %s transaction id=%s product=%s qty=%s stock %s -> %s",
            tx.type, tx.id, tx.product_id, tx.quantity, tx.previous_stock, tx.new_stock,
        )
        return tx

    def replay_stock_for(self, product_id: int, baseline: int = 0) -> int:
        """Fold the product's transactions in ascending id order over baseline."""
        return fold_stock(self.for_product(product_id), baseline=baseline)

    def check_drift(self, product_id: int) -> StockDrift:
        """
        Compare the catalog's stock with the ledger replay.

        The baseline is the stock the product had before the ledger first
        touched it (previousStock of its earliest transaction).
        """
        product = self.catalog.get_by_id(product_id)
        txs = self.for_product(product_id)
        baseline = txs[0].previous_stock if txs else product.stock
        return StockDrift(
            product_id=product_id,
            catalog_stock=product.stock,
            ledger_stock=fold_stock(txs, baseline=baseline),
            baseline=baseline,
            transaction_count=len(txs),
            repairable=any(tx.previous_stock == product.stock for tx in txs),
        )

    def replay_summary(self, product_id: int, baseline: Optional[int] = None) -> dict:
        """
        Replay a product's transactions for inspection.

        Works for products deleted from the catalog (catalog_stock is None).
        The default baseline is the previousStock of the first transaction.
        Ids with neither a product nor any history are a NotFoundError.
        """
        txs = self.for_product(product_id)
        try:
            product = self.catalog.get_by_id(product_id)
        except NotFoundError:
            if not txs:
                raise
            product = None

        if baseline is None:
            if txs:
                baseline = txs[0].previous_stock
            else:
                baseline = product.stock
        return {
            "product_id": product_id,
            "baseline": baseline,
            "transaction_count": len(txs),
            "replayed_stock": fold_stock(txs, baseline=baseline),
            "catalog_stock": product.stock if product is not None else None,
        }

    def reconcile(self, product_id: int) -> StockDrift:
        """
        Rewrite the catalog stock from the ledger after a partial commit.

        Only drift a failed catalog write can explain is repaired: the catalog
        must still hold the previousStock of one of the product's transactions.
        Anything else (for example history left by a deleted product whose id
        was reused) raises ValidationError and writes nothing.
        """
        with self.collection.lock():
            drift = self.check_drift(product_id)
            if drift.drifted:
                if not drift.repairable:
                    raise ValidationError(
                        f"stock drift for product {product_id} (catalog={drift.catalog_stock}, "
                        f"ledger={drift.ledger_stock}) is not explained by a failed stock write"
                    )
                coerce_non_negative_int("replayed stock", drift.ledger_stock)
                logger.warning(
                    "Stock drift for product %s: catalog=%s ledger=%s; repairing",
                    product_id, drift.catalog_stock, drift.ledger_stock,
                )
                self.catalog.set_stock(product_id, drift.ledger_stock)
        return drift
