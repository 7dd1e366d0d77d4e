# backend/pharmacy_inventory/services/catalog_service.py
"""
Product catalog: current-state table of products and their stock.

- Products live in one document ({"products": [...]}) in insertion order.
- Ids are max(existing) + 1, or 1 for an empty catalog, and never change.
- stock is a materialized view of the ledger. create() sets the opening
  stock; afterwards only set_stock(), called by TransactionLedger.append,
  may change it.
- delete() never touches the ledger; transactions for a deleted product
  remain as orphaned references.
"""
from __future__ import annotations

import logging
from typing import Callable

from ..models import Product
from ..time_utils import today_iso, utcnow
from ..validation import NotFoundError, ValidationError, coerce_non_negative_int, validate_product_payload
from .documents import DocumentCollection

logger = logging.getLogger(__name__)


class ProductCatalog:
    def __init__(self, collection: DocumentCollection, *, clock: Callable = utcnow):
        self.collection = collection
        self.clock = clock

    def _load(self) -> list[Product]:
        return [Product.from_dict(r) for r in self.collection.load()]

    def _save(self, products: list[Product]) -> None:
        self.collection.save([p.to_dict() for p in products])

    @staticmethod
    def _index_of(products: list[Product], product_id: int) -> int:
        for i, p in enumerate(products):
            if p.id == product_id:
                return i
        raise NotFoundError("Product", product_id)

    def list(self) -> list[Product]:
        return self._load()

    def get_by_id(self, product_id: int) -> Product:
        products = self._load()
        return products[self._index_of(products, product_id)]

    def search(self, term: str = "", category: str = "") -> list[Product]:
        """Case-insensitive name/description match, optionally within one category."""
        products = self._load()
        term = (term or "").strip().lower()
        if term:
            products = [
                p for p in products
                if term in p.name.lower() or term in p.description.lower()
            ]
        if category:
            products = [p for p in products if p.category == category]
        return products

    def categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for p in self._load():
            seen.setdefault(p.category, None)
        return list(seen)

    def create(self, data: dict) -> Product:
        fields = validate_product_payload(data)

        with self.collection.lock():
            products = self._load()
            new_id = max((p.id for p in products), default=0) + 1
            product = Product(id=new_id, last_updated=today_iso(self.clock()), **fields)
            products.append(product)
            self._save(products)

        logger.info("Created product id=%s name=%r stock=%s", product.id, product.name, product.stock)
        return product

    def update(self, product_id: int, data: dict) -> Product:
        """
        Replace every mutable field except stock.

        stock is carried over from the current record; a payload that tries
        to change it is rejected because stock edits must go through the ledger.
        """
        fields = validate_product_payload(data)

        with self.collection.lock():
            products = self._load()
            idx = self._index_of(products, product_id)
            current = products[idx]

            if data.get("stock") is not None and fields["stock"] != current.stock:
                raise ValidationError(
                    "stock cannot be edited directly; record an inventory transaction instead"
                )
            fields["stock"] = current.stock

            updated = Product(id=current.id, last_updated=today_iso(self.clock()), **fields)
            products[idx] = updated
            self._save(products)

        logger.info("Updated product id=%s", product_id)
        return updated

    def delete(self, product_id: int) -> Product:
        with self.collection.lock():
            products = self._load()
            removed = products.pop(self._index_of(products, product_id))
            self._save(products)

        logger.info("Deleted product id=%s", product_id)
        return removed

    def set_stock(self, product_id: int, new_stock: int) -> Product:
        """
        Write the materialized stock value.

        Ledger-only: TransactionLedger.append and reconcile() are the callers.
        No route or CLI command exposes this.
        """
        new_stock = coerce_non_negative_int("stock", new_stock)

        with self.collection.lock():
            products = self._load()
            idx = self._index_of(products, product_id)
            products[idx] = products[idx].with_stock(new_stock, today_iso(self.clock()))
            self._save(products)
            return products[idx]
