from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Optional

TRANSACTION_IN = "in"
TRANSACTION_OUT = "out"
TRANSACTION_TYPES = (TRANSACTION_IN, TRANSACTION_OUT)


@dataclass
class Product:
    """
    Product master data plus its materialized stock level.

    stock is derivable from the transaction ledger; it is cached here for
    fast reads and is only written through TransactionLedger.append (via
    ProductCatalog.set_stock). JSON keys are camelCase, matching the
    persisted catalog document.
    """
    id: int
    name: str
    category: str
    supplier: str
    unit: str
    price: Decimal
    description: str = ""
    stock: int = 0
    reorder_level: int = 0
    unit_count: int = 1
    expiry_date: Optional[str] = None
    last_updated: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.reorder_level

    def with_stock(self, stock: int, last_updated: str) -> "Product":
        return replace(self, stock=stock, last_updated=last_updated)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "supplier": self.supplier,
            "unit": self.unit,
            "stock": self.stock,
            # decimal string keeps the price exact across JSON round-trips
            "price": str(self.price),
            "reorderLevel": self.reorder_level,
            "unitCount": self.unit_count,
            "expiryDate": self.expiry_date,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            category=data.get("category", ""),
            description=data.get("description") or "",
            supplier=data.get("supplier", ""),
            unit=data.get("unit", ""),
            stock=int(data.get("stock", 0)),
            price=Decimal(str(data.get("price", "0"))),
            reorder_level=int(data.get("reorderLevel", 0)),
            unit_count=int(data.get("unitCount", 1)),
            expiry_date=data.get("expiryDate"),
            last_updated=data.get("lastUpdated"),
        )


@dataclass(frozen=True)
class InventoryTransaction:
    """
    Immutable ledger entry. Corrections are new compensating entries.

    date is kept as the persisted ISO-8601 string; readers parse it and must
    tolerate malformed values in historical data.
    """
    id: int
    product_id: int
    type: str
    quantity: int
    previous_stock: int
    new_stock: int
    date: str
    user_id: Any = 1
    notes: str = ""

    @property
    def delta(self) -> int:
        return self.quantity if self.type == TRANSACTION_IN else -self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "type": self.type,
            "quantity": self.quantity,
            "previousStock": self.previous_stock,
            "newStock": self.new_stock,
            "date": self.date,
            "userId": self.user_id,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InventoryTransaction":
        quantity = int(data["quantity"])
        previous = int(data.get("previousStock", 0))
        delta = quantity if data["type"] == TRANSACTION_IN else -quantity
        return cls(
            id=int(data["id"]),
            product_id=int(data["productId"]),
            type=data["type"],
            quantity=quantity,
            previous_stock=previous,
            new_stock=int(data.get("newStock", previous + delta)),
            date=str(data.get("date", "")),
            user_id=data.get("userId", 1),
            notes=data.get("notes") or "",
        )
