# Overview: Pytest coverage for the transaction ledger (append, replay, reconciliation).

"""
Ledger tests

Covers:
- Stock movement scenarios (in/out, insufficient stock, id assignment)
- Input validation happening before any write
- Replay invariant: folding a product's transactions reproduces its stock
- Orphaned references after product deletion
- Partial-failure window between the ledger and catalog writes
- Drift detection and repair
"""

import dataclasses
from datetime import datetime

import pytest

from pharmacy_inventory.models import InventoryTransaction
from pharmacy_inventory.services.kv_store import PersistenceError
from pharmacy_inventory.services.ledger_service import (
    InsufficientStockError,
    PartialCommitError,
    fold_stock,
)
from pharmacy_inventory.validation import NotFoundError, ValidationError


class TestAppendScenarios:
    def test_out_reduces_stock(self, ledger, catalog, make_product):
        product = make_product(stock=100, reorderLevel=20)

        tx = ledger.append(product.id, "out", 30)

        assert tx.previous_stock == 100
        assert tx.new_stock == 70
        assert catalog.get_by_id(product.id).stock == 70

    def test_out_beyond_stock_is_rejected_without_effect(self, ledger, catalog, make_product):
        product = make_product(stock=100, reorderLevel=20)
        ledger.append(product.id, "out", 30)

        with pytest.raises(InsufficientStockError) as exc:
            ledger.append(product.id, "out", 80)

        assert exc.value.available == 70
        assert exc.value.requested == 80
        assert exc.value.product_id == product.id
        assert catalog.get_by_id(product.id).stock == 70
        assert len(ledger.list()) == 1

    def test_out_of_entire_stock_is_allowed(self, ledger, catalog, make_product):
        product = make_product(stock=5)

        tx = ledger.append(product.id, "out", 5)

        assert tx.new_stock == 0
        assert catalog.get_by_id(product.id).stock == 0

    def test_first_transaction_gets_id_one(self, ledger, make_product):
        product = make_product(stock=0)

        tx = ledger.append(product.id, "in", 5)

        assert tx.id == 1
        assert tx.new_stock == 5

    def test_ids_increment_and_dates_come_from_clock(self, ledger, make_product, clock):
        product = make_product(stock=10)
        clock.now = datetime(2025, 4, 9, 12, 0, 0)

        first = ledger.append(product.id, "in", 1)
        second = ledger.append(product.id, "out", 2)

        assert (first.id, second.id) == (1, 2)
        assert first.date == "2025-04-09T12:00:00.000Z"
        assert second.date > first.date

    def test_ids_continue_after_existing_records(self, store, inventory, make_product):
        product = make_product(stock=10)
        store.set(inventory.transactions.key, {"transactions": [
            {"id": 3, "productId": product.id, "type": "in", "quantity": 1,
             "previousStock": 9, "newStock": 10, "date": "2024-04-01T09:15:30Z", "userId": 2},
            {"id": 7, "productId": 99, "type": "out", "quantity": 1,
             "previousStock": 1, "newStock": 0, "date": "2024-04-02T09:15:30Z", "userId": 2},
        ]})

        assert inventory.ledger.append(product.id, "in", 1).id == 8

    def test_default_and_explicit_user(self, ledger, make_product):
        product = make_product(stock=10)

        default = ledger.append(product.id, "in", 1)
        explicit = ledger.append(product.id, "in", 1, notes="Received from supplier", user_id=7)

        assert default.user_id == 1
        assert default.notes == ""
        assert explicit.user_id == 7
        assert explicit.notes == "Received from supplier"

    def test_append_refreshes_last_updated(self, ledger, catalog, make_product, clock):
        product = make_product(stock=10)
        clock.now = clock.now.replace(year=2025, month=6, day=1)

        ledger.append(product.id, "in", 1)

        assert catalog.get_by_id(product.id).last_updated == "2025-06-01"

    def test_transactions_are_immutable(self, ledger, make_product):
        tx = ledger.append(make_product(stock=10).id, "in", 1)

        with pytest.raises(dataclasses.FrozenInstanceError):
            tx.quantity = 1000


class TestAppendValidation:
    @pytest.mark.parametrize("quantity", [0, -3, 1.5, True, "5", None])
    def test_bad_quantity(self, ledger, catalog, make_product, quantity):
        product = make_product(stock=10)

        with pytest.raises(ValidationError):
            ledger.append(product.id, "in", quantity)

        assert ledger.list() == []
        assert catalog.get_by_id(product.id).stock == 10

    @pytest.mark.parametrize("tx_type", ["adjust", "IN", "", None])
    def test_bad_type(self, ledger, make_product, tx_type):
        product = make_product(stock=10)

        with pytest.raises(ValidationError):
            ledger.append(product.id, tx_type, 1)

        assert ledger.list() == []

    def test_unknown_product(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.append(404, "in", 1)

        assert ledger.list() == []

    def test_non_integer_product_id(self, ledger):
        with pytest.raises(ValidationError):
            ledger.append("1", "in", 1)


class TestReplay:
    def test_replay_reproduces_catalog_stock(self, ledger, catalog, make_product):
        product = make_product(stock=40)
        movements = [("in", 10), ("out", 25), ("out", 5), ("in", 100), ("out", 120), ("in", 3)]

        for tx_type, qty in movements:
            ledger.append(product.id, tx_type, qty)

        assert ledger.replay_stock_for(product.id, baseline=40) == catalog.get_by_id(product.id).stock == 3

    def test_replay_ignores_other_products(self, ledger, make_product):
        a = make_product(name="A", stock=0)
        b = make_product(name="B", stock=50)
        ledger.append(a.id, "in", 7)
        ledger.append(b.id, "out", 20)
        ledger.append(a.id, "out", 2)

        assert ledger.replay_stock_for(a.id) == 5
        assert ledger.replay_stock_for(b.id, baseline=50) == 30

    def test_each_entry_chains_from_the_previous(self, ledger, make_product):
        product = make_product(stock=12)
        for qty in (3, 4, 5):
            ledger.append(product.id, "out", qty)

        txs = ledger.for_product(product.id)
        assert [tx.id for tx in txs] == [1, 2, 3]
        for earlier, later in zip(txs, txs[1:]):
            assert later.previous_stock == earlier.new_stock

    def test_fold_in_storage_order_uses_id_order(self, store, inventory, make_product):
        product = make_product(stock=0)
        store.set(inventory.transactions.key, {"transactions": [
            {"id": 2, "productId": product.id, "type": "out", "quantity": 4,
             "previousStock": 10, "newStock": 6, "date": "2024-04-02T00:00:00Z"},
            {"id": 1, "productId": product.id, "type": "in", "quantity": 10,
             "previousStock": 0, "newStock": 10, "date": "2024-04-01T00:00:00Z"},
        ]})

        assert [tx.id for tx in inventory.ledger.for_product(product.id)] == [1, 2]
        assert inventory.ledger.replay_stock_for(product.id) == 6

    def test_fold_stock_over_empty_sequence(self):
        assert fold_stock([], baseline=17) == 17


class TestOrphanedReferences:
    def test_deleting_product_keeps_its_history(self, ledger, catalog, make_product):
        product = make_product(stock=10)
        ledger.append(product.id, "out", 4)

        catalog.delete(product.id)

        assert [tx.product_id for tx in ledger.list()] == [product.id]
        assert ledger.replay_stock_for(product.id, baseline=10) == 6

    def test_cannot_append_for_deleted_product(self, ledger, catalog, make_product):
        product = make_product(stock=10)
        catalog.delete(product.id)

        with pytest.raises(NotFoundError):
            ledger.append(product.id, "in", 1)


class TestPartialFailure:
    def test_ledger_write_failure_has_no_effect(self, ledger, catalog, store, make_product):
        product = make_product(stock=10)
        store.failing_keys.add(ledger.collection.key)

        with pytest.raises(PersistenceError):
            ledger.append(product.id, "out", 3)

        store.failing_keys.clear()
        assert ledger.list() == []
        assert catalog.get_by_id(product.id).stock == 10

    def test_catalog_write_failure_raises_partial_commit(self, ledger, catalog, store, make_product):
        product = make_product(stock=10)
        store.failing_keys.add(catalog.collection.key)

        with pytest.raises(PartialCommitError) as exc:
            ledger.append(product.id, "out", 3)

        store.failing_keys.clear()
        tx = exc.value.transaction
        assert isinstance(tx, InventoryTransaction)
        assert isinstance(exc.value.cause, PersistenceError)
        assert ledger.list() == [tx]
        assert catalog.get_by_id(product.id).stock == 10

    def test_reconcile_repairs_partial_commit(self, ledger, catalog, store, make_product):
        product = make_product(stock=10)
        ledger.append(product.id, "in", 5)
        store.failing_keys.add(catalog.collection.key)
        with pytest.raises(PartialCommitError):
            ledger.append(product.id, "out", 3)
        store.failing_keys.clear()

        drift = ledger.check_drift(product.id)
        assert drift.drifted
        assert (drift.catalog_stock, drift.ledger_stock, drift.baseline) == (15, 12, 10)

        repaired = ledger.reconcile(product.id)
        assert repaired.drifted
        assert catalog.get_by_id(product.id).stock == 12
        assert not ledger.check_drift(product.id).drifted


class TestDriftDetection:
    def test_no_transactions_means_no_drift(self, ledger, make_product):
        product = make_product(stock=25)

        drift = ledger.check_drift(product.id)

        assert not drift.drifted
        assert drift.baseline == 25
        assert drift.transaction_count == 0

    def test_reconcile_without_drift_is_a_no_op(self, ledger, catalog, make_product):
        product = make_product(stock=25)
        ledger.append(product.id, "out", 5)
        before = catalog.get_by_id(product.id)

        drift = ledger.reconcile(product.id)

        assert not drift.drifted
        assert catalog.get_by_id(product.id) == before

    def test_reconcile_refuses_negative_replay(self, store, inventory, make_product):
        product = make_product(stock=1)
        store.set(inventory.transactions.key, {"transactions": [
            {"id": 1, "productId": product.id, "type": "out", "quantity": 5,
             "previousStock": 1, "newStock": -4, "date": "2024-04-01T00:00:00Z"},
        ]})

        with pytest.raises(ValidationError):
            inventory.ledger.reconcile(product.id)

        assert inventory.catalog.get_by_id(product.id).stock == 1

    def test_get_by_id(self, ledger, make_product):
        tx = ledger.append(make_product(stock=3).id, "in", 2)

        assert ledger.get_by_id(tx.id) == tx
        with pytest.raises(NotFoundError):
            ledger.get_by_id(tx.id + 1)


class TestReusedProductIds:
    def test_reconcile_refuses_history_of_deleted_product(self, ledger, catalog, make_product):
        make_product(name="A", stock=10)
        old = make_product(name="B", stock=50)
        ledger.append(old.id, "out", 20)
        catalog.delete(old.id)

        new = make_product(name="C", stock=5)
        assert new.id == old.id

        drift = ledger.check_drift(new.id)
        assert drift.drifted
        assert not drift.repairable

        with pytest.raises(ValidationError):
            ledger.reconcile(new.id)

        assert catalog.get_by_id(new.id).stock == 5

    def test_partial_commit_is_repairable(self, ledger, catalog, store, make_product):
        product = make_product(stock=10)
        store.failing_keys.add(catalog.collection.key)
        with pytest.raises(PartialCommitError):
            ledger.append(product.id, "in", 5)
        with pytest.raises(PartialCommitError):
            ledger.append(product.id, "in", 5)
        store.failing_keys.clear()

        drift = ledger.check_drift(product.id)

        assert drift.repairable
        assert drift.to_dict()["repairable"] is True
        assert ledger.reconcile(product.id).ledger_stock == 20
        assert catalog.get_by_id(product.id).stock == 20


class TestReplaySummary:
    def test_summary_for_live_product(self, ledger, make_product):
        product = make_product(stock=10)
        ledger.append(product.id, "out", 4)

        assert ledger.replay_summary(product.id) == {
            "product_id": product.id,
            "baseline": 10,
            "transaction_count": 1,
            "replayed_stock": 6,
            "catalog_stock": 6,
        }

    def test_summary_for_deleted_product(self, ledger, catalog, make_product):
        product = make_product(stock=10)
        ledger.append(product.id, "out", 4)
        catalog.delete(product.id)

        summary = ledger.replay_summary(product.id)
        assert summary["catalog_stock"] is None
        assert summary["replayed_stock"] == 6
        assert ledger.replay_summary(product.id, baseline=0)["replayed_stock"] == -4

    def test_summary_for_unknown_id(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.replay_summary(404)


class TestMalformedLedger:
    @pytest.mark.parametrize("record", [
        {"id": 1, "productId": 1, "quantity": 2, "date": "2024-04-01T00:00:00Z"},
        {"id": 1, "productId": 1, "type": "in", "date": "2024-04-01T00:00:00Z"},
        {"id": 1, "productId": 1, "type": "in", "quantity": "many", "date": "2024-04-01T00:00:00Z"},
    ])
    def test_bad_record_surfaces_as_persistence_error(self, store, inventory, record):
        store.set(inventory.transactions.key, {"transactions": [record]})

        with pytest.raises(PersistenceError) as exc:
            inventory.ledger.list()

        assert exc.value.key == inventory.transactions.key
