"""Reconciliation engine tests against an in-memory canonical store."""

import pytest
from sqlalchemy.exc import OperationalError

from services.inventory.app import crud, models, schemas
from services.inventory.app.database import SessionLocal
from services.inventory.app.reconciliation import (
    ReconciliationError,
    ReconciliationValidationError,
    is_synthetic_product,
    pick_product_source,
    reconcile,
    resolve_target_zone,
)


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


def _request(action="increment", barcode="B1", zone=None, mutation_id=None, **product):
    return schemas.SyncRequest(
        action=action,
        barcode=barcode,
        zone=zone,
        product_data=schemas.ProductData(**product) if product else None,
        mutation_id=mutation_id,
    )


def _seed(db, **values):
    item = models.InventoryItem(
        user_id=values.pop("user_id", "user-1"),
        barcode=values.pop("barcode"),
        product=values.pop("product", "Widget"),
        colour=values.pop("colour", ""),
        size=values.pop("size", ""),
        zone=values.pop("zone"),
        quantity=values.pop("quantity", 0),
    )
    db.add(item)
    db.commit()
    return item


class TestTargetZone:
    def test_blank_zone_defaults_to_unassigned(self):
        assert resolve_target_zone(None) == "Unassigned"
        assert resolve_target_zone("") == "Unassigned"
        assert resolve_target_zone("   ") == "Unassigned"

    def test_zone_is_trimmed(self):
        assert resolve_target_zone("  A1 ") == "A1"


class TestProductSource:
    def test_synthetic_names(self):
        assert is_synthetic_product("Product-123")
        assert is_synthetic_product("")
        assert is_synthetic_product("  ")
        assert is_synthetic_product(None)
        assert not is_synthetic_product("Widget")

    def test_prefers_real_product_name(self):
        synthetic = models.InventoryItem(product="Product-B3", zone="A1")
        real = models.InventoryItem(product="Gadget", zone="A2")
        assert pick_product_source([synthetic, real]) is real

    def test_falls_back_to_first_record(self):
        first = models.InventoryItem(product="Product-B3", zone="A1")
        second = models.InventoryItem(product="", zone="A2")
        assert pick_product_source([first, second]) is first

    def test_no_records(self):
        assert pick_product_source([]) is None


class TestValidation:
    @pytest.mark.parametrize("action", [None, "", "explode", "INCREMENT"])
    def test_rejects_bad_action(self, db, action):
        with pytest.raises(ReconciliationValidationError) as exc_info:
            reconcile(db, "user-1", _request(action=action))
        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("barcode", [None, "", "   "])
    def test_rejects_missing_barcode(self, db, barcode):
        with pytest.raises(ReconciliationValidationError):
            reconcile(db, "user-1", _request(barcode=barcode))

    def test_nothing_written_on_validation_failure(self, db):
        with pytest.raises(ReconciliationValidationError):
            reconcile(db, "user-1", _request(action="explode"))
        assert db.query(models.InventoryItem).count() == 0


class TestCreation:
    def test_first_increment_creates_record(self, db):
        result = reconcile(db, "user-1", _request(zone="A1", product="Widget", colour="Red", size="M"))

        assert result.is_new_item is True
        assert result.item.quantity == 1
        assert result.item.zone == "A1"
        assert result.item.product == "Widget"
        assert result.item.colour == "Red"
        assert result.item.size == "M"
        assert result.item.low_stock_threshold == 5

    def test_first_decrement_creates_record_at_zero(self, db):
        result = reconcile(db, "user-1", _request(action="decrement", zone="A1"))

        assert result.is_new_item is True
        assert result.item.quantity == 0

    def test_missing_product_name_is_synthesized(self, db):
        result = reconcile(db, "user-1", _request(barcode="  B4 "))

        assert result.item.barcode == "B4"
        assert result.item.product == "Product-B4"
        assert result.item.zone == "Unassigned"


class TestUpdate:
    def test_second_increment_updates_same_record(self, db):
        first = reconcile(db, "user-1", _request(zone="A1"))
        second = reconcile(db, "user-1", _request(zone="A1"))

        assert second.is_new_item is False
        assert second.item.id == first.item.id
        assert second.item.quantity == 2
        assert db.query(models.InventoryItem).count() == 1

    def test_update_keeps_stored_metadata(self, db):
        _seed(db, barcode="B1", zone="A1", product="Widget", quantity=3)

        result = reconcile(db, "user-1", _request(zone="A1", product="Something else"))

        assert result.item.product == "Widget"
        assert result.item.quantity == 4

    def test_decrement_floors_at_zero(self, db):
        for _ in range(4):
            result = reconcile(db, "user-1", _request(action="decrement", zone="A1"))
            assert result.item.quantity == 0

        assert db.query(models.InventoryItem).count() == 1

    def test_decrement_reduces_quantity(self, db):
        _seed(db, barcode="B1", zone="A1", quantity=2)

        result = reconcile(db, "user-1", _request(action="decrement", zone="A1"))

        assert result.item.quantity == 1
        assert result.is_new_item is False


class TestZoneMigration:
    def test_new_zone_inherits_metadata(self, db):
        _seed(db, barcode="B2", zone="A1", product="Widget", colour="Blue", size="L", quantity=3)

        result = reconcile(db, "user-1", _request(barcode="B2", zone="B2-zone", product="", colour="", size=""))

        assert result.is_new_item is True
        assert result.item.zone == "B2-zone"
        assert result.item.product == "Widget"
        assert result.item.colour == "Blue"
        assert result.item.size == "L"
        assert result.item.quantity == 1

        original = crud.get_items_for_barcode(db, "user-1", "B2")[0]
        assert original.zone == "A1"
        assert original.quantity == 3

    def test_inherits_from_real_name_over_synthetic(self, db):
        _seed(db, barcode="B3", zone="A1", product="Product-B3")
        _seed(db, barcode="B3", zone="A2", product="Gadget")

        result = reconcile(db, "user-1", _request(barcode="B3", zone="A3"))

        assert result.item.product == "Gadget"

    def test_blank_inherited_fields_fall_back_to_request(self, db):
        _seed(db, barcode="B5", zone="A1", product="Widget", colour="", size="")

        result = reconcile(db, "user-1", _request(barcode="B5", zone="A2", product="", colour="Green", size="S"))

        assert result.item.product == "Widget"
        assert result.item.colour == "Green"
        assert result.item.size == "S"

    def test_decrement_in_new_zone_starts_at_zero(self, db):
        _seed(db, barcode="B2", zone="A1", quantity=3)

        result = reconcile(db, "user-1", _request(action="decrement", barcode="B2", zone="A2"))

        assert result.is_new_item is True
        assert result.item.quantity == 0


class TestUserScoping:
    def test_records_are_per_user(self, db):
        reconcile(db, "user-1", _request(zone="A1", product="Widget"))
        result = reconcile(db, "user-2", _request(zone="A1"))

        assert result.is_new_item is True
        assert result.item.user_id == "user-2"
        assert result.item.product == "Product-B1"


class TestIdempotentReplay:
    def test_same_mutation_id_applies_once(self, db):
        first = reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))
        replay = reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))

        assert replay.replayed is True
        assert replay.is_new_item is False
        assert replay.item.id == first.item.id
        assert replay.item.quantity == 1

    def test_mutation_ids_are_per_user(self, db):
        reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))
        other = reconcile(db, "user-2", _request(zone="A1", mutation_id="scan_1"))

        assert other.replayed is False
        assert other.item.user_id == "user-2"

    def test_requests_without_mutation_id_always_apply(self, db):
        reconcile(db, "user-1", _request(zone="A1"))
        result = reconcile(db, "user-1", _request(zone="A1"))

        assert result.item.quantity == 2
        assert db.query(models.AppliedMutation).count() == 0


    def test_mutation_for_deleted_record_applies_again(self, db):
        first = reconcile(db, "user-1", _request(zone="A1", mutation_id="m-1"))
        db.delete(first.item)
        db.commit()

        result = reconcile(db, "user-1", _request(zone="A1", mutation_id="m-1"))

        assert result.replayed is False
        assert result.is_new_item is True
        assert result.item.quantity == 1
        ledger = db.query(models.AppliedMutation).all()
        assert [(entry.mutation_id, entry.item_id) for entry in ledger] == [("m-1", result.item.id)]

        replay = reconcile(db, "user-1", _request(zone="A1", mutation_id="m-1"))
        assert replay.replayed is True
        assert replay.item.quantity == 1


class TestActivityLog:
    def test_each_change_is_logged(self, db):
        reconcile(db, "user-1", _request(zone="A1", product="Widget"))
        reconcile(db, "user-1", _request(action="decrement", zone="A1"))

        logs = db.query(models.ActivityLog).order_by(models.ActivityLog.id).all()
        assert [log.action_type for log in logs] == ["inventory_increment", "inventory_decrement"]
        assert logs[0].old_quantity is None
        assert logs[0].new_quantity == 1
        assert logs[1].old_quantity == 1
        assert logs[1].new_quantity == 0
        assert "Widget" in logs[0].description

    def test_replay_is_not_logged(self, db):
        reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))
        reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))

        assert db.query(models.ActivityLog).count() == 1


class TestStoreFailures:
    def test_concurrent_create_is_retried_as_update(self, db, monkeypatch):
        _seed(db, barcode="B1", zone="A1", quantity=1)
        real_lookup = crud.get_items_for_barcode
        calls = []

        def stale_lookup(session, user_id, barcode):
            calls.append(barcode)
            # First read misses the record another request just created
            if len(calls) == 1:
                return []
            return real_lookup(session, user_id, barcode)

        monkeypatch.setattr(crud, "get_items_for_barcode", stale_lookup)

        result = reconcile(db, "user-1", _request(zone="A1"))

        assert len(calls) == 2
        assert result.is_new_item is False
        assert result.item.quantity == 2
        assert db.query(models.InventoryItem).count() == 1

    def test_write_failure_surfaces_as_reconciliation_error(self, db, monkeypatch):
        def broken_create(session, item):
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(crud, "create_inventory_item", broken_create)

        with pytest.raises(ReconciliationError) as exc_info:
            reconcile(db, "user-1", _request(zone="A1"))

        assert exc_info.value.code == "SYNC_INVENTORY_ERROR"
        assert exc_info.value.status_code == 500
        assert db.query(models.InventoryItem).count() == 0

    def test_record_removed_mid_update_surfaces_as_reconciliation_error(self, db, monkeypatch):
        _seed(db, barcode="B1", zone="A1", quantity=1)
        monkeypatch.setattr(crud, "adjust_quantity", lambda session, item_id, action: None)

        with pytest.raises(ReconciliationError) as exc_info:
            reconcile(db, "user-1", _request(zone="A1", mutation_id="scan_1"))

        assert exc_info.value.code == "SYNC_INVENTORY_ERROR"
        assert "removed during update" in exc_info.value.message
        assert db.query(models.AppliedMutation).count() == 0
        assert db.query(models.ActivityLog).count() == 0
