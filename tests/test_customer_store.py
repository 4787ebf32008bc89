from datetime import datetime, timezone
from decimal import Decimal

import pytest

from luxeledger.schemas.customer import ManualCustomerRecord
from luxeledger.services.customer_store import (
    InMemoryCustomerBackend,
    JsonFileCustomerBackend,
    ManualCustomerStore,
)
from luxeledger.services.exceptions import PersistenceError

CREATED_AT = datetime(2025, 1, 15, 8, 0, tzinfo=timezone.utc)


def _record(record_id: str, name: str, **fields) -> ManualCustomerRecord:
    return ManualCustomerRecord(id=record_id, full_name=name, created_at=CREATED_AT, **fields)


class FailingBackend(InMemoryCustomerBackend):
    def __init__(self, records=()) -> None:
        super().__init__(records)
        self.fail = False

    def save_all(self, records) -> None:
        if self.fail:
            raise PersistenceError("disk full")
        super().save_all(records)


def test_json_backend_round_trips_records(tmp_path) -> None:
    path = tmp_path / "customers.json"
    backend = JsonFileCustomerBackend(path)
    records = [
        _record("cust-1", "Asha Rao", credit_limit=Decimal("25000.50"), gst_number="29AAAPL1234C1Z5"),
        _record("cust-2", "Kiran Das", notes="prefers UPI"),
    ]

    backend.save_all(records)
    loaded = JsonFileCustomerBackend(path).load_all()

    assert loaded == records
    assert not list(tmp_path.glob("*.tmp"))


def test_json_backend_missing_file_is_empty(tmp_path) -> None:
    assert JsonFileCustomerBackend(tmp_path / "absent.json").load_all() == []


def test_json_backend_corrupt_file_raises(tmp_path) -> None:
    path = tmp_path / "customers.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonFileCustomerBackend(path).load_all()


def test_json_backend_undecodable_file_raises(tmp_path) -> None:
    path = tmp_path / "customers.json"
    path.write_bytes(b'[{"full_name": "\xff\xfe"}]')

    with pytest.raises(PersistenceError):
        JsonFileCustomerBackend(path).load_all()

    with pytest.raises(PersistenceError):
        ManualCustomerStore(JsonFileCustomerBackend(path))


def test_json_backend_unwritable_location_raises(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonFileCustomerBackend(blocker / "customers.json").save_all([_record("cust-1", "Asha Rao")])


def test_store_loads_existing_records() -> None:
    backend = InMemoryCustomerBackend([_record("cust-1", "Asha Rao")])

    store = ManualCustomerStore(backend)

    assert [record.id for record in store.snapshot()] == ["cust-1"]
    assert store.get("cust-1") is not None
    assert store.get("missing") is None


def test_failed_save_leaves_memory_unchanged() -> None:
    backend = FailingBackend([_record("cust-1", "Asha Rao")])
    store = ManualCustomerStore(backend)
    backend.fail = True

    with pytest.raises(PersistenceError):
        with store.writer() as writer:
            writer.append(_record("cust-2", "Kiran Das"))

    with pytest.raises(PersistenceError):
        with store.writer() as writer:
            writer.remove("cust-1")

    assert [record.id for record in store.snapshot()] == ["cust-1"]
    assert [record.id for record in backend.load_all()] == ["cust-1"]


def test_writer_replace_and_remove() -> None:
    backend = InMemoryCustomerBackend([_record("cust-1", "Asha Rao"), _record("cust-2", "Kiran Das")])
    store = ManualCustomerStore(backend)

    with store.writer() as writer:
        writer.replace(_record("cust-1", "Asha Rao", email="asha@example.com"))
        assert writer.remove("cust-2") is True
        assert writer.remove("cust-404") is False

    [record] = backend.load_all()
    assert record.email == "asha@example.com"
    assert backend.save_count == 2


def test_new_ids_are_unique() -> None:
    ids = iter(["cust-1", "cust-1", "cust-2"])
    store = ManualCustomerStore(
        InMemoryCustomerBackend([_record("cust-1", "Asha Rao")]),
        id_factory=lambda: next(ids),
    )

    assert store.new_id() == "cust-2"
