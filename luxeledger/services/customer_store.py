"""Persistence for operator-maintained customer records."""

from __future__ import annotations

import itertools
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Protocol, Sequence

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from luxeledger.schemas.customer import ManualCustomerRecord
from luxeledger.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[ManualCustomerRecord])


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerStoreBackend(Protocol):
    def load_all(self) -> List[ManualCustomerRecord]:
        ...

    def save_all(self, records: Sequence[ManualCustomerRecord]) -> None:
        ...


class InMemoryCustomerBackend:
    def __init__(self, records: Sequence[ManualCustomerRecord] = ()) -> None:
        self._records = [record.model_copy() for record in records]
        self.save_count = 0

    def load_all(self) -> List[ManualCustomerRecord]:
        return [record.model_copy() for record in self._records]

    def save_all(self, records: Sequence[ManualCustomerRecord]) -> None:
        self._records = [record.model_copy() for record in records]
        self.save_count += 1


class JsonFileCustomerBackend:
    """Stores all records as one JSON array, replaced atomically on save."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    def load_all(self) -> List[ManualCustomerRecord]:
        if not self._path.exists():
            return []
        try:
            raw = self._path.read_text(encoding="utf-8")
            if not raw.strip():
                return []
            return _records_adapter.validate_json(raw)
        except (OSError, UnicodeDecodeError, SchemaValidationError) as exc:
            logger.exception("Failed to load manual customers from %s", self._path)
            raise PersistenceError(f"Failed to load customers from {self._path}", cause=exc) from exc

    def save_all(self, records: Sequence[ManualCustomerRecord]) -> None:
        payload = _records_adapter.dump_python(list(records), mode="json")
        directory = self._path.parent
        tmp_name: Optional[str] = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=directory,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(payload, handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.exception("Failed to save manual customers to %s", self._path)
            raise PersistenceError(f"Failed to save customers to {self._path}", cause=exc) from exc


class ManualCustomerStore:
    """In-memory view of the manual customers, kept in step with a backend.

    Mutations run under a single writer lock. Each one builds the next list of
    records, asks the backend to save it and only then swaps it in, so a
    failed save leaves memory and storage agreeing on the previous state.
    """

    def __init__(
        self,
        backend: CustomerStoreBackend,
        *,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._backend = backend
        self._lock = threading.RLock()
        self._clock = clock
        self._id_factory = id_factory or self._default_id_factory()
        self._records: List[ManualCustomerRecord] = list(backend.load_all())
        logger.info("Loaded %d manual customer(s)", len(self._records))

    @staticmethod
    def _default_id_factory() -> Callable[[], str]:
        stamp = int(_utc_now().timestamp() * 1000)
        counter = itertools.count(1)
        return lambda: f"cust-{stamp}-{next(counter):04d}"

    def now(self) -> datetime:
        return self._clock()

    def new_id(self) -> str:
        existing = {record.id for record in self._records}
        while True:
            candidate = self._id_factory()
            if candidate not in existing:
                return candidate

    def snapshot(self) -> List[ManualCustomerRecord]:
        with self._lock:
            return list(self._records)

    def get(self, customer_id: str) -> Optional[ManualCustomerRecord]:
        with self._lock:
            for record in self._records:
                if record.id == customer_id:
                    return record
        return None

    @contextmanager
    def writer(self) -> Iterator["_StoreWriter"]:
        """Hold the writer lock for a check-then-mutate sequence."""

        with self._lock:
            yield _StoreWriter(self)

    def _commit(self, records: List[ManualCustomerRecord]) -> None:
        self._backend.save_all(records)
        self._records = records


class _StoreWriter:
    def __init__(self, store: ManualCustomerStore) -> None:
        self._store = store

    @property
    def records(self) -> List[ManualCustomerRecord]:
        return list(self._store._records)

    def append(self, record: ManualCustomerRecord) -> None:
        self._store._commit(self.records + [record])

    def replace(self, record: ManualCustomerRecord) -> None:
        updated = [record if current.id == record.id else current for current in self._store._records]
        self._store._commit(updated)

    def remove(self, customer_id: str) -> bool:
        remaining = [record for record in self._store._records if record.id != customer_id]
        if len(remaining) == len(self._store._records):
            return False
        self._store._commit(remaining)
        return True
