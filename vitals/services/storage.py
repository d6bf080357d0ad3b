"""
Persistence of the record list and dashboard settings.

State lives in a flat key-value store holding JSON strings, one key for the
record list and one for the settings. The store is read once at startup and
rewritten synchronously after every change.
"""

import json
import os
from collections.abc import Sequence
from typing import Protocol

import structlog
from pydantic import ConfigDict, TypeAdapter, ValidationError

from vitals.domain.models import DashboardSettings, MetricRecord
from vitals.services.result import Result

logger = structlog.get_logger(__name__)

_RECORDS = TypeAdapter(list[MetricRecord], config=ConfigDict(ser_json_inf_nan="constants"))


class StorageError(Exception):
    """A stored payload could not be decoded."""


class KeyValueStore(Protocol):
    """
    Protocol for a flat string-to-string store.

    Implementations: InMemoryStore, JsonFileStore.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryStore:
    """Store kept in a dict; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Store backed by a single JSON object on disk, rewritten on every change."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.logger = logger.bind(component="json_file_store", path=path)

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            self.logger.warning("store_file_unreadable", error=str(e))
            return {}
        if not isinstance(data, dict):
            self.logger.warning("store_file_not_an_object", type=type(data).__name__)
            return {}
        return data

    def _save(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


class RecordRepository:
    """Reads and writes the record list and settings through a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        records_key: str = "healthMetrics",
        settings_key: str = "healthSettings",
    ) -> None:
        self.store = store
        self.records_key = records_key
        self.settings_key = settings_key
        self.logger = logger.bind(component="record_repository")

    def load_records(self) -> Result[list[MetricRecord], StorageError]:
        """Records in stored order; an absent key means no records yet."""
        raw = self.store.get(self.records_key)
        if raw is None:
            return Result.ok([])
        try:
            records = _RECORDS.validate_json(raw)
        except ValidationError as e:
            self.logger.error("records_load_failed", key=self.records_key, errors=e.error_count())
            return Result.err(
                StorageError(f"Stored records under {self.records_key!r} are invalid")
            )

        self.logger.info("records_loaded", count=len(records))
        return Result.ok(records)

    def save_records(self, records: Sequence[MetricRecord]) -> None:
        self.store.set(self.records_key, _RECORDS.dump_json(list(records)).decode())
        self.logger.debug("records_saved", count=len(records))

    def load_settings(self) -> Result[DashboardSettings, StorageError]:
        raw = self.store.get(self.settings_key)
        if raw is None:
            return Result.ok(DashboardSettings())
        try:
            settings = DashboardSettings.model_validate_json(raw)
        except ValidationError as e:
            self.logger.error(
                "settings_load_failed", key=self.settings_key, errors=e.error_count()
            )
            return Result.err(
                StorageError(f"Stored settings under {self.settings_key!r} are invalid")
            )
        return Result.ok(settings)

    def save_settings(self, settings: DashboardSettings) -> None:
        self.store.set(self.settings_key, settings.model_dump_json())

    def clear(self) -> None:
        """Remove everything this repository owns from the store."""
        self.store.delete(self.records_key)
        self.store.delete(self.settings_key)
        self.logger.info("storage_cleared")
