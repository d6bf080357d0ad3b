"""
Application state for the health tracker.

Key patterns:
- One immutable TrackerState owned by a single HealthTracker
- Every change expressed as an Action and applied by `apply_action`
- Persistence happens synchronously after each dispatched action
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from vitals.config import AnalysisConfig, AppConfig, configure_logging, get_config
from vitals.domain.models import (
    ClassificationResult,
    DashboardSettings,
    MetricKind,
    MetricRecord,
    PatternInsight,
    Profile,
)
from vitals.services.classifier import classify
from vitals.services.insights import aggregate, latest_by_kind
from vitals.services.storage import (
    InMemoryStore,
    JsonFileStore,
    KeyValueStore,
    RecordRepository,
)

logger = structlog.get_logger(__name__)


class TrackerState(BaseModel):
    """Snapshot of everything the tracker knows. Records are kept newest first."""

    model_config = ConfigDict(frozen=True)

    records: tuple[MetricRecord, ...] = ()
    settings: DashboardSettings = Field(default_factory=DashboardSettings)


class AddRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["add_record"] = "add_record"
    record: MetricRecord


class DeleteRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["delete_record"] = "delete_record"
    record_id: str


class UpdateProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["update_profile"] = "update_profile"
    profile: Profile | None


class ReorderMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["reorder_metrics"] = "reorder_metrics"
    order: list[MetricKind]


class SetMetricVisibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["set_metric_visibility"] = "set_metric_visibility"
    kind: MetricKind
    visible: bool


class ResetData(BaseModel):
    """Forget all readings and settings."""

    model_config = ConfigDict(frozen=True)

    type: Literal["reset_data"] = "reset_data"


Action = AddRecord | DeleteRecord | UpdateProfile | ReorderMetrics | SetMetricVisibility | ResetData


def apply_action(state: TrackerState, action: Action) -> TrackerState:
    """Return the state that results from applying one action. Pure."""
    if isinstance(action, AddRecord):
        if any(r.id == action.record.id for r in state.records):
            raise ValueError(f"Record {action.record.id} already exists")
        return state.model_copy(update={"records": (action.record, *state.records)})

    if isinstance(action, DeleteRecord):
        remaining = tuple(r for r in state.records if r.id != action.record_id)
        return state.model_copy(update={"records": remaining})

    if isinstance(action, UpdateProfile):
        settings = state.settings.model_copy(update={"profile": action.profile})
        return state.model_copy(update={"settings": settings})

    if isinstance(action, ReorderMetrics):
        # Built fresh so an incomplete order is rejected
        settings = DashboardSettings(
            metric_order=action.order,
            visibility=state.settings.visibility,
            profile=state.settings.profile,
        )
        return state.model_copy(update={"settings": settings})

    if isinstance(action, SetMetricVisibility):
        visibility = {**state.settings.visibility, action.kind: action.visible}
        settings = state.settings.model_copy(update={"visibility": visibility})
        return state.model_copy(update={"settings": settings})

    if isinstance(action, ResetData):
        return TrackerState()

    raise TypeError(f"Unsupported action: {type(action).__name__}")


class HealthTracker:
    """
    Owns the tracker state and routes every change through `dispatch`.

    Design principles:
    - Single owner: views read state, they never mutate it
    - Persist after each change so storage mirrors memory
    - Classification and insights are recomputed from the current snapshot
    """

    def __init__(
        self, repository: RecordRepository, analysis: AnalysisConfig | None = None
    ) -> None:
        self.repository = repository
        self.analysis = analysis or AnalysisConfig()
        self.logger = logger.bind(component="health_tracker")
        self._state = TrackerState()

    @classmethod
    def from_config(cls, config: AppConfig | None = None) -> "HealthTracker":
        """Build a tracker with the configured store, logging and analysis settings."""
        config = config or get_config()
        configure_logging(config.logging)
        store: KeyValueStore = (
            JsonFileStore(config.storage.path) if config.storage.path else InMemoryStore()
        )
        repository = RecordRepository(
            store,
            records_key=config.storage.records_key,
            settings_key=config.storage.settings_key,
        )
        return cls(repository, config.analysis)

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def records(self) -> Sequence[MetricRecord]:
        return self._state.records

    @property
    def settings(self) -> DashboardSettings:
        return self._state.settings

    def load(self) -> TrackerState:
        """
        Read records and settings from storage.

        Unreadable payloads are logged and replaced by empty defaults so a
        corrupt store never blocks the app from starting.
        """
        records_result = self.repository.load_records()
        if records_result.is_err():
            self.logger.warning("stored_records_discarded", error=str(records_result.unwrap_err()))
        settings_result = self.repository.load_settings()
        if settings_result.is_err():
            self.logger.warning(
                "stored_settings_discarded", error=str(settings_result.unwrap_err())
            )

        records = sorted(records_result.unwrap_or([]), key=lambda r: r.recorded_at, reverse=True)
        self._state = TrackerState(
            records=tuple(records),
            settings=settings_result.unwrap_or(DashboardSettings()),
        )
        self.logger.info("tracker_loaded", records=len(records))
        return self._state

    def dispatch(self, action: Action) -> TrackerState:
        """Apply an action, persist whatever changed, and return the new state."""
        previous = self._state
        self._state = apply_action(previous, action)

        if isinstance(action, ResetData):
            self.repository.clear()
        else:
            if self._state.records != previous.records:
                self.repository.save_records(self._state.records)
            if self._state.settings != previous.settings:
                self.repository.save_settings(self._state.settings)

        self.logger.info("action_applied", action=action.type, records=len(self._state.records))
        return self._state

    def add_reading(
        self,
        kind: MetricKind,
        value: float | None = None,
        systolic: float | None = None,
        diastolic: float | None = None,
        note: str | None = None,
        recorded_at: datetime | None = None,
    ) -> MetricRecord:
        """Create a record and add it to the state."""
        fields: dict[str, object] = {
            "kind": kind,
            "value": value,
            "systolic": systolic,
            "diastolic": diastolic,
            "note": note,
        }
        if recorded_at is not None:
            fields["recorded_at"] = recorded_at
        record = MetricRecord.model_validate(fields)
        self.dispatch(AddRecord(record=record))
        return record

    def delete_reading(self, record_id: str) -> None:
        self.dispatch(DeleteRecord(record_id=record_id))

    def latest(self, kind: MetricKind) -> MetricRecord | None:
        return latest_by_kind(self._state.records).get(kind)

    def status_for(self, kind: MetricKind) -> ClassificationResult | None:
        """Classify the latest reading of a kind, personalised when a profile is set."""
        record = self.latest(kind)
        if record is None:
            return None
        return classify(record, self._state.settings.profile)

    def insights(self) -> list[PatternInsight]:
        return aggregate(self._state.records, self.analysis)

    def visible_kinds(self) -> list[MetricKind]:
        """Kinds to show on the dashboard, in the user's order."""
        settings = self._state.settings
        return [kind for kind in settings.metric_order if settings.is_visible(kind)]
