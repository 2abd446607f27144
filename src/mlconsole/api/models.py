"""Wire models exchanged with the training backend API."""

from __future__ import annotations

from datetime import date
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from mlconsole.core.types import ArtifactType, ExecutionStatus, FileType

T = TypeVar("T")


class Tenant(BaseModel):
    """A customer tenant whose recordings can be curated."""

    tenant_id: str
    tenant_name: str
    cells: dict[str, Any] | None = None
    region: str | None = None


class Workflow(BaseModel):
    workflow_id: str
    workflow_name: str


class ModelArtifact(BaseModel):
    """A stored model artifact (TRTLLM build or raw weights)."""

    artifact_id: str
    artifact_type: ArtifactType
    s3_path: str
    model_artifact_name: str
    training_execution_id: str | None = None
    training_execution_name: str | None = None
    tenant_id: str | None = None
    model_size_mb: float | None = None
    published: bool = False
    model_tag: str | None = None
    description: str | None = None
    created_at: str = ""


class TrainingDataFile(BaseModel):
    """A single split file produced by a dataset preparation."""

    file_id: str
    file_type: FileType
    s3_path: str
    file_name: str
    record_count: int | None = None
    created_at: str = ""


class DatasetPreparation(BaseModel):
    """A named, filtered extraction of source records with per-split files."""

    training_data_preparation_id: str
    dataset_name: str
    s3_root_path: str
    customer_name: str | None = None
    tenant_id: str | None = None
    prefect_run_id: str | None = None
    error_message: str | None = None
    date_range_start: str | None = None
    date_range_end: str | None = None
    languages: list[str] | None = None
    asr_model_versions: list[str] | None = None
    workflow_ids: list[str] | None = None
    is_noisy: bool | None = None
    overlapping_speech: bool | None = None
    is_not_relevant: bool | None = None
    is_voice_recording_na: bool | None = None
    is_partial_audio: bool | None = None
    is_unclear_audio: bool | None = None
    created_at: str = ""
    files: list[TrainingDataFile] = Field(default_factory=list)

    def file_for(self, file_type: FileType) -> TrainingDataFile | None:
        """Return the first file of the given split type, if any."""
        for f in self.files:
            if f.file_type == file_type:
                return f
        return None

    def record_counts(self) -> dict[str, int]:
        """Record counts for the train/test/val splits, zero when missing."""
        counts: dict[str, int] = {}
        for file_type in (FileType.TRAIN, FileType.TEST, FileType.VAL):
            f = self.file_for(file_type)
            counts[file_type.value] = (f.record_count or 0) if f else 0
        return counts

    @property
    def total_records(self) -> int:
        return sum(self.record_counts().values())


class DataFilters(BaseModel):
    """Warehouse filters for a dataset pull.

    ``None`` means "do not filter on this attribute".
    """

    customer_name: str | None = None
    tenant_id: str | None = None
    date_range_start: str | None = None
    date_range_end: str | None = None
    languages: list[str] | None = None
    asr_model_versions: list[str] | None = None
    workflow_ids: list[str] | None = None
    is_noisy: bool | None = None
    overlapping_speech: bool | None = None
    is_not_relevant: bool | None = None
    is_voice_recording_na: bool | None = None
    is_partial_audio: bool | None = None
    is_unclear_audio: bool | None = None


class FilterRequest(BaseModel):
    filters: DataFilters
    limit: int | None = None


class FilterPreview(BaseModel):
    """Result of a filtered pull: a cached fetch handle plus sample rows."""

    fetch_id: str
    record_count: int
    preview: list[dict[str, Any]] = Field(default_factory=list)
    cached: bool = False


class SaveDatasetRequest(BaseModel):
    fetch_id: str
    dataset_name: str
    filters: DataFilters


class SavedDataset(BaseModel):
    training_data_preparation_id: str
    s3_root_path: str
    record_count: int


class TrainingRunRequest(BaseModel):
    """Request body that starts a training execution."""

    training_execution_name: str
    customer_name: str | None = None
    tenant_id: str | None = None
    description: str | None = None
    hyperparameters: dict[str, Any] = Field(default_factory=dict)
    prefect_parameters: dict[str, Any] = Field(default_factory=dict)
    training_data_preparation_ids: list[str] = Field(default_factory=list)
    base_model_artifact_id: str | None = None


class TrainingExecution(BaseModel):
    """A training execution as reported by the backend."""

    training_execution_id: str
    training_execution_name: str
    status: ExecutionStatus
    user_id: str = ""
    customer_name: str | None = None
    tenant_id: str | None = None
    description: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    hyperparameters: dict[str, Any] | None = None
    prefect_parameters: dict[str, Any] | None = None
    s3_model_path: str | None = None
    error_message: str | None = None
    prefect_run_id: str | None = None
    wandb_url: str | None = None
    base_model_artifact_id: str | None = None
    created_at: str = ""
    created_by: str | None = None


class TrainingRunFilters(BaseModel):
    """Query filters for listing training executions."""

    start_date: date | None = None
    end_date: date | None = None
    created_by: list[str] = Field(default_factory=list)
    tenant_id: list[str] = Field(default_factory=list)
    status: ExecutionStatus | None = None
    training_execution_name: str | None = None
    prefect_run_id: str | None = None

    def to_query(self) -> list[tuple[str, str]]:
        """Encode as repeated query parameters, skipping unset filters."""
        params: list[tuple[str, str]] = []
        if self.start_date:
            params.append(("start_date", self.start_date.isoformat()))
        if self.end_date:
            params.append(("end_date", self.end_date.isoformat()))
        params.extend(("created_by", v) for v in self.created_by)
        params.extend(("tenant_id", v) for v in self.tenant_id)
        if self.status:
            params.append(("status", self.status.value))
        if self.training_execution_name:
            params.append(("training_execution_name", self.training_execution_name))
        if self.prefect_run_id:
            params.append(("prefect_run_id", self.prefect_run_id))
        return params


class Page(BaseModel, Generic[T]):
    items: list[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50
    total_pages: int = 1


class AuthUser(BaseModel):
    """A console user; ids feed the ``created_by`` training-run filter."""

    user_id: str
    email: str


class Evaluation(BaseModel):
    """Scoring of a trained model against a held-out dataset."""

    evaluation_id: str
    training_execution_id: str
    evaluation_type: str
    status: str
    s3_results_path: str
    evaluated_at: str
    test_data_preparation_id: str | None = None
    tenant_id: str | None = None
    error_message: str | None = None
    metrics: dict[str, float] = Field(default_factory=dict)
