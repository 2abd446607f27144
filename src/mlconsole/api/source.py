"""Data source protocol for the training backend and factory function."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mlconsole.api.models import (
    AuthUser,
    DataFilters,
    DatasetPreparation,
    Evaluation,
    FilterPreview,
    ModelArtifact,
    SavedDataset,
    Tenant,
    TrainingExecution,
    TrainingRunFilters,
    TrainingRunRequest,
    Workflow,
)
from mlconsole.core.config import ApiConfig
from mlconsole.core.types import ArtifactType


class FetchError(Exception):
    """The backend was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class DataSource(Protocol):
    """Operations the wizards and catalogue pages consume from the backend."""

    async def list_tenants(self) -> list[Tenant]: ...

    async def list_workflows(self, tenant_id: str) -> list[Workflow]: ...

    async def list_models(
        self, tenant_id: str | None, kind: ArtifactType
    ) -> list[ModelArtifact]: ...

    async def list_dataset_preparations(self, tenant_id: str) -> list[DatasetPreparation]: ...

    async def preview_filtered_data(
        self, filters: DataFilters, limit: int | None = None
    ) -> FilterPreview: ...

    async def save_dataset(
        self, fetch_id: str, name: str, filters: DataFilters
    ) -> SavedDataset: ...

    async def create_training_run(self, payload: TrainingRunRequest) -> TrainingExecution: ...

    async def list_datasets(self) -> list[DatasetPreparation]: ...

    async def get_dataset(self, dataset_id: str) -> DatasetPreparation | None: ...

    async def delete_dataset(self, dataset_id: str) -> None: ...

    async def list_training_runs(
        self, filters: TrainingRunFilters | None = None
    ) -> list[TrainingExecution]: ...

    async def get_training_run(self, execution_id: str) -> TrainingExecution | None: ...

    async def abort_training_run(self, execution_id: str, reason: str | None = None) -> None: ...

    async def list_users(self) -> list[AuthUser]: ...

    async def list_evaluations(
        self, training_execution_id: str | None = None
    ) -> list[Evaluation]: ...

    async def get_evaluation(self, evaluation_id: str) -> Evaluation | None: ...

    async def close(self) -> None: ...


def create_data_source(config: ApiConfig) -> DataSource:
    """Factory: pick the fixture-backed or HTTP data source from config."""
    if config.use_dummy_data:
        from mlconsole.api.mock import MockDataSource

        return MockDataSource()

    from mlconsole.api.http import HttpDataSource

    return HttpDataSource(config)
