"""Fixture-backed data source used when ``ApiConfig.use_dummy_data`` is set."""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any

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
from mlconsole.api.source import FetchError
from mlconsole.core.types import ArtifactType, ExecutionStatus

_FIXTURE_TENANTS: list[dict[str, Any]] = [
    {"tenant_id": "tenant_001", "tenant_name": "Customer A", "cells": {"region": "US-EAST"}},
    {"tenant_id": "tenant_002", "tenant_name": "Customer B", "cells": {"region": "EU-WEST"}},
    {"tenant_id": "tenant_003", "tenant_name": "Customer C", "cells": {"region": "US-WEST"}},
    {"tenant_id": "tenant_004", "tenant_name": "Customer D", "cells": {"region": "APAC"}},
]

_FIXTURE_WORKFLOWS: dict[str, list[dict[str, Any]]] = {
    "tenant_001": [
        {"workflow_id": "wf_12345", "workflow_name": "Main Production Workflow"},
        {"workflow_id": "wf_12346", "workflow_name": "Voice Recording Pipeline"},
        {"workflow_id": "wf_12347", "workflow_name": "QA Testing Workflow"},
    ],
    "tenant_002": [
        {"workflow_id": "wf_22345", "workflow_name": "Multilingual Processing"},
        {"workflow_id": "wf_22346", "workflow_name": "European Transcription"},
    ],
    "tenant_003": [
        {"workflow_id": "wf_32345", "workflow_name": "Customer Service Recording"},
    ],
    "tenant_004": [
        {"workflow_id": "wf_42345", "workflow_name": "APAC Voice Pipeline"},
        {"workflow_id": "wf_42346", "workflow_name": "Japanese Transcription"},
        {"workflow_id": "wf_42347", "workflow_name": "Korean ASR Pipeline"},
    ],
}

_FIXTURE_ARTIFACTS: list[dict[str, Any]] = [
    {
        "artifact_id": "base_001",
        "artifact_type": "RAW_WEIGHT",
        "s3_path": "s3://models/base/whisper-large-v2",
        "model_artifact_name": "Whisper Large V2 Base",
        "model_size_mb": 1500,
        "published": True,
        "model_tag": "whisper-large-v2",
        "created_at": "2024-06-01T10:00:00Z",
    },
    {
        "artifact_id": "base_002",
        "artifact_type": "RAW_WEIGHT",
        "s3_path": "s3://models/base/whisper-large-v3",
        "model_artifact_name": "Whisper Large V3 Base",
        "model_size_mb": 2500,
        "published": True,
        "model_tag": "whisper-large-v3",
        "created_at": "2024-10-01T10:00:00Z",
    },
    {
        "artifact_id": "base_003",
        "artifact_type": "RAW_WEIGHT",
        "training_execution_id": "train_base_003",
        "training_execution_name": "Customer A Fine-tuned v1",
        "tenant_id": "tenant_001",
        "s3_path": "s3://models/customer-a/finetuned-v1",
        "model_artifact_name": "Customer A Fine-tuned v1",
        "model_size_mb": 1550,
        "created_at": "2025-01-05T10:00:00Z",
    },
    {
        "artifact_id": "trtllm_001",
        "artifact_type": "TRTLLM",
        "training_execution_id": "train_001",
        "training_execution_name": "Customer A ASR Model v2.1",
        "tenant_id": "tenant_001",
        "s3_path": "s3://models/customer-a/trtllm-v1",
        "model_artifact_name": "Customer A TRTLLM v1",
        "model_size_mb": 800,
        "published": True,
        "model_tag": "customer-a-v1",
        "created_at": "2025-01-15T14:30:00Z",
    },
    {
        "artifact_id": "trtllm_002",
        "artifact_type": "TRTLLM",
        "training_execution_id": "train_002",
        "training_execution_name": "Customer B Multilingual v1",
        "tenant_id": "tenant_002",
        "s3_path": "s3://models/customer-b/trtllm-v1",
        "model_artifact_name": "Customer B TRTLLM v1",
        "model_size_mb": 820,
        "published": True,
        "model_tag": "customer-b-v1",
        "created_at": "2025-01-20T09:00:00Z",
    },
]


def _split_files(file_prefix: str, root: str, counts: dict[str, int]) -> list[dict[str, Any]]:
    return [
        {
            "file_id": f"{file_prefix}_{split}",
            "file_type": split,
            "s3_path": f"{root}{split}.csv",
            "file_name": f"{split}.csv",
            "record_count": count,
            "created_at": "2025-01-10T12:00:00Z",
        }
        for split, count in counts.items()
    ]


_FIXTURE_PREPARATIONS: list[dict[str, Any]] = [
    {
        "training_data_preparation_id": "660e8400-e29b-41d4-a716-446655440003",
        "dataset_name": "Customer A - Q4 2024 Dataset",
        "customer_name": "Customer A",
        "s3_root_path": "s3://aiola-datasets/customer-a/q4-2024/",
        "tenant_id": "tenant_001",
        "prefect_run_id": "prefect_data_001",
        "date_range_start": "2024-10-01",
        "date_range_end": "2024-12-31",
        "languages": ["English", "Spanish"],
        "asr_model_versions": ["v2.0"],
        "workflow_ids": ["wf_12345"],
        "is_noisy": False,
        "overlapping_speech": False,
        "created_at": "2025-01-10T12:00:00Z",
        "files": _split_files(
            "file_a1",
            "s3://aiola-datasets/customer-a/q4-2024/",
            {"train": 35000, "test": 10000, "val": 5000},
        ),
    },
    {
        "training_data_preparation_id": "660e8400-e29b-41d4-a716-446655440005",
        "dataset_name": "Customer A - Noisy Calls",
        "customer_name": "Customer A",
        "s3_root_path": "s3://aiola-datasets/customer-a/noisy/",
        "tenant_id": "tenant_001",
        "date_range_start": "2024-07-01",
        "date_range_end": "2024-09-30",
        "languages": ["English"],
        "is_noisy": True,
        "created_at": "2025-01-12T08:00:00Z",
        "files": _split_files(
            "file_a2", "s3://aiola-datasets/customer-a/noisy/", {"train": 12000}
        ),
    },
    {
        "training_data_preparation_id": "660e8400-e29b-41d4-a716-446655440004",
        "dataset_name": "Customer B - Multilingual Dataset",
        "customer_name": "Customer B",
        "s3_root_path": "s3://aiola-datasets/customer-b/multilingual/",
        "tenant_id": "tenant_002",
        "prefect_run_id": "prefect_data_002",
        "date_range_start": "2024-11-01",
        "date_range_end": "2025-01-15",
        "languages": ["English", "Spanish", "French", "German"],
        "asr_model_versions": ["v2.1"],
        "workflow_ids": ["wf_22345", "wf_22346"],
        "is_noisy": False,
        "overlapping_speech": True,
        "created_at": "2025-01-16T09:30:00Z",
        "files": _split_files(
            "file_b1",
            "s3://aiola-datasets/customer-b/multilingual/",
            {"train": 28000, "test": 8000, "val": 4000},
        ),
    },
]

_FIXTURE_RUNS: list[dict[str, Any]] = [
    {
        "training_execution_id": "train_001",
        "training_execution_name": "Customer A ASR Model v2.1",
        "status": "COMPLETED",
        "user_id": "1",
        "customer_name": "Customer A",
        "tenant_id": "tenant_001",
        "started_at": "2025-01-14T08:00:00Z",
        "completed_at": "2025-01-15T14:00:00Z",
        "s3_model_path": "s3://models/customer-a/v2.1/",
        "created_at": "2025-01-14T07:55:00Z",
    },
    {
        "training_execution_id": "train_002",
        "training_execution_name": "Customer B Multilingual v1",
        "status": "RUNNING",
        "user_id": "2",
        "customer_name": "Customer B",
        "tenant_id": "tenant_002",
        "started_at": "2025-01-18T10:00:00Z",
        "prefect_run_id": "prefect_train_002",
        "created_at": "2025-01-18T09:58:00Z",
    },
    {
        "training_execution_id": "train_003",
        "training_execution_name": "Customer C Baseline",
        "status": "FAILED",
        "user_id": "1",
        "customer_name": "Customer C",
        "tenant_id": "tenant_003",
        "started_at": "2025-01-10T12:00:00Z",
        "completed_at": "2025-01-10T12:40:00Z",
        "error_message": "CUDA out of memory",
        "created_at": "2025-01-10T11:59:00Z",
    },
]

# Oldest preview handles are dropped beyond this many.
_MAX_FETCHES = 100

_FIXTURE_USERS: list[dict[str, Any]] = [
    {"user_id": "1", "email": "john.doe@aiola.com"},
    {"user_id": "2", "email": "jane.smith@aiola.com"},
    {"user_id": "3", "email": "bob.wilson@aiola.com"},
]

_FIXTURE_EVALUATIONS: list[dict[str, Any]] = [
    {
        "evaluation_id": "eval_001",
        "training_execution_id": "train_001",
        "test_data_preparation_id": "660e8400-e29b-41d4-a716-446655440003",
        "evaluation_type": "WER",
        "status": "completed",
        "metrics": {"accuracy": 0.94, "wer": 0.12, "precision": 0.93, "recall": 0.95},
        "evaluated_at": "2025-01-16T10:00:00Z",
        "s3_results_path": "s3://aiola-evaluations/train_001/eval_001/",
        "tenant_id": "tenant_001",
    },
    {
        "evaluation_id": "eval_002",
        "training_execution_id": "train_001",
        "test_data_preparation_id": "660e8400-e29b-41d4-a716-446655440005",
        "evaluation_type": "Accuracy",
        "status": "completed",
        "metrics": {"accuracy": 0.96, "wer": 0.10, "precision": 0.95, "recall": 0.97},
        "evaluated_at": "2025-01-15T15:00:00Z",
        "s3_results_path": "s3://aiola-evaluations/train_001/eval_002/",
        "tenant_id": "tenant_001",
    },
    {
        "evaluation_id": "eval_003",
        "training_execution_id": "train_003",
        "evaluation_type": "WER",
        "status": "failed",
        "error_message": "Training run has no model artifact",
        "evaluated_at": "2025-01-10T13:00:00Z",
        "s3_results_path": "s3://aiola-evaluations/train_003/eval_003/",
        "tenant_id": "tenant_003",
    },
]

_SAMPLE_ROWS: list[dict[str, Any]] = [
    {"id": "1", "audio_path": "s3://recordings/sample-1.wav", "transcript": "Sample transcript 1"},
    {"id": "2", "audio_path": "s3://recordings/sample-2.wav", "transcript": "Sample transcript 2"},
    {"id": "3", "audio_path": "s3://recordings/sample-3.wav", "transcript": "Sample transcript 3"},
]


class MockDataSource:
    """In-memory data source with fixture data.

    Fetch and execution ids come from per-instance counters and preview record
    counts are derived from a hash of the filters, so responses are repeatable.
    """

    def __init__(self) -> None:
        self._tenants = [Tenant.model_validate(t) for t in _FIXTURE_TENANTS]
        self._workflows = {
            tenant_id: [Workflow.model_validate(w) for w in items]
            for tenant_id, items in _FIXTURE_WORKFLOWS.items()
        }
        self._artifacts = [ModelArtifact.model_validate(a) for a in _FIXTURE_ARTIFACTS]
        self._preparations: dict[str, DatasetPreparation] = {}
        for p in _FIXTURE_PREPARATIONS:
            prep = DatasetPreparation.model_validate(p)
            self._preparations[prep.training_data_preparation_id] = prep
        self._runs: dict[str, TrainingExecution] = {}
        for r in _FIXTURE_RUNS:
            run = TrainingExecution.model_validate(r)
            self._runs[run.training_execution_id] = run
        self._users = [AuthUser.model_validate(u) for u in _FIXTURE_USERS]
        self._evaluations = [Evaluation.model_validate(e) for e in _FIXTURE_EVALUATIONS]
        self._fetches: dict[str, FilterPreview] = {}
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"

    async def list_tenants(self) -> list[Tenant]:
        return list(self._tenants)

    async def list_workflows(self, tenant_id: str) -> list[Workflow]:
        return list(self._workflows.get(tenant_id, []))

    async def list_models(
        self, tenant_id: str | None, kind: ArtifactType
    ) -> list[ModelArtifact]:
        return [
            a for a in self._artifacts
            if a.artifact_type == kind
            and (tenant_id is None or a.tenant_id in (None, tenant_id))
        ]

    async def list_dataset_preparations(self, tenant_id: str) -> list[DatasetPreparation]:
        return [p for p in self._preparations.values() if p.tenant_id == tenant_id]

    async def preview_filtered_data(
        self, filters: DataFilters, limit: int | None = None
    ) -> FilterPreview:
        digest = hashlib.sha256(
            json.dumps(filters.model_dump(mode="json"), sort_keys=True).encode()
        ).hexdigest()
        rows = _SAMPLE_ROWS if limit is None else _SAMPLE_ROWS[:limit]
        preview = FilterPreview(
            fetch_id=self._next_id("fetch"),
            record_count=10_000 + int(digest[:8], 16) % 40_000,
            preview=[dict(r) for r in rows],
            cached=True,
        )
        self._fetches[preview.fetch_id] = preview
        while len(self._fetches) > _MAX_FETCHES:
            self._fetches.pop(next(iter(self._fetches)))
        return preview

    async def save_dataset(
        self, fetch_id: str, name: str, filters: DataFilters
    ) -> SavedDataset:
        fetched = self._fetches.pop(fetch_id, None)
        record_count = fetched.record_count if fetched else 0
        dataset_id = self._next_id("data_gen")
        root = f"s3://aiola-datasets/{name}/{dataset_id}/"
        self._preparations[dataset_id] = DatasetPreparation(
            training_data_preparation_id=dataset_id,
            dataset_name=name,
            s3_root_path=root,
            created_at=datetime.now(timezone.utc).isoformat(),
            **filters.model_dump(),
        )
        return SavedDataset(
            training_data_preparation_id=dataset_id,
            s3_root_path=root,
            record_count=record_count,
        )

    async def create_training_run(self, payload: TrainingRunRequest) -> TrainingExecution:
        run = TrainingExecution(
            training_execution_id=self._next_id("train"),
            training_execution_name=payload.training_execution_name,
            status=ExecutionStatus.PENDING,
            user_id="1",
            customer_name=payload.customer_name,
            tenant_id=payload.tenant_id,
            description=payload.description,
            hyperparameters=payload.hyperparameters,
            prefect_parameters=payload.prefect_parameters,
            base_model_artifact_id=payload.base_model_artifact_id,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        self._runs[run.training_execution_id] = run
        return run

    async def list_datasets(self) -> list[DatasetPreparation]:
        return list(self._preparations.values())

    async def get_dataset(self, dataset_id: str) -> DatasetPreparation | None:
        return self._preparations.get(dataset_id)

    async def delete_dataset(self, dataset_id: str) -> None:
        if self._preparations.pop(dataset_id, None) is None:
            raise FetchError("API Error: 404 Not Found", status_code=404)

    async def list_training_runs(
        self, filters: TrainingRunFilters | None = None
    ) -> list[TrainingExecution]:
        runs = list(self._runs.values())
        if filters is None:
            return runs
        if filters.start_date:
            start = filters.start_date.isoformat()
            runs = [r for r in runs if (r.started_at or r.created_at)[:10] >= start]
        if filters.end_date:
            end = filters.end_date.isoformat()
            runs = [r for r in runs if (r.started_at or r.created_at)[:10] <= end]
        if filters.tenant_id:
            runs = [r for r in runs if r.tenant_id in filters.tenant_id]
        if filters.created_by:
            runs = [r for r in runs if r.user_id in filters.created_by]
        if filters.status:
            runs = [r for r in runs if r.status == filters.status]
        if filters.training_execution_name:
            needle = filters.training_execution_name.lower()
            runs = [r for r in runs if needle in r.training_execution_name.lower()]
        if filters.prefect_run_id:
            runs = [r for r in runs if r.prefect_run_id == filters.prefect_run_id]
        return runs

    async def get_training_run(self, execution_id: str) -> TrainingExecution | None:
        return self._runs.get(execution_id)

    async def abort_training_run(self, execution_id: str, reason: str | None = None) -> None:
        run = self._runs.get(execution_id)
        if run is not None and run.status in (ExecutionStatus.PENDING, ExecutionStatus.RUNNING):
            run.status = ExecutionStatus.CANCELLING
            run.error_message = reason

    async def list_users(self) -> list[AuthUser]:
        return list(self._users)

    async def list_evaluations(
        self, training_execution_id: str | None = None
    ) -> list[Evaluation]:
        if training_execution_id is None:
            return list(self._evaluations)
        return [e for e in self._evaluations if e.training_execution_id == training_execution_id]

    async def get_evaluation(self, evaluation_id: str) -> Evaluation | None:
        return next((e for e in self._evaluations if e.evaluation_id == evaluation_id), None)

    async def close(self) -> None:
        pass
