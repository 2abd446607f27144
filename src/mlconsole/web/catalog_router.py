"""FastAPI router for browsing tenants, datasets, training runs, models and evaluations."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from mlconsole.api.models import (
    AuthUser,
    DatasetPreparation,
    Evaluation,
    ModelArtifact,
    Tenant,
    TrainingExecution,
    TrainingRunFilters,
)
from mlconsole.api.source import DataSource, FetchError
from mlconsole.core.types import ArtifactType, ExecutionStatus

router = APIRouter()


class AbortRequest(BaseModel):
    reason: str | None = None


def _source(request: Request) -> DataSource:
    return request.app.state.data_source


def _bad_gateway(exc: FetchError) -> HTTPException:
    return HTTPException(status_code=502, detail=str(exc))


@router.get("/api/tenants")
async def list_tenants(request: Request) -> list[Tenant]:
    try:
        return await _source(request).list_tenants()
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/datasets")
async def list_datasets(request: Request, tenant_id: str | None = None) -> list[DatasetPreparation]:
    source = _source(request)
    try:
        if tenant_id:
            return await source.list_dataset_preparations(tenant_id)
        return await source.list_datasets()
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/datasets/{dataset_id}")
async def get_dataset(dataset_id: str, request: Request) -> dict[str, Any]:
    try:
        dataset = await _source(request).get_dataset(dataset_id)
    except FetchError as e:
        raise _bad_gateway(e)
    if dataset is None:
        raise HTTPException(status_code=404, detail=f"Dataset {dataset_id!r} not found")
    return {
        **dataset.model_dump(mode="json"),
        "record_counts": dataset.record_counts(),
        "total_records": dataset.total_records,
    }


@router.delete("/api/datasets/{dataset_id}")
async def delete_dataset(dataset_id: str, request: Request) -> dict[str, Any]:
    try:
        await _source(request).delete_dataset(dataset_id)
    except FetchError as e:
        if e.status_code == 404:
            raise HTTPException(status_code=404, detail=f"Dataset {dataset_id!r} not found")
        raise _bad_gateway(e)
    return {"deleted": True}


@router.get("/api/training-runs")
async def list_training_runs(
    request: Request,
    start_date: date | None = None,
    end_date: date | None = None,
    created_by: list[str] | None = Query(default=None),
    tenant_id: list[str] | None = Query(default=None),
    status: ExecutionStatus | None = None,
    training_execution_name: str | None = None,
    prefect_run_id: str | None = None,
) -> list[TrainingExecution]:
    filters = TrainingRunFilters(
        start_date=start_date,
        end_date=end_date,
        created_by=created_by or [],
        tenant_id=tenant_id or [],
        status=status,
        training_execution_name=training_execution_name,
        prefect_run_id=prefect_run_id,
    )
    try:
        return await _source(request).list_training_runs(filters)
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/training-runs/{execution_id}")
async def get_training_run(execution_id: str, request: Request) -> TrainingExecution:
    try:
        run = await _source(request).get_training_run(execution_id)
    except FetchError as e:
        raise _bad_gateway(e)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Training run {execution_id!r} not found")
    return run


@router.post("/api/training-runs/{execution_id}/abort")
async def abort_training_run(
    execution_id: str, body: AbortRequest, request: Request
) -> dict[str, Any]:
    try:
        await _source(request).abort_training_run(execution_id, body.reason)
    except FetchError as e:
        raise _bad_gateway(e)
    return {"aborted": True}


@router.get("/api/model-artifacts")
async def list_model_artifacts(
    request: Request,
    artifact_type: ArtifactType = ArtifactType.RAW_WEIGHT,
    tenant_id: str | None = None,
) -> list[ModelArtifact]:
    try:
        return await _source(request).list_models(tenant_id, artifact_type)
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/users")
async def list_users(request: Request) -> list[AuthUser]:
    try:
        return await _source(request).list_users()
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/evaluations")
async def list_evaluations(
    request: Request, training_execution_id: str | None = None
) -> list[Evaluation]:
    try:
        return await _source(request).list_evaluations(training_execution_id)
    except FetchError as e:
        raise _bad_gateway(e)


@router.get("/api/evaluations/{evaluation_id}")
async def get_evaluation(evaluation_id: str, request: Request) -> Evaluation:
    try:
        evaluation = await _source(request).get_evaluation(evaluation_id)
    except FetchError as e:
        raise _bad_gateway(e)
    if evaluation is None:
        raise HTTPException(status_code=404, detail=f"Evaluation {evaluation_id!r} not found")
    return evaluation
