"""Tests for the fixture-backed data source."""

from __future__ import annotations

from datetime import date

import pytest

from mlconsole.api.mock import MockDataSource
from mlconsole.api.source import FetchError
from mlconsole.api.models import DataFilters, TrainingRunFilters, TrainingRunRequest
from mlconsole.core.types import ArtifactType, ExecutionStatus


@pytest.fixture
def mock_source():
    return MockDataSource()


class TestMockDataSource:
    @pytest.mark.asyncio
    async def test_tenants_and_workflows(self, mock_source):
        tenants = await mock_source.list_tenants()
        assert len(tenants) == 4
        assert await mock_source.list_workflows("tenant_999") == []
        assert len(await mock_source.list_workflows("tenant_002")) == 2

    @pytest.mark.asyncio
    async def test_models_by_kind_and_tenant(self, mock_source):
        asr = await mock_source.list_models("tenant_001", ArtifactType.TRTLLM)
        assert [m.artifact_id for m in asr] == ["trtllm_001"]
        shared = await mock_source.list_models("tenant_004", ArtifactType.RAW_WEIGHT)
        assert [m.artifact_id for m in shared] == ["base_001", "base_002"]
        everything = await mock_source.list_models(None, ArtifactType.RAW_WEIGHT)
        assert len(everything) == 3

    @pytest.mark.asyncio
    async def test_preview_is_repeatable(self, mock_source):
        filters = DataFilters(tenant_id="tenant_001", languages=["English"])
        first = await mock_source.preview_filtered_data(filters)
        second = await mock_source.preview_filtered_data(filters)
        assert first.record_count == second.record_count
        assert 10_000 <= first.record_count < 50_000
        assert first.fetch_id != second.fetch_id

    @pytest.mark.asyncio
    async def test_preview_limit(self, mock_source):
        preview = await mock_source.preview_filtered_data(DataFilters(), limit=1)
        assert len(preview.preview) == 1

    @pytest.mark.asyncio
    async def test_save_dataset_registers_preparation(self, mock_source):
        filters = DataFilters(tenant_id="tenant_003", customer_name="Customer C")
        preview = await mock_source.preview_filtered_data(filters)
        saved = await mock_source.save_dataset(preview.fetch_id, "Customer C calls", filters)

        assert saved.record_count == preview.record_count
        stored = await mock_source.get_dataset(saved.training_data_preparation_id)
        assert stored.dataset_name == "Customer C calls"
        assert stored.tenant_id == "tenant_003"
        assert await mock_source.list_dataset_preparations("tenant_003") == [stored]

        await mock_source.delete_dataset(saved.training_data_preparation_id)
        assert await mock_source.get_dataset(saved.training_data_preparation_id) is None

    @pytest.mark.asyncio
    async def test_create_training_run(self, mock_source):
        run = await mock_source.create_training_run(
            TrainingRunRequest(training_execution_name="Run", tenant_id="tenant_001")
        )
        assert run.status == ExecutionStatus.PENDING
        assert await mock_source.get_training_run(run.training_execution_id) == run

    @pytest.mark.asyncio
    async def test_training_run_filters(self, mock_source):
        running = await mock_source.list_training_runs(
            TrainingRunFilters(status=ExecutionStatus.RUNNING)
        )
        assert [r.training_execution_id for r in running] == ["train_002"]

        by_tenant = await mock_source.list_training_runs(
            TrainingRunFilters(tenant_id=["tenant_001", "tenant_003"])
        )
        assert {r.training_execution_id for r in by_tenant} == {"train_001", "train_003"}

        since = await mock_source.list_training_runs(
            TrainingRunFilters(start_date=date(2025, 1, 14))
        )
        assert {r.training_execution_id for r in since} == {"train_001", "train_002"}

        named = await mock_source.list_training_runs(
            TrainingRunFilters(training_execution_name="baseline")
        )
        assert [r.training_execution_id for r in named] == ["train_003"]

    @pytest.mark.asyncio
    async def test_abort_only_active_runs(self, mock_source):
        await mock_source.abort_training_run("train_002", reason="stop")
        run = await mock_source.get_training_run("train_002")
        assert run.status == ExecutionStatus.CANCELLING

        await mock_source.abort_training_run("train_001")
        run = await mock_source.get_training_run("train_001")
        assert run.status == ExecutionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_delete_unknown_dataset(self, mock_source):
        with pytest.raises(FetchError) as exc_info:
            await mock_source.delete_dataset("data_gen_404")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_preview_handles_are_bounded(self, mock_source):
        filters = DataFilters(tenant_id="tenant_001")
        oldest = await mock_source.preview_filtered_data(filters)
        for _ in range(100):
            latest = await mock_source.preview_filtered_data(filters)

        evicted = await mock_source.save_dataset(oldest.fetch_id, "Old", filters)
        assert evicted.record_count == 0
        saved = await mock_source.save_dataset(latest.fetch_id, "New", filters)
        assert saved.record_count == latest.record_count

    @pytest.mark.asyncio
    async def test_list_users(self, mock_source):
        users = await mock_source.list_users()
        assert [u.user_id for u in users] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_evaluations(self, mock_source):
        assert len(await mock_source.list_evaluations()) == 3
        for_run = await mock_source.list_evaluations("train_001")
        assert [e.evaluation_id for e in for_run] == ["eval_001", "eval_002"]
        evaluation = await mock_source.get_evaluation("eval_003")
        assert evaluation.status == "failed"
        assert evaluation.metrics == {}
        assert await mock_source.get_evaluation("eval_999") is None
