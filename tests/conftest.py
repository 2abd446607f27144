"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

import pytest

from mlconsole.api.mock import MockDataSource
from mlconsole.api.models import DataFilters, TrainingRunRequest
from mlconsole.api.source import FetchError
from mlconsole.core.types import ArtifactType
from mlconsole.wizard.hyperparameters import load_catalogue


class FakeDataSource(MockDataSource):
    """Fixture data source whose calls can be held open or made to fail.

    ``hold(name, key)`` returns an event; calls to ``name`` for ``key`` (or for
    any key when ``key`` is None) block until it is set. Names listed in
    ``failing`` raise FetchError.
    """

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, Any]] = []
        self.failing: set[str] = set()
        self.requests: list[Any] = []
        self._gates: dict[tuple[str, Any], asyncio.Event] = {}

    def hold(self, name: str, key: Any = None) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates[(name, key)] = gate
        return gate

    async def _checkpoint(self, name: str, key: Any = None) -> None:
        self.calls.append((name, key))
        gate = self._gates.get((name, key)) or self._gates.get((name, None))
        if gate is not None:
            await gate.wait()
        if name in self.failing:
            raise FetchError(f"API Error: 500 Internal Server Error ({name})", status_code=500)

    def called(self, name: str) -> list[Any]:
        return [key for n, key in self.calls if n == name]

    async def list_tenants(self):
        await self._checkpoint("list_tenants")
        return await super().list_tenants()

    async def list_workflows(self, tenant_id: str):
        await self._checkpoint("list_workflows", tenant_id)
        return await super().list_workflows(tenant_id)

    async def list_models(self, tenant_id: str | None, kind: ArtifactType):
        await self._checkpoint(f"list_models:{kind.value}", tenant_id)
        return await super().list_models(tenant_id, kind)

    async def list_dataset_preparations(self, tenant_id: str):
        await self._checkpoint("list_dataset_preparations", tenant_id)
        return await super().list_dataset_preparations(tenant_id)

    async def preview_filtered_data(self, filters: DataFilters, limit: int | None = None):
        await self._checkpoint("preview_filtered_data", filters.tenant_id)
        return await super().preview_filtered_data(filters, limit)

    async def save_dataset(self, fetch_id: str, name: str, filters: DataFilters):
        self.requests.append({"fetch_id": fetch_id, "name": name, "filters": filters})
        await self._checkpoint("save_dataset")
        return await super().save_dataset(fetch_id, name, filters)

    async def create_training_run(self, payload: TrainingRunRequest):
        self.requests.append(payload)
        await self._checkpoint("create_training_run")
        return await super().create_training_run(payload)


@pytest.fixture
def source():
    return FakeDataSource()


@pytest.fixture
def catalogue():
    """Catalogue loaded from the real config/hyperparameters.yml."""
    return load_catalogue()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
