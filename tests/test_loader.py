"""Tests for the dependent data loader."""

from __future__ import annotations

import asyncio

import pytest

from mlconsole.api.source import FetchError
from mlconsole.core.types import NotificationLevel, ResourceKind
from mlconsole.wizard.loader import DependentDataLoader
from mlconsole.wizard.notifier import Notifier


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def loader(notifier):
    return DependentDataLoader(notifier)


def _gated(gate: asyncio.Event, value):
    async def fetch():
        await gate.wait()
        return value

    return fetch


class TestDependentDataLoader:
    def test_empty_option_set(self, loader):
        option_set = loader.option_set(ResourceKind.WORKFLOWS)
        assert option_set.items == []
        assert not option_set.loading
        assert not loader.is_loading(ResourceKind.WORKFLOWS)

    @pytest.mark.asyncio
    async def test_load_marks_loading_until_resolved(self, loader):
        gate = asyncio.Event()
        loader.load(ResourceKind.WORKFLOWS, "tenant_001", _gated(gate, ["wf_1"]))

        assert loader.is_loading(ResourceKind.WORKFLOWS)
        assert loader.items(ResourceKind.WORKFLOWS) == []

        gate.set()
        await loader.settle()
        assert not loader.is_loading(ResourceKind.WORKFLOWS)
        assert loader.items(ResourceKind.WORKFLOWS) == ["wf_1"]
        assert loader.option_set(ResourceKind.WORKFLOWS).key == "tenant_001"

    @pytest.mark.asyncio
    async def test_stale_response_dropped(self, loader):
        gate_a = asyncio.Event()
        gate_b = asyncio.Event()
        loader.load(ResourceKind.DATASET_PREPARATIONS, "tenant_a", _gated(gate_a, ["from_a"]))
        loader.load(ResourceKind.DATASET_PREPARATIONS, "tenant_b", _gated(gate_b, ["from_b"]))

        # B resolves first, then the older A response arrives
        gate_b.set()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate_a.set()
        await loader.settle()

        option_set = loader.option_set(ResourceKind.DATASET_PREPARATIONS)
        assert option_set.key == "tenant_b"
        assert option_set.items == ["from_b"]

    @pytest.mark.asyncio
    async def test_reload_same_key_keeps_latest(self, loader):
        gate_old = asyncio.Event()
        gate_new = asyncio.Event()
        loader.load(ResourceKind.PREVIEW, "filters", _gated(gate_old, ["old"]))
        loader.load(ResourceKind.PREVIEW, "filters", _gated(gate_new, ["new"]))

        gate_new.set()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        gate_old.set()
        await loader.settle()
        assert loader.items(ResourceKind.PREVIEW) == ["new"]

    @pytest.mark.asyncio
    async def test_discard_drops_in_flight_response(self, loader):
        gate = asyncio.Event()
        task = loader.load(ResourceKind.PREVIEW, "filters", _gated(gate, ["late"]))
        loader.discard(ResourceKind.PREVIEW)

        gate.set()
        await task
        assert loader.items(ResourceKind.PREVIEW) == []
        assert loader.option_set(ResourceKind.PREVIEW).key is None

    @pytest.mark.asyncio
    async def test_on_success_called_with_result(self, loader):
        seen = []

        async def fetch():
            return {"fetch_id": "fetch_1"}

        loader.load(ResourceKind.PREVIEW, "k", fetch, on_success=seen.append)
        await loader.settle()
        assert seen == [{"fetch_id": "fetch_1"}]
        assert loader.items(ResourceKind.PREVIEW) == [{"fetch_id": "fetch_1"}]

    @pytest.mark.asyncio
    async def test_fetch_error_becomes_errored_option_set(self, loader, notifier):
        async def fetch():
            raise FetchError("API Error: 500 Internal Server Error", status_code=500)

        loader.load(ResourceKind.BASE_MODELS, "tenant_001", fetch)
        await loader.settle()

        option_set = loader.option_set(ResourceKind.BASE_MODELS)
        assert option_set.error
        assert not option_set.loading
        assert option_set.items == []
        [notification] = notifier.drain()
        assert notification.level == NotificationLevel.ERROR
        assert notification.message == "Failed to load base models"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, loader, notifier):
        async def fetch():
            raise RuntimeError("boom")

        loader.load(ResourceKind.WORKFLOWS, "tenant_001", fetch)
        await loader.settle()
        assert loader.option_set(ResourceKind.WORKFLOWS).error
        assert len(notifier.pending) == 1

    @pytest.mark.asyncio
    async def test_stale_failure_is_silent(self, loader, notifier):
        gate = asyncio.Event()

        async def failing():
            await gate.wait()
            raise FetchError("gone")

        async def ok():
            return ["wf_2"]

        loader.load(ResourceKind.WORKFLOWS, "tenant_a", failing)
        loader.load(ResourceKind.WORKFLOWS, "tenant_b", ok)
        gate.set()
        await loader.settle()

        assert loader.items(ResourceKind.WORKFLOWS) == ["wf_2"]
        assert not loader.option_set(ResourceKind.WORKFLOWS).error
        assert notifier.pending == []

    @pytest.mark.asyncio
    async def test_kinds_are_independent(self, loader):
        gate = asyncio.Event()
        loader.load(ResourceKind.WORKFLOWS, "tenant_001", _gated(gate, ["wf"]))
        loader.load(ResourceKind.ASR_MODELS, "tenant_001", _gated(_set_event(), ["asr"]))

        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert loader.items(ResourceKind.ASR_MODELS) == ["asr"]
        assert loader.is_loading(ResourceKind.WORKFLOWS)
        assert loader.is_loading(ResourceKind.WORKFLOWS, ResourceKind.ASR_MODELS)
        assert not loader.is_loading(ResourceKind.ASR_MODELS)

        gate.set()
        await loader.settle()
        assert loader.in_flight == 0


def _set_event() -> asyncio.Event:
    event = asyncio.Event()
    event.set()
    return event

