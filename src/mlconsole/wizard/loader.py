"""Dependent data loader: keyed async loads of wizard option sets."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from mlconsole.api.source import FetchError
from mlconsole.core.types import ResourceKind
from mlconsole.wizard.models import OptionSet
from mlconsole.wizard.notifier import Notifier

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]
OnSuccess = Callable[[Any], None]

_LABELS: dict[ResourceKind, str] = {
    ResourceKind.TENANTS: "customers",
    ResourceKind.WORKFLOWS: "workflows",
    ResourceKind.ASR_MODELS: "ASR models",
    ResourceKind.BASE_MODELS: "base models",
    ResourceKind.DATASET_PREPARATIONS: "datasets",
    ResourceKind.PREVIEW: "data preview",
}


class DependentDataLoader:
    """Loads option sets in the background, one slot per resource kind.

    Starting a load replaces the kind's option set with an empty loading one
    and bumps the kind's generation. A response is applied only if the
    generation and upstream key still match when it arrives; otherwise it is
    dropped. Failures become an empty errored option set plus an error
    notification, never an exception.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._option_sets: dict[ResourceKind, OptionSet] = {}
        self._generations: dict[ResourceKind, int] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def option_set(self, kind: ResourceKind) -> OptionSet:
        return self._option_sets.get(kind) or OptionSet()

    def option_sets(self) -> dict[ResourceKind, OptionSet]:
        return dict(self._option_sets)

    def items(self, kind: ResourceKind) -> list[Any]:
        return list(self.option_set(kind).items)

    def is_loading(self, *kinds: ResourceKind) -> bool:
        return any(self.option_set(k).loading for k in kinds)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def load(
        self,
        kind: ResourceKind,
        key: str,
        fetch: Fetch,
        on_success: OnSuccess | None = None,
    ) -> asyncio.Task[None]:
        """Start loading ``kind`` for upstream ``key``. Must run inside an event loop."""
        generation = self._bump(kind)
        self._option_sets[kind] = OptionSet(key=key, loading=True)
        task = asyncio.create_task(self._run(kind, key, generation, fetch, on_success))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def discard(self, kind: ResourceKind) -> None:
        """Forget ``kind``'s option set; any in-flight response is dropped."""
        self._bump(kind)
        self._option_sets.pop(kind, None)

    async def settle(self) -> None:
        """Wait until no load is in flight, including loads started meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _bump(self, kind: ResourceKind) -> int:
        generation = self._generations.get(kind, 0) + 1
        self._generations[kind] = generation
        return generation

    def _is_current(self, kind: ResourceKind, key: str, generation: int) -> bool:
        return (
            self._generations.get(kind) == generation
            and self.option_set(kind).key == key
        )

    async def _run(
        self,
        kind: ResourceKind,
        key: str,
        generation: int,
        fetch: Fetch,
        on_success: OnSuccess | None,
    ) -> None:
        label = _LABELS.get(kind, kind.value)
        try:
            result = await fetch()
        except FetchError as exc:
            self._fail(kind, key, generation, label, str(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected error loading %s for %r", kind.value, key)
            self._fail(kind, key, generation, label, str(exc))
            return

        if not self._is_current(kind, key, generation):
            logger.debug("Dropping stale %s response for %r", kind.value, key)
            return

        items = result if isinstance(result, list) else [result]
        self._option_sets[kind] = OptionSet(key=key, items=items)
        if on_success is not None:
            on_success(result)

    def _fail(
        self, kind: ResourceKind, key: str, generation: int, label: str, reason: str
    ) -> None:
        if not self._is_current(kind, key, generation):
            logger.debug("Dropping stale %s failure for %r: %s", kind.value, key, reason)
            return
        logger.warning("Failed to load %s for %r: %s", kind.value, key, reason)
        self._option_sets[kind] = OptionSet(key=key, error=True)
        self._notifier.error(f"Failed to load {label}")
