"""In-memory store for live wizard instances."""

from __future__ import annotations

import logging

from mlconsole.wizard.controller import WizardController

logger = logging.getLogger(__name__)


class WizardStore:
    """In-memory dict store for wizard instances.

    Suitable for single-instance deployment. Holds at most ``max_sessions``
    wizards: saving past the limit evicts submitted wizards first, then the
    oldest open ones.
    """

    def __init__(self, max_sessions: int | None = None) -> None:
        self._wizards: dict[str, WizardController] = {}
        self._max_sessions = max_sessions

    def save(self, wizard: WizardController) -> None:
        self._wizards[wizard.id] = wizard
        self._evict(keep=wizard.id)

    def get(self, wizard_id: str) -> WizardController | None:
        return self._wizards.get(wizard_id)

    def remove(self, wizard_id: str) -> WizardController | None:
        return self._wizards.pop(wizard_id, None)

    def list_all(self) -> list[WizardController]:
        return list(self._wizards.values())

    @property
    def count(self) -> int:
        return len(self._wizards)

    def _evict(self, keep: str) -> None:
        if self._max_sessions is None:
            return
        while len(self._wizards) > self._max_sessions:
            candidates = [w for w in self._wizards.values() if w.id != keep]
            if not candidates:
                return
            victim = next((w for w in candidates if w.state.submitted), candidates[0])
            del self._wizards[victim.id]
            logger.info("Evicted %s wizard %s", victim.kind.value, victim.id)
