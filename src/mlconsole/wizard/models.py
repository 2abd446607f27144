"""Shared models for the dataset and training wizards."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mlconsole.api.models import FilterPreview
from mlconsole.core.types import NotificationLevel, ResourceKind


class Step(BaseModel):
    """One entry of a wizard's step table. Ids are 1-based and contiguous."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str = ""
    owns: tuple[ResourceKind, ...] = ()


class WizardState(BaseModel):
    """Navigation state of a wizard instance."""

    current_step: int = 1
    submitting: bool = False
    submitted: bool = False


class OptionSet(BaseModel):
    """Options loaded for one resource kind, keyed by the upstream selection."""

    key: str | None = None
    loading: bool = False
    error: bool = False
    items: list[Any] = Field(default_factory=list)


class Notification(BaseModel):
    """A transient, non-blocking message for the user (toast)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    level: NotificationLevel
    message: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class FormState(BaseModel):
    """Base for wizard form containers.

    Every field has a default so validators never see a missing key, and
    assignments are validated so bad input is rejected at the input handler.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class DatasetForm(FormState):
    tenant_id: str = ""
    customer_name: str = ""
    date_range_start: date | None = None
    date_range_end: date | None = None
    languages: list[str] = Field(default_factory=list)
    asr_model_versions: list[str] = Field(default_factory=list)
    workflow_ids: list[str] = Field(default_factory=list)
    is_noisy: bool | None = None
    overlapping_speech: bool | None = None
    is_not_relevant: bool | None = None
    is_voice_recording_na: bool | None = None
    is_partial_audio: bool | None = None
    is_unclear_audio: bool | None = None
    dataset_name: str = ""
    # Written when the preview fetch resolves.
    preview: FilterPreview | None = None


class TrainingForm(FormState):
    tenant_id: str = ""
    customer_name: str = ""
    name: str = ""
    description: str = ""
    selected_preparations: list[str] = Field(default_factory=list)
    base_model_id: str = ""
    hyperparameters: dict[str, int | float | bool | str] = Field(default_factory=dict)
    gpu_type: str = "V100"
    instance_type: str = "p3.2xlarge"
    memory_gb: int = Field(default=16, ge=8, le=64, multiple_of=8)
    timeout_seconds: int = Field(default=3600, gt=0)
    retry_attempts: int = Field(default=3, ge=0)
