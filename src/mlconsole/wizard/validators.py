"""Step validators: pure predicates gating forward navigation.

Whitespace-only strings count as empty everywhere.
"""

from __future__ import annotations

from typing import Any

from mlconsole.wizard.models import DatasetForm, TrainingForm

# Dataset wizard step ids
DATASET_CUSTOMER = 1
DATASET_FILTERS = 2
DATASET_PREVIEW = 3
DATASET_SAVE = 4

# Training wizard step ids
TRAINING_BASIC_INFO = 1
TRAINING_SELECT_DATA = 2
TRAINING_BASE_MODEL = 3
TRAINING_HYPERPARAMETERS = 4
TRAINING_EXECUTION = 5
TRAINING_REVIEW = 6


def is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _has_records(form: DatasetForm) -> bool:
    return form.preview is not None and form.preview.record_count > 0


def dataset_can_advance(step_id: int, form: DatasetForm) -> bool:
    """Return True if the dataset wizard may leave (or submit) ``step_id``."""
    if step_id == DATASET_CUSTOMER:
        return is_filled(form.tenant_id)
    if step_id == DATASET_FILTERS:
        return True
    if step_id == DATASET_PREVIEW:
        return _has_records(form)
    if step_id == DATASET_SAVE:
        return _has_records(form) and is_filled(form.dataset_name)
    return False


def training_can_advance(step_id: int, form: TrainingForm) -> bool:
    """Return True if the training wizard may leave (or submit) ``step_id``."""
    if step_id == TRAINING_BASIC_INFO:
        return is_filled(form.tenant_id)
    if step_id == TRAINING_SELECT_DATA:
        return any(is_filled(p) for p in form.selected_preparations)
    if step_id == TRAINING_BASE_MODEL:
        return is_filled(form.base_model_id)
    if step_id in (TRAINING_HYPERPARAMETERS, TRAINING_EXECUTION):
        return True
    if step_id == TRAINING_REVIEW:
        return is_filled(form.name) and all(
            training_can_advance(prior, form) for prior in range(1, TRAINING_REVIEW)
        )
    return False
