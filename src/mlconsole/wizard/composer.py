"""Submission composers: turn accumulated form state into request payloads.

All functions here are pure. The same form state always yields the same
payload.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from mlconsole.api.models import (
    DataFilters,
    DatasetPreparation,
    SaveDatasetRequest,
    TrainingRunRequest,
)
from mlconsole.core.types import FileType
from mlconsole.wizard.hyperparameters import HyperparameterCatalogue
from mlconsole.wizard.models import DatasetForm, TrainingForm

# Payload keys for the per-split file path arrays, in payload order.
SPLIT_PATH_KEYS: dict[FileType, str] = {
    FileType.TRAIN: "train-data-path",
    FileType.TEST: "test-data-path",
    FileType.VAL: "validation-data-path",
}

# Form fields that feed the warehouse filters.
FILTER_FIELDS: frozenset[str] = frozenset(
    {
        "tenant_id",
        "customer_name",
        "date_range_start",
        "date_range_end",
        "languages",
        "asr_model_versions",
        "workflow_ids",
        "is_noisy",
        "overlapping_speech",
        "is_not_relevant",
        "is_voice_recording_na",
        "is_partial_audio",
        "is_unclear_audio",
    }
)


def to_timestamp(value: date | datetime) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Plain dates are taken as UTC midnight. Naive datetimes are assumed UTC.
    """
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        moment = moment.astimezone(timezone.utc)
    else:
        moment = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _text_or_none(value: str) -> str | None:
    value = value.strip()
    return value or None


def _list_or_none(values: list[str]) -> list[str] | None:
    cleaned = [v.strip() for v in values if v.strip()]
    return cleaned or None


def build_filters(form: DatasetForm) -> DataFilters:
    """Warehouse filters for the dataset form. Empty inputs mean "any"."""
    return DataFilters(
        customer_name=_text_or_none(form.customer_name),
        tenant_id=_text_or_none(form.tenant_id),
        date_range_start=to_timestamp(form.date_range_start) if form.date_range_start else None,
        date_range_end=to_timestamp(form.date_range_end) if form.date_range_end else None,
        languages=_list_or_none(form.languages),
        asr_model_versions=_list_or_none(form.asr_model_versions),
        workflow_ids=_list_or_none(form.workflow_ids),
        is_noisy=form.is_noisy,
        overlapping_speech=form.overlapping_speech,
        is_not_relevant=form.is_not_relevant,
        is_voice_recording_na=form.is_voice_recording_na,
        is_partial_audio=form.is_partial_audio,
        is_unclear_audio=form.is_unclear_audio,
    )


def compose_dataset_save(form: DatasetForm) -> SaveDatasetRequest:
    """Build the save request for a previewed fetch.

    Raises:
        ValueError: If no preview has been fetched.
    """
    if form.preview is None:
        raise ValueError("Cannot save a dataset before previewing it.")
    return SaveDatasetRequest(
        fetch_id=form.preview.fetch_id,
        dataset_name=form.dataset_name.strip(),
        filters=build_filters(form),
    )


def split_paths(
    selected: list[str], preparations: list[DatasetPreparation]
) -> dict[str, list[str]]:
    """Collect file paths per split for the selected preparations.

    A preparation without a file for some split contributes nothing to that
    split. Unknown ids are ignored and repeated ids count once.
    """
    by_id = {p.training_data_preparation_id: p for p in preparations}
    paths: dict[str, list[str]] = {key: [] for key in SPLIT_PATH_KEYS.values()}
    for prep_id in dict.fromkeys(selected):
        prep = by_id.get(prep_id)
        if prep is None:
            continue
        for file_type, key in SPLIT_PATH_KEYS.items():
            f = prep.file_for(file_type)
            if f is not None:
                paths[key].append(f.s3_path)
    return paths


def compose_hyperparameters(
    values: dict[str, Any], catalogue: HyperparameterCatalogue
) -> dict[str, Any]:
    """Visible values (falling back to defaults), then hidden defaults verbatim."""
    merged: dict[str, Any] = {}
    for entry in catalogue.visible:
        merged[entry.name] = entry.coerce(values.get(entry.name, entry.default))
    merged.update(catalogue.hidden_defaults())
    return merged


def execution_parameters(form: TrainingForm) -> dict[str, Any]:
    return {
        "gpu_type": form.gpu_type,
        "instance_type": form.instance_type,
        "memory": f"{form.memory_gb}GB",
        "timeout": form.timeout_seconds,
        "retry_attempts": form.retry_attempts,
    }


def compose_training_request(
    form: TrainingForm,
    preparations: list[DatasetPreparation],
    catalogue: HyperparameterCatalogue,
) -> TrainingRunRequest:
    """Build the training run request from the form and loaded preparations."""
    hyperparameters = compose_hyperparameters(form.hyperparameters, catalogue)
    paths = split_paths(form.selected_preparations, preparations)
    # Hidden defaults must win over anything else sharing their name.
    hyperparameters = {**hyperparameters, **paths, **catalogue.hidden_defaults()}

    return TrainingRunRequest(
        training_execution_name=form.name.strip(),
        customer_name=_text_or_none(form.customer_name),
        tenant_id=_text_or_none(form.tenant_id),
        description=_text_or_none(form.description),
        hyperparameters=hyperparameters,
        prefect_parameters=execution_parameters(form),
        training_data_preparation_ids=list(dict.fromkeys(form.selected_preparations)),
        base_model_artifact_id=_text_or_none(form.base_model_id),
    )
