"""Tests for the step validators."""

from __future__ import annotations

from mlconsole.api.models import FilterPreview
from mlconsole.wizard.models import DatasetForm, TrainingForm
from mlconsole.wizard.validators import (
    dataset_can_advance,
    is_filled,
    training_can_advance,
)


def _preview(count: int) -> FilterPreview:
    return FilterPreview(fetch_id="fetch_1", record_count=count)


def _complete_training_form(**overrides) -> TrainingForm:
    values = {
        "tenant_id": "tenant_001",
        "customer_name": "Customer A",
        "name": "Customer A ASR 2025-03-14",
        "selected_preparations": ["prep_1"],
        "base_model_id": "base_001",
    }
    values.update(overrides)
    return TrainingForm(**values)


class TestIsFilled:
    def test_blank_strings(self):
        assert not is_filled("")
        assert not is_filled("   ")
        assert not is_filled(None)

    def test_values(self):
        assert is_filled("x")
        assert is_filled(0)
        assert is_filled(False)


class TestDatasetValidator:
    def test_customer_step_requires_tenant(self):
        assert not dataset_can_advance(1, DatasetForm())
        assert not dataset_can_advance(1, DatasetForm(tenant_id="  "))
        assert dataset_can_advance(1, DatasetForm(tenant_id="tenant_001"))

    def test_filters_step_always_passes(self):
        assert dataset_can_advance(2, DatasetForm())

    def test_preview_step_requires_records(self):
        assert not dataset_can_advance(3, DatasetForm())
        assert not dataset_can_advance(3, DatasetForm(preview=_preview(0)))
        assert dataset_can_advance(3, DatasetForm(preview=_preview(12)))

    def test_save_step_requires_name_and_preview(self):
        assert not dataset_can_advance(4, DatasetForm(preview=_preview(12)))
        assert not dataset_can_advance(4, DatasetForm(preview=_preview(12), dataset_name="\t"))
        assert not dataset_can_advance(4, DatasetForm(dataset_name="Q1"))
        assert dataset_can_advance(4, DatasetForm(preview=_preview(12), dataset_name="Q1"))

    def test_unknown_step(self):
        assert not dataset_can_advance(0, DatasetForm(tenant_id="t"))
        assert not dataset_can_advance(5, DatasetForm(tenant_id="t"))


class TestTrainingValidator:
    def test_basic_info_requires_tenant(self):
        assert not training_can_advance(1, TrainingForm())
        assert training_can_advance(1, TrainingForm(tenant_id="tenant_001"))

    def test_select_data_requires_a_selection(self):
        assert not training_can_advance(2, TrainingForm())
        assert not training_can_advance(2, TrainingForm(selected_preparations=[" "]))
        assert training_can_advance(2, TrainingForm(selected_preparations=["prep_1"]))

    def test_base_model_required(self):
        assert not training_can_advance(3, TrainingForm())
        assert training_can_advance(3, TrainingForm(base_model_id="base_001"))

    def test_parameter_steps_always_pass(self):
        assert training_can_advance(4, TrainingForm())
        assert training_can_advance(5, TrainingForm())

    def test_review_requires_everything(self):
        assert training_can_advance(6, _complete_training_form())
        assert not training_can_advance(6, _complete_training_form(name="  "))
        assert not training_can_advance(6, _complete_training_form(tenant_id=""))
        assert not training_can_advance(6, _complete_training_form(selected_preparations=[]))
        assert not training_can_advance(6, _complete_training_form(base_model_id=""))

    def test_unknown_step(self):
        assert not training_can_advance(7, _complete_training_form())
