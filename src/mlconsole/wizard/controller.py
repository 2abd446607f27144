"""Wizard controllers: linear, step-gated flows ending in one submission."""

from __future__ import annotations

import abc
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar

from pydantic import BaseModel

from mlconsole.api.models import (
    DatasetPreparation,
    FilterPreview,
    ModelArtifact,
    Tenant,
    Workflow,
)
from mlconsole.api.source import DataSource, FetchError
from mlconsole.core.types import ArtifactType, ResourceKind, WizardKind
from mlconsole.wizard.composer import (
    FILTER_FIELDS,
    build_filters,
    compose_dataset_save,
    compose_training_request,
)
from mlconsole.wizard.hyperparameters import HyperparameterCatalogue
from mlconsole.wizard.loader import DependentDataLoader
from mlconsole.wizard.models import (
    DatasetForm,
    FormState,
    Step,
    TrainingForm,
    WizardState,
)
from mlconsole.wizard.notifier import Notifier
from mlconsole.wizard.validators import (
    DATASET_PREVIEW,
    dataset_can_advance,
    training_can_advance,
)

logger = logging.getLogger(__name__)

_ALL_TENANTS = "*"


class WizardController(abc.ABC):
    """Drives one wizard instance.

    Steps are visited strictly in order: ``advance`` moves forward by one
    when the current step validates and none of the fetches it owns is in
    flight, ``retreat`` moves back by one without validation, and ``submit``
    runs only from the last step. Navigation never raises; a blocked action
    returns ``False`` (or ``None`` for ``submit``) and leaves state unchanged.
    """

    kind: ClassVar[WizardKind]
    steps: ClassVar[tuple[Step, ...]]
    # Fields only the controller writes (derived or set via dedicated actions).
    protected_fields: ClassVar[frozenset[str]] = frozenset({"tenant_id", "customer_name"})
    success_message: ClassVar[str] = "Submitted successfully!"
    failure_message: ClassVar[str] = "Submission failed"

    def __init__(self, source: DataSource, notifier: Notifier | None = None) -> None:
        self.id = str(uuid.uuid4())
        self._source = source
        self.notifier = notifier or Notifier()
        self.loader = DependentDataLoader(self.notifier)
        self.state = WizardState()
        self.form: FormState = self._initial_form()
        self.result: BaseModel | None = None

    # -- hooks ---------------------------------------------------------------

    @abc.abstractmethod
    def _initial_form(self) -> FormState:
        """Return a form with every field at its default."""

    @abc.abstractmethod
    def validate_step(self, step_id: int) -> bool:
        """Step validator for this wizard, applied to the current form."""

    @abc.abstractmethod
    def _on_tenant_selected(self, tenant: Tenant) -> None:
        """Reset tenant-dependent fields and start dependent loads."""

    @abc.abstractmethod
    async def _send(self) -> BaseModel:
        """Compose the payload and call the backend."""

    def _on_enter(self, step: Step) -> None:
        """Called after ``advance`` lands on ``step``."""

    def _check_fields(self, values: dict[str, Any]) -> None:
        """Raise ValueError if ``values`` reference unknown options."""

    def _on_fields_changed(self, changed: set[str]) -> None:
        """Called after user input changed ``changed`` fields."""

    # -- navigation ----------------------------------------------------------

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def current(self) -> Step:
        return self.steps[self.state.current_step - 1]

    def start(self) -> None:
        """Begin loading the tenant list."""
        self.loader.load(ResourceKind.TENANTS, _ALL_TENANTS, self._source.list_tenants)

    @property
    def tenants(self) -> list[Tenant]:
        return self.loader.items(ResourceKind.TENANTS)

    def can_advance(self) -> bool:
        return (
            not self.state.submitted
            and self.state.current_step < self.step_count
            and not self.loader.is_loading(*self.current.owns)
            and self.validate_step(self.state.current_step)
        )

    def can_retreat(self) -> bool:
        return not self.state.submitted and self.state.current_step > 1

    def can_submit(self) -> bool:
        return (
            not self.state.submitted
            and not self.state.submitting
            and self.state.current_step == self.step_count
            and not self.loader.is_loading(*self.current.owns)
            and self.validate_step(self.step_count)
        )

    def advance(self) -> bool:
        if not self.can_advance():
            logger.debug("Advance blocked on %s step %d", self.kind.value, self.state.current_step)
            return False
        self.state.current_step += 1
        self._on_enter(self.current)
        return True

    def retreat(self) -> bool:
        if not self.can_retreat():
            return False
        self.state.current_step -= 1
        return True

    async def submit(self) -> BaseModel | None:
        """Submit from the last step.

        On failure the form and step are left untouched so the user can retry.
        """
        if not self.can_submit():
            logger.debug("Submit blocked on %s wizard %s", self.kind.value, self.id)
            return None

        self.state.submitting = True
        try:
            result = await self._send()
        except FetchError as exc:
            logger.warning("%s wizard %s submission failed: %s", self.kind.value, self.id, exc)
            self.notifier.error(self.failure_message)
            return None
        finally:
            self.state.submitting = False

        self.state.submitted = True
        self.result = result
        self.notifier.success(self.success_message)
        logger.info("%s wizard %s submitted", self.kind.value, self.id)
        return result

    # -- input handlers ------------------------------------------------------

    def update_fields(self, **values: Any) -> None:
        """Apply user input to the form. All-or-nothing.

        Raises:
            KeyError: If a field does not exist.
            ValueError: If a field is controller-owned, a value is invalid,
                or the wizard was already submitted.
        """
        if self.state.submitted:
            raise ValueError("Wizard has already been submitted.")
        fields = type(self.form).model_fields
        for name in values:
            if name not in fields:
                raise KeyError(f"Unknown field: {name!r}")
            if name in self.protected_fields:
                raise ValueError(f"Field {name!r} cannot be set directly.")

        self._check_fields(values)
        updated = type(self.form).model_validate({**dict(self.form), **values})
        changed = {name for name in values if getattr(updated, name) != getattr(self.form, name)}
        self.form = updated
        if changed:
            self._on_fields_changed(changed)

    def select_tenant(self, tenant_id: str) -> None:
        """Select the upstream tenant and reload everything that depends on it.

        Selecting the same tenant again reloads its options.

        Raises:
            KeyError: If the tenant is not in the loaded tenant list.
            ValueError: If the wizard was already submitted.
        """
        if self.state.submitted:
            raise ValueError("Wizard has already been submitted.")
        tenant_id = tenant_id.strip()
        tenant = next((t for t in self.tenants if t.tenant_id == tenant_id), None)
        if tenant is None:
            raise KeyError(f"Unknown tenant: {tenant_id!r}")

        self.form.tenant_id = tenant.tenant_id
        self.form.customer_name = tenant.tenant_name
        self._on_tenant_selected(tenant)


class DatasetWizard(WizardController):
    """Customer -> filters -> preview -> save."""

    kind = WizardKind.DATASET
    steps = (
        Step(id=1, title="Customer", description="Select the customer to pull data for"),
        Step(id=2, title="Filters", description="Narrow down the recordings (optional)"),
        Step(
            id=3,
            title="Preview",
            description="Review how many records match",
            owns=(ResourceKind.PREVIEW,),
        ),
        Step(
            id=4,
            title="Save",
            description="Name and save the dataset",
            owns=(ResourceKind.PREVIEW,),
        ),
    )
    protected_fields = frozenset({"tenant_id", "customer_name", "preview"})
    success_message = "Dataset created successfully!"
    failure_message = "Failed to create dataset"

    form: DatasetForm

    def __init__(
        self,
        source: DataSource,
        notifier: Notifier | None = None,
        preview_limit: int | None = None,
    ) -> None:
        super().__init__(source, notifier)
        self._preview_limit = preview_limit

    def _initial_form(self) -> DatasetForm:
        return DatasetForm()

    def validate_step(self, step_id: int) -> bool:
        return dataset_can_advance(step_id, self.form)

    @property
    def workflows(self) -> list[Workflow]:
        return self.loader.items(ResourceKind.WORKFLOWS)

    @property
    def asr_models(self) -> list[ModelArtifact]:
        return self.loader.items(ResourceKind.ASR_MODELS)

    def _on_tenant_selected(self, tenant: Tenant) -> None:
        self._invalidate_preview()
        self.form.workflow_ids = []
        self.form.asr_model_versions = []
        tenant_id = tenant.tenant_id
        self.loader.load(
            ResourceKind.WORKFLOWS, tenant_id, lambda: self._source.list_workflows(tenant_id)
        )
        self.loader.load(
            ResourceKind.ASR_MODELS,
            tenant_id,
            lambda: self._source.list_models(tenant_id, ArtifactType.TRTLLM),
        )

    def _on_enter(self, step: Step) -> None:
        if step.id == DATASET_PREVIEW:
            self._load_preview()

    def _on_fields_changed(self, changed: set[str]) -> None:
        if changed & FILTER_FIELDS:
            self._invalidate_preview()

    def reload_preview(self) -> bool:
        """Fetch the preview again, e.g. after a failure or a filter change."""
        if self.state.submitted or self.state.current_step < DATASET_PREVIEW:
            return False
        self._load_preview()
        return True

    def _load_preview(self) -> None:
        filters = build_filters(self.form)
        self.form.preview = None
        limit = self._preview_limit
        self.loader.load(
            ResourceKind.PREVIEW,
            filters.model_dump_json(),
            lambda: self._source.preview_filtered_data(filters, limit),
            on_success=self._set_preview,
        )

    def _set_preview(self, preview: FilterPreview) -> None:
        self.form.preview = preview
        if preview.record_count <= 0:
            self.notifier.info("No records match the selected filters")

    def _invalidate_preview(self) -> None:
        self.loader.discard(ResourceKind.PREVIEW)
        self.form.preview = None

    async def _send(self) -> BaseModel:
        request = compose_dataset_save(self.form)
        return await self._source.save_dataset(
            request.fetch_id, request.dataset_name, request.filters
        )


class TrainingWizard(WizardController):
    """Basic info -> data -> base model -> hyperparameters -> execution -> review."""

    kind = WizardKind.TRAINING
    steps = (
        Step(id=1, title="Basic Information", description="Name the run and pick the customer"),
        Step(
            id=2,
            title="Select Data",
            description="Choose the dataset preparations to train on",
            owns=(ResourceKind.DATASET_PREPARATIONS,),
        ),
        Step(
            id=3,
            title="Base Model",
            description="Choose the model to fine-tune",
            owns=(ResourceKind.BASE_MODELS,),
        ),
        Step(id=4, title="Hyperparameters", description="Configure the model hyperparameters"),
        Step(id=5, title="Execution Parameters", description="Set up the execution environment"),
        Step(
            id=6,
            title="Review & Submit",
            description="Review your configuration and submit",
            owns=(ResourceKind.DATASET_PREPARATIONS,),
        ),
    )
    protected_fields = frozenset({"tenant_id", "customer_name", "hyperparameters"})
    success_message = "Training run created successfully!"
    failure_message = "Failed to create training run"

    form: TrainingForm

    def __init__(
        self,
        source: DataSource,
        catalogue: HyperparameterCatalogue,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.catalogue = catalogue
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._auto_name: str | None = None
        super().__init__(source, notifier)

    def _initial_form(self) -> TrainingForm:
        return TrainingForm(hyperparameters=self.catalogue.visible_defaults())

    def validate_step(self, step_id: int) -> bool:
        return training_can_advance(step_id, self.form)

    @property
    def preparations(self) -> list[DatasetPreparation]:
        return self.loader.items(ResourceKind.DATASET_PREPARATIONS)

    @property
    def base_models(self) -> list[ModelArtifact]:
        return self.loader.items(ResourceKind.BASE_MODELS)

    def _on_tenant_selected(self, tenant: Tenant) -> None:
        self.form.selected_preparations = []
        self.form.base_model_id = ""
        if not self.form.name.strip() or self.form.name == self._auto_name:
            self._auto_name = f"{tenant.tenant_name} ASR {self._clock().date().isoformat()}"
            self.form.name = self._auto_name

        tenant_id = tenant.tenant_id
        self.loader.load(
            ResourceKind.DATASET_PREPARATIONS,
            tenant_id,
            lambda: self._source.list_dataset_preparations(tenant_id),
        )
        self.loader.load(
            ResourceKind.BASE_MODELS,
            tenant_id,
            lambda: self._source.list_models(tenant_id, ArtifactType.RAW_WEIGHT),
        )

    def _check_fields(self, values: dict[str, Any]) -> None:
        if "selected_preparations" in values:
            selected = [str(p) for p in values["selected_preparations"] or []]
            if len(set(selected)) != len(selected):
                raise ValueError("Dataset preparations must not repeat")
            known = {p.training_data_preparation_id for p in self.preparations}
            unknown = [p for p in selected if p not in known]
            if unknown:
                raise ValueError(f"Unknown dataset preparations: {unknown}")
        if values.get("base_model_id"):
            known = {m.artifact_id for m in self.base_models}
            if values["base_model_id"] not in known:
                raise ValueError(f"Unknown base model: {values['base_model_id']!r}")

    def set_hyperparameter(self, name: str, raw: Any) -> None:
        """Set a visible hyperparameter from user input.

        Raises:
            KeyError: If ``name`` is not a visible hyperparameter.
            ValueError: If ``raw`` does not fit the hyperparameter's type.
        """
        if self.state.submitted:
            raise ValueError("Wizard has already been submitted.")
        entry = self.catalogue.get(name)
        if entry.hidden:
            raise KeyError(f"Unknown hyperparameter: {name!r}")
        self.form.hyperparameters = {**self.form.hyperparameters, name: entry.coerce(raw)}

    def reset_hyperparameters(self) -> None:
        if self.state.submitted:
            raise ValueError("Wizard has already been submitted.")
        self.form.hyperparameters = self.catalogue.visible_defaults()

    async def _send(self) -> BaseModel:
        request = compose_training_request(self.form, self.preparations, self.catalogue)
        return await self._source.create_training_run(request)


def create_wizard(
    kind: WizardKind,
    source: DataSource,
    catalogue: HyperparameterCatalogue,
    preview_limit: int | None = None,
) -> WizardController:
    """Factory: instantiate the wizard for ``kind``."""
    if kind == WizardKind.DATASET:
        return DatasetWizard(source, preview_limit=preview_limit)
    if kind == WizardKind.TRAINING:
        return TrainingWizard(source, catalogue)
    raise ValueError(f"Unknown wizard kind: {kind!r}")
