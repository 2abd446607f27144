"""FastAPI router for dataset and training wizard sessions."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from mlconsole.core.types import WizardKind
from mlconsole.wizard.controller import DatasetWizard, TrainingWizard, WizardController, create_wizard

router = APIRouter()


# --- Request/Response models ---


class StepInfo(BaseModel):
    id: int
    title: str
    description: str = ""


class WizardInfo(BaseModel):
    kind: str
    steps: list[StepInfo]


class WizardView(BaseModel):
    id: str
    kind: str
    steps: list[StepInfo]
    current_step: int
    submitting: bool
    submitted: bool
    can_advance: bool
    can_retreat: bool
    can_submit: bool
    form: dict[str, Any]
    options: dict[str, dict[str, Any]]
    result: dict[str, Any] | None = None


class ActionResponse(BaseModel):
    ok: bool
    wizard: WizardView


class FieldsUpdateRequest(BaseModel):
    fields: dict[str, Any] = Field(default_factory=dict)


class TenantSelectRequest(BaseModel):
    tenant_id: str


class HyperparameterRequest(BaseModel):
    value: Any = None


class NotificationResponse(BaseModel):
    id: str
    level: str
    message: str
    created_at: str


_WIZARD_CLASSES: dict[WizardKind, type[WizardController]] = {
    WizardKind.DATASET: DatasetWizard,
    WizardKind.TRAINING: TrainingWizard,
}


def _steps(cls: type[WizardController]) -> list[StepInfo]:
    return [StepInfo(id=s.id, title=s.title, description=s.description) for s in cls.steps]


def _view(wizard: WizardController) -> WizardView:
    return WizardView(
        id=wizard.id,
        kind=wizard.kind.value,
        steps=_steps(type(wizard)),
        current_step=wizard.state.current_step,
        submitting=wizard.state.submitting,
        submitted=wizard.state.submitted,
        can_advance=wizard.can_advance(),
        can_retreat=wizard.can_retreat(),
        can_submit=wizard.can_submit(),
        form=wizard.form.model_dump(mode="json"),
        options={
            kind.value: option_set.model_dump(mode="json")
            for kind, option_set in wizard.loader.option_sets().items()
        },
        result=wizard.result.model_dump(mode="json") if wizard.result else None,
    )


def _get_wizard(request: Request, wizard_id: str) -> WizardController:
    wizard = request.app.state.wizard_store.get(wizard_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Wizard {wizard_id!r} not found")
    return wizard


# --- Wizard endpoints ---


@router.get("/api/wizards")
async def list_wizards() -> list[WizardInfo]:
    return [
        WizardInfo(kind=kind.value, steps=_steps(cls))
        for kind, cls in _WIZARD_CLASSES.items()
    ]


@router.post("/api/wizards/{kind}/start")
async def start_wizard(kind: str, request: Request) -> WizardView:
    try:
        wizard_kind = WizardKind(kind)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown wizard: {kind!r}")

    settings = request.app.state.settings
    wizard = create_wizard(
        wizard_kind,
        request.app.state.data_source,
        request.app.state.catalogue,
        preview_limit=settings.wizard.preview_limit,
    )
    wizard.start()
    await wizard.loader.settle()
    request.app.state.wizard_store.save(wizard)
    return _view(wizard)


@router.get("/api/wizards/sessions/{wizard_id}")
async def get_wizard(wizard_id: str, request: Request) -> WizardView:
    return _view(_get_wizard(request, wizard_id))


@router.delete("/api/wizards/sessions/{wizard_id}")
async def discard_wizard(wizard_id: str, request: Request) -> dict[str, Any]:
    wizard = request.app.state.wizard_store.remove(wizard_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Wizard {wizard_id!r} not found")
    return {"removed": True}


@router.patch("/api/wizards/sessions/{wizard_id}/fields")
async def update_fields(
    wizard_id: str, body: FieldsUpdateRequest, request: Request
) -> WizardView:
    wizard = _get_wizard(request, wizard_id)
    try:
        wizard.update_fields(**body.fields)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await wizard.loader.settle()
    return _view(wizard)


@router.put("/api/wizards/sessions/{wizard_id}/hyperparameters/{name}")
async def set_hyperparameter(
    wizard_id: str, name: str, body: HyperparameterRequest, request: Request
) -> WizardView:
    wizard = _get_wizard(request, wizard_id)
    if not isinstance(wizard, TrainingWizard):
        raise HTTPException(status_code=400, detail="Only training wizards have hyperparameters")
    try:
        wizard.set_hyperparameter(name, body.value)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _view(wizard)


@router.delete("/api/wizards/sessions/{wizard_id}/hyperparameters")
async def reset_hyperparameters(wizard_id: str, request: Request) -> WizardView:
    """Restore every visible hyperparameter to its catalogue default."""
    wizard = _get_wizard(request, wizard_id)
    if not isinstance(wizard, TrainingWizard):
        raise HTTPException(status_code=400, detail="Only training wizards have hyperparameters")
    try:
        wizard.reset_hyperparameters()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _view(wizard)


@router.post("/api/wizards/sessions/{wizard_id}/tenant")
async def select_tenant(
    wizard_id: str, body: TenantSelectRequest, request: Request
) -> WizardView:
    wizard = _get_wizard(request, wizard_id)
    try:
        wizard.select_tenant(body.tenant_id)
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    await wizard.loader.settle()
    return _view(wizard)


@router.post("/api/wizards/sessions/{wizard_id}/advance")
async def advance(wizard_id: str, request: Request) -> ActionResponse:
    wizard = _get_wizard(request, wizard_id)
    ok = wizard.advance()
    await wizard.loader.settle()
    return ActionResponse(ok=ok, wizard=_view(wizard))


@router.post("/api/wizards/sessions/{wizard_id}/back")
async def go_back(wizard_id: str, request: Request) -> ActionResponse:
    wizard = _get_wizard(request, wizard_id)
    ok = wizard.retreat()
    return ActionResponse(ok=ok, wizard=_view(wizard))


@router.post("/api/wizards/sessions/{wizard_id}/preview")
async def reload_preview(wizard_id: str, request: Request) -> ActionResponse:
    wizard = _get_wizard(request, wizard_id)
    if not isinstance(wizard, DatasetWizard):
        raise HTTPException(status_code=400, detail="Only dataset wizards have a preview")
    ok = wizard.reload_preview()
    await wizard.loader.settle()
    return ActionResponse(ok=ok, wizard=_view(wizard))


@router.post("/api/wizards/sessions/{wizard_id}/submit")
async def submit(wizard_id: str, request: Request) -> ActionResponse:
    wizard = _get_wizard(request, wizard_id)
    result = await wizard.submit()
    return ActionResponse(ok=result is not None, wizard=_view(wizard))


@router.get("/api/wizards/sessions/{wizard_id}/notifications")
async def drain_notifications(wizard_id: str, request: Request) -> list[NotificationResponse]:
    wizard = _get_wizard(request, wizard_id)
    return [
        NotificationResponse(
            id=n.id,
            level=n.level.value,
            message=n.message,
            created_at=n.created_at.isoformat(),
        )
        for n in wizard.notifier.drain()
    ]
