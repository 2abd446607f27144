"""HTTP data source talking to the training backend REST API."""

from __future__ import annotations

import logging
from typing import Any, Callable

import httpx
from pydantic import TypeAdapter, ValidationError

from mlconsole.api.models import (
    AuthUser,
    DataFilters,
    DatasetPreparation,
    Evaluation,
    FilterPreview,
    FilterRequest,
    ModelArtifact,
    Page,
    SaveDatasetRequest,
    SavedDataset,
    Tenant,
    TrainingExecution,
    TrainingRunFilters,
    TrainingRunRequest,
    Workflow,
)
from mlconsole.api.source import FetchError
from mlconsole.core.config import ApiConfig
from mlconsole.core.types import ArtifactType

logger = logging.getLogger(__name__)


class HttpDataSource:
    """Talks to the training backend's JSON API with bearer-token auth.

    The token comes from ``token_provider`` when given (an external auth
    collaborator), otherwise from ``ApiConfig.token``. Transport failures and
    non-2xx responses surface as :class:`FetchError`; nothing is retried.
    """

    def __init__(
        self,
        config: ApiConfig,
        token_provider: Callable[[], str | None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._token_provider = token_provider
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    # -- wizard operations ---------------------------------------------------

    async def list_tenants(self) -> list[Tenant]:
        url = "/training_data/tenant_ids_mapping"
        return self._validate(url, list[Tenant], await self._get_json(url))

    async def list_workflows(self, tenant_id: str) -> list[Workflow]:
        url = f"/training/tenant/{tenant_id}/workflow_ids"
        return self._validate(url, list[Workflow], await self._get_json(url))

    async def list_models(
        self, tenant_id: str | None, kind: ArtifactType
    ) -> list[ModelArtifact]:
        if kind == ArtifactType.TRTLLM and tenant_id:
            url = f"/training/tenant/{tenant_id}/trtllm_models"
            data = await self._get_json(url)
        else:
            url = "/model_artifacts/by-type"
            data = await self._get_json(url, params={"artifact_type": kind.value})
        items = self._validate(url, list[dict[str, Any]], data)
        models = self._validate(
            url, list[ModelArtifact], [{"artifact_type": kind.value, **item} for item in items]
        )
        if tenant_id is None:
            return models
        # Untenanted artifacts are shared base models.
        return [m for m in models if m.tenant_id in (None, tenant_id)]

    async def list_dataset_preparations(self, tenant_id: str) -> list[DatasetPreparation]:
        url = "/training_data/"
        data = await self._get_json(url, params={"tenant_id": tenant_id})
        return self._validate(url, Page[DatasetPreparation], data).items

    async def preview_filtered_data(
        self, filters: DataFilters, limit: int | None = None
    ) -> FilterPreview:
        url = "/training_data/filter"
        body = FilterRequest(filters=filters, limit=limit)
        data = await self._send("POST", url, json=body.model_dump(mode="json"))
        return self._validate(url, FilterPreview, data)

    async def save_dataset(
        self, fetch_id: str, name: str, filters: DataFilters
    ) -> SavedDataset:
        url = "/training_data/save_fetched_data"
        body = SaveDatasetRequest(fetch_id=fetch_id, dataset_name=name, filters=filters)
        data = await self._send("POST", url, json=body.model_dump(mode="json"))
        return self._validate(url, SavedDataset, data)

    async def create_training_run(self, payload: TrainingRunRequest) -> TrainingExecution:
        url = "/training/start"
        data = await self._send("POST", url, json=payload.model_dump(mode="json"))
        return self._validate(url, TrainingExecution, data)

    # -- catalogue operations ------------------------------------------------

    async def list_datasets(self) -> list[DatasetPreparation]:
        url = "/training_data/"
        return self._validate(url, Page[DatasetPreparation], await self._get_json(url)).items

    async def get_dataset(self, dataset_id: str) -> DatasetPreparation | None:
        url = f"/training_data/{dataset_id}"
        data = await self._get_json(url, allow_missing=True)
        if data is None:
            return None
        return self._validate(url, DatasetPreparation, data)

    async def delete_dataset(self, dataset_id: str) -> None:
        await self._send("DELETE", f"/training_data/{dataset_id}")

    async def list_training_runs(
        self, filters: TrainingRunFilters | None = None
    ) -> list[TrainingExecution]:
        url = "/training/"
        params = filters.to_query() if filters else []
        data = await self._get_json(url, params=params)
        return self._validate(url, Page[TrainingExecution], data).items

    async def get_training_run(self, execution_id: str) -> TrainingExecution | None:
        url = f"/training/{execution_id}"
        data = await self._get_json(url, allow_missing=True)
        if data is None:
            return None
        return self._validate(url, TrainingExecution, data)

    async def abort_training_run(self, execution_id: str, reason: str | None = None) -> None:
        await self._send(
            "POST",
            "/training/abort",
            json={"training_execution_id": execution_id, "reason": reason},
        )

    async def list_users(self) -> list[AuthUser]:
        url = "/auth/users"
        return self._validate(url, list[AuthUser], await self._get_json(url))

    async def list_evaluations(
        self, training_execution_id: str | None = None
    ) -> list[Evaluation]:
        url = "/evaluations/"
        params = {"training_execution_id": training_execution_id} if training_execution_id else None
        return self._validate(url, list[Evaluation], await self._get_json(url, params=params))

    async def get_evaluation(self, evaluation_id: str) -> Evaluation | None:
        url = f"/evaluations/{evaluation_id}"
        data = await self._get_json(url, allow_missing=True)
        if data is None:
            return None
        return self._validate(url, Evaluation, data)

    async def close(self) -> None:
        await self._http.aclose()

    # -- internal ------------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else self.config.token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _validate(url: str, shape: Any, data: Any) -> Any:
        """Parse a response body into ``shape``; a body that does not fit is a FetchError."""
        try:
            return TypeAdapter(shape).validate_python(data)
        except ValidationError as exc:
            logger.warning("Malformed response from %s: %s", url, exc)
            raise FetchError(f"Malformed response from {url}") from exc

    async def _get_json(
        self, url: str, params: Any = None, allow_missing: bool = False
    ) -> Any:
        return await self._send("GET", url, params=params, allow_missing=allow_missing)

    async def _send(
        self, method: str, url: str, allow_missing: bool = False, **kwargs: Any
    ) -> Any:
        try:
            resp = await self._http.request(method, url, headers=self._auth_headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise FetchError(f"Request to {url} failed: {exc}") from exc

        if allow_missing and resp.status_code == 404:
            return None
        if not resp.is_success:
            logger.warning("%s %s returned %d", method, url, resp.status_code)
            raise FetchError(
                f"API Error: {resp.status_code} {resp.reason_phrase}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("%s %s returned a non-JSON body", method, url)
            raise FetchError(f"Malformed response from {url}") from exc
