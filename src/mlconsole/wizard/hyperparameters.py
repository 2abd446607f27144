"""Hyperparameter catalogue driving both the training form and its payload."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

_DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parents[3] / "config" / "hyperparameters.yml"

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}

HyperparameterValue = int | float | bool | str


class HyperparameterType(StrEnum):
    """Value type of a hyperparameter."""

    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "str"


def coerce_value(kind: HyperparameterType, raw: Any) -> HyperparameterValue:
    """Convert ``raw`` to the Python type for ``kind``.

    Raises:
        ValueError: If ``raw`` cannot represent a value of ``kind``, or
            ``kind`` is not a known type.
    """
    if raw is None:
        raise ValueError(f"Expected a {kind} value, got None")
    if kind is HyperparameterType.INT:
        if isinstance(raw, bool):
            raise ValueError(f"Expected an integer, got {raw!r}")
        if isinstance(raw, float):
            if not raw.is_integer():
                raise ValueError(f"Expected an integer, got {raw!r}")
            return int(raw)
        return int(str(raw).strip()) if isinstance(raw, str) else int(raw)
    if kind is HyperparameterType.FLOAT:
        if isinstance(raw, bool):
            raise ValueError(f"Expected a number, got {raw!r}")
        return float(raw)
    if kind is HyperparameterType.BOOL:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"Expected a boolean, got {raw!r}")
    if kind is HyperparameterType.STRING:
        return str(raw)
    raise ValueError(f"Unsupported hyperparameter type: {kind!r}")


class Hyperparameter(BaseModel):
    """One catalogue entry."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: HyperparameterType
    default: HyperparameterValue
    description: str = ""
    hidden: bool = False

    def coerce(self, raw: Any) -> HyperparameterValue:
        return coerce_value(self.type, raw)


class HyperparameterCatalogue:
    """Ordered set of hyperparameters, split into visible and hidden entries."""

    def __init__(self, entries: list[Hyperparameter]) -> None:
        self._entries: dict[str, Hyperparameter] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise ValueError(f"Duplicate hyperparameter: {entry.name!r}")
            self._entries[entry.name] = entry

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Hyperparameter:
        """Raises KeyError if ``name`` is not in the catalogue."""
        try:
            return self._entries[name]
        except KeyError:
            raise KeyError(f"Unknown hyperparameter: {name!r}") from None

    @property
    def visible(self) -> list[Hyperparameter]:
        return [e for e in self._entries.values() if not e.hidden]

    @property
    def hidden(self) -> list[Hyperparameter]:
        return [e for e in self._entries.values() if e.hidden]

    def visible_defaults(self) -> dict[str, HyperparameterValue]:
        return {e.name: e.default for e in self.visible}

    def hidden_defaults(self) -> dict[str, HyperparameterValue]:
        return {e.name: e.default for e in self.hidden}


def _parse_hyperparameter(data: dict[str, Any]) -> Hyperparameter:
    kind = HyperparameterType(data.get("type", "str"))
    return Hyperparameter(
        name=data["name"],
        type=kind,
        default=coerce_value(kind, data.get("default", "")),
        description=data.get("description", ""),
        hidden=data.get("hidden", False),
    )


def load_catalogue(path: str | Path | None = None) -> HyperparameterCatalogue:
    """Load the hyperparameter catalogue from YAML.

    Raises:
        FileNotFoundError: If the catalogue file does not exist.
        ValueError: If an entry has an unknown type or an invalid default.
    """
    catalogue_path = Path(path) if path else _DEFAULT_CATALOGUE_PATH
    if not catalogue_path.is_absolute() and not catalogue_path.exists():
        catalogue_path = _DEFAULT_CATALOGUE_PATH.parents[1] / catalogue_path
    with open(catalogue_path) as fh:
        data = yaml.safe_load(fh) or {}
    return HyperparameterCatalogue(
        [_parse_hyperparameter(h) for h in data.get("hyperparameters", [])]
    )
