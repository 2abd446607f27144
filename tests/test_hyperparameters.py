"""Tests for the hyperparameter catalogue and value coercion."""

from __future__ import annotations

import pytest

from mlconsole.wizard.hyperparameters import (
    Hyperparameter,
    HyperparameterCatalogue,
    HyperparameterType,
    coerce_value,
    load_catalogue,
)


class TestCoerceValue:
    @pytest.mark.parametrize(
        "raw,expected",
        [(8, 8), ("16", 16), (" 4 ", 4), (32.0, 32)],
    )
    def test_int(self, raw, expected):
        value = coerce_value(HyperparameterType.INT, raw)
        assert value == expected
        assert type(value) is int

    @pytest.mark.parametrize("raw", [True, 2.5, "abc", None])
    def test_int_rejects(self, raw):
        with pytest.raises(ValueError):
            coerce_value(HyperparameterType.INT, raw)

    def test_float(self):
        assert coerce_value(HyperparameterType.FLOAT, "0.0001") == pytest.approx(1e-4)
        value = coerce_value(HyperparameterType.FLOAT, 0)
        assert value == 0.0
        assert type(value) is float

    def test_float_rejects_bool(self):
        with pytest.raises(ValueError):
            coerce_value(HyperparameterType.FLOAT, False)

    @pytest.mark.parametrize(
        "raw,expected",
        [(True, True), ("true", True), ("Yes", True), ("0", False), ("off", False)],
    )
    def test_bool(self, raw, expected):
        assert coerce_value(HyperparameterType.BOOL, raw) is expected

    def test_bool_rejects_garbage(self):
        with pytest.raises(ValueError, match="Expected a boolean"):
            coerce_value(HyperparameterType.BOOL, "maybe")

    def test_string(self):
        assert coerce_value(HyperparameterType.STRING, "adafactor") == "adafactor"
        assert coerce_value(HyperparameterType.STRING, 5) == "5"

    def test_string_rejects_none(self):
        with pytest.raises(ValueError):
            coerce_value(HyperparameterType.STRING, None)


class TestCatalogue:
    def test_rejects_duplicates(self):
        entry = Hyperparameter(name="lr", type=HyperparameterType.FLOAT, default=0.1)
        with pytest.raises(ValueError, match="Duplicate"):
            HyperparameterCatalogue([entry, entry])

    def test_visible_and_hidden_split(self):
        catalogue = HyperparameterCatalogue(
            [
                Hyperparameter(name="lr", type=HyperparameterType.FLOAT, default=0.1),
                Hyperparameter(
                    name="wandb-project",
                    type=HyperparameterType.STRING,
                    default="internal",
                    hidden=True,
                ),
            ]
        )
        assert [e.name for e in catalogue.visible] == ["lr"]
        assert catalogue.visible_defaults() == {"lr": 0.1}
        assert catalogue.hidden_defaults() == {"wandb-project": "internal"}
        assert "lr" in catalogue
        assert len(catalogue) == 2

    def test_get_unknown(self):
        catalogue = HyperparameterCatalogue([])
        with pytest.raises(KeyError):
            catalogue.get("lr")


class TestLoadCatalogue:
    def test_default_file(self, catalogue):
        assert len(catalogue.visible) == 20
        assert catalogue.hidden_defaults() == {
            "wandb-logging": True,
            "wandb-project": "aiola-internal-asr",
            "wandb-entity": "aiola-ds",
        }
        defaults = catalogue.visible_defaults()
        assert defaults["batch-size"] == 8
        assert defaults["lr"] == pytest.approx(0.0001)
        assert defaults["debug-mode"] is False
        assert defaults["parts-to-freeze"] == "None"
        assert "train-data-path" not in catalogue

    def test_custom_file(self, tmp_path):
        path = tmp_path / "hp.yml"
        path.write_text(
            "hyperparameters:\n"
            "  - name: epochs\n"
            "    type: int\n"
            "    default: '3'\n"
            "  - name: secret\n"
            "    type: str\n"
            "    default: x\n"
            "    hidden: true\n"
        )
        catalogue = load_catalogue(path)
        assert catalogue.visible_defaults() == {"epochs": 3}
        assert catalogue.hidden_defaults() == {"secret": "x"}

    def test_invalid_default(self, tmp_path):
        path = tmp_path / "hp.yml"
        path.write_text(
            "hyperparameters:\n"
            "  - name: epochs\n"
            "    type: int\n"
            "    default: many\n"
        )
        with pytest.raises(ValueError):
            load_catalogue(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_catalogue(tmp_path / "nope.yml")
