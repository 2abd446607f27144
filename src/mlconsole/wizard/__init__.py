"""Dataset and training wizards: step-gated flows ending in one submission."""

from mlconsole.wizard.controller import (
    DatasetWizard,
    TrainingWizard,
    WizardController,
    create_wizard,
)
from mlconsole.wizard.hyperparameters import HyperparameterCatalogue, load_catalogue

__all__ = [
    "DatasetWizard",
    "HyperparameterCatalogue",
    "TrainingWizard",
    "WizardController",
    "create_wizard",
    "load_catalogue",
]
