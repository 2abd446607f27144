"""Core type definitions shared across mlconsole modules."""

from __future__ import annotations

from enum import StrEnum


class FileType(StrEnum):
    """Kinds of files attached to a dataset preparation."""

    TRAIN = "train"
    TEST = "test"
    VAL = "val"
    ORIGIN = "origin"
    PROCESSED = "processed"


class ArtifactType(StrEnum):
    """Model artifact families known to the training backend."""

    TRTLLM = "TRTLLM"
    RAW_WEIGHT = "RAW_WEIGHT"


class ExecutionStatus(StrEnum):
    """Lifecycle status of a training execution."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    CANCELLING = "CANCELLING"


class ResourceKind(StrEnum):
    """Option sets a wizard loads from the data source."""

    TENANTS = "tenants"
    WORKFLOWS = "workflows"
    ASR_MODELS = "asr_models"
    BASE_MODELS = "base_models"
    DATASET_PREPARATIONS = "dataset_preparations"
    PREVIEW = "preview"


class WizardKind(StrEnum):
    DATASET = "dataset"
    TRAINING = "training"


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"
