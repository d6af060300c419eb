"""Utilities for preparing log-analysis fine-tuning datasets from distributed traces."""

from .build_dataset import build_dataset, serialize_dataset, to_csv, to_jsonl
from .features import (
    classify_error,
    duration_ms,
    events_with_level,
    group_by_service,
    make_completion,
    make_prompt,
    render_example_text,
)
from .schemas import DatasetConfig, DatasetExample, DatasetResult

__all__ = [
    "DatasetConfig",
    "DatasetExample",
    "DatasetResult",
    "build_dataset",
    "serialize_dataset",
    "to_jsonl",
    "to_csv",
    "group_by_service",
    "events_with_level",
    "duration_ms",
    "classify_error",
    "make_prompt",
    "make_completion",
    "render_example_text",
]
