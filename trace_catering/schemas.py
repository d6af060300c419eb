"""Schema helpers for trace fine-tuning datasets."""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

OUTPUT_FORMATS = ("jsonl", "csv")

STATUS_OK = "ok"
STATUS_NO_DATA = "no_data"
STATUS_ERROR = "error"


def default_output_path(output_format):
    return "log_analysis_dataset_{stamp}.{ext}".format(
        stamp=int(time.time() * 1000), ext=output_format
    )


@dataclass(frozen=True)
class DatasetConfig:
    """Sampling options for one dataset build."""

    output_format: str = "jsonl"
    sample_size: int = 100
    include_errors: bool = True
    include_warnings: bool = True
    output_path: str = ""

    def __post_init__(self):
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                "output_format must be one of: {formats}".format(
                    formats=", ".join(OUTPUT_FORMATS)
                )
            )
        if not self.output_path:
            object.__setattr__(self, "output_path", default_output_path(self.output_format))

    @classmethod
    def from_params(cls, params):
        """Apply defaults the way callers pass them: falsy values fall back,
        the include flags stay on unless explicitly False."""
        params = params or {}
        return cls(
            output_format=params.get("output_format") or "jsonl",
            sample_size=params.get("sample_size") or 100,
            include_errors=params.get("include_errors") is not False,
            include_warnings=params.get("include_warnings") is not False,
            output_path=params.get("output_path") or "",
        )


@dataclass
class DatasetExample:
    """One training record: prompt, instruction and target analysis in one blob."""

    text: str

    def to_dict(self):
        return {"text": self.text}


@dataclass
class DatasetResult:
    """Summary of one build run. Errors are reported here, never raised."""

    status: str
    message: str
    output_format: Optional[str] = None
    output_path: Optional[str] = None
    examples: List[DatasetExample] = field(default_factory=list)
    skipped_trace_ids: List[str] = field(default_factory=list)
    serialized: str = ""
    error: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def is_error(self):
        return self.status == STATUS_ERROR

    @property
    def example_count(self):
        return len(self.examples)

    def to_payload(self) -> Dict[str, Any]:
        if self.is_error:
            payload = {
                "isError": True,
                "message": self.message,
                "errorMessage": self.error,
            }
            if self.status_code is not None:
                payload["statusCode"] = self.status_code
            return payload
        return {
            "isError": False,
            "noData": self.status == STATUS_NO_DATA,
            "message": self.message,
            "format": self.output_format,
            "outputPath": self.output_path,
            "sampleSize": self.example_count,
            "datasetPreview": [example.to_dict() for example in self.examples[:2]],
        }
