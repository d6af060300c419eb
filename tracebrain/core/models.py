# tracebrain/core/models.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_TRACES_URL = "http://localhost:8080/api/logs/traces"
DEFAULT_QUERY_URL = "http://localhost:8080/api/logs/query"


@dataclass(frozen=True)
class LogStoreSettings:
    """
    Where the log store lives and how to authenticate against it.
    Built once from config and handed to LogStoreClient.
    """
    traces_url: str = DEFAULT_TRACES_URL
    query_url: str = DEFAULT_QUERY_URL
    api_key: str = ""
    timeout_seconds: int = 30


@dataclass
class LogEvent:
    """
    One log line belonging to a trace, as returned by the log store.
    """
    timestamp: str
    service_name: str
    level: str
    message: str
    span_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "LogEvent":
        # Log store rows use snake_case column names; some proxies re-key them.
        metadata = _first(payload, ["metadata"])
        return cls(
            timestamp=_as_text(_first(payload, ["log_timestamp", "timestamp"])),
            service_name=_as_text(_first(payload, ["service_name", "serviceName", "service"])),
            level=_as_text(_first(payload, ["log_level", "level"])),
            message=_as_text(_first(payload, ["message"])),
            span_id=_first(payload, ["span_id", "spanId"]),
            metadata=metadata if isinstance(metadata, dict) else {},
        )


def _first(mapping: Dict[str, Any], keys: List[str]) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
