import pytest
import requests

from tracebrain.adapters.log_store_client import LogStoreClient
from tracebrain.core.models import LogEvent, LogStoreSettings

TRACES_URL = "http://logstore.test/api/logs/traces"
QUERY_URL = "http://logstore.test/api/logs/query"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


class FakeSession:
    """Stands in for requests.Session; answers from canned trace/log tables."""

    def __init__(self, trace_ids=None, logs_by_trace=None, trace_status=200, failing_traces=None,
                 unreachable_traces=None):
        self.headers = {}
        self.calls = []
        self.trace_ids = trace_ids
        self.logs_by_trace = logs_by_trace or {}
        self.trace_status = trace_status
        self.failing_traces = set(failing_traces or [])
        self.unreachable_traces = set(unreachable_traces or [])

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json))
        if url == TRACES_URL:
            if self.trace_status != 200:
                return FakeResponse(self.trace_status, None, text="boom")
            payload = {} if self.trace_ids is None else {"traceIds": list(self.trace_ids)}
            return FakeResponse(200, payload)

        trace_id = json["traceId"]
        if trace_id in self.unreachable_traces:
            raise requests.ConnectionError("connection refused")
        if trace_id in self.failing_traces:
            return FakeResponse(500, None, text="internal error")
        return FakeResponse(200, {"logs": self.logs_by_trace.get(trace_id, [])})

    def query_calls(self):
        return [body for url, body in self.calls if url == QUERY_URL]


def log_row(ts, service, level, message, **extra):
    row = {
        "log_timestamp": ts,
        "service_name": service,
        "log_level": level,
        "message": message,
    }
    row.update(extra)
    return row


def make_event(ts, service, level, message):
    return LogEvent(timestamp=ts, service_name=service, level=level, message=message)


@pytest.fixture
def settings():
    return LogStoreSettings(traces_url=TRACES_URL, query_url=QUERY_URL, api_key="secret-key")


@pytest.fixture
def make_client(settings):
    def _make(session):
        return LogStoreClient(settings, session=session)

    return _make


@pytest.fixture
def timeout_trace_rows():
    return [
        log_row("2024-01-15T10:30:00.000Z", "svcA", "INFO", "ok"),
        log_row("2024-01-15T10:30:00.250Z", "svcB", "ERROR", "boom timeout"),
        log_row("2024-01-15T10:30:01.000Z", "svcA", "INFO", "done"),
    ]


@pytest.fixture
def info_trace_rows():
    return [
        log_row("2024-01-15T10:30:00.000Z", "gateway", "INFO", "request received"),
        log_row("2024-01-15T10:30:00.040Z", "orders", "INFO", "order stored"),
        log_row("2024-01-15T10:30:00.120Z", "gateway", "INFO", "response sent"),
    ]
