import pytest

from conftest import FakeSession, QUERY_URL, TRACES_URL, log_row

from tracebrain.adapters.log_store_client import UpstreamError
from tracebrain.core.models import LogEvent
from tracebrain.services.trace_query import query_trace


class TestLogStoreClient:
    def test_headers(self, make_client):
        session = FakeSession()
        make_client(session)
        assert session.headers["Authorization"] == "Bearer secret-key"
        assert session.headers["Content-Type"] == "application/json"

    def test_list_trace_ids(self, make_client):
        client = make_client(FakeSession(trace_ids=["a", "b"]))
        assert client.list_trace_ids(limit=4) == ["a", "b"]

    def test_list_trace_ids_error_status(self, make_client):
        client = make_client(FakeSession(trace_status=500))
        with pytest.raises(UpstreamError) as excinfo:
            client.list_trace_ids(limit=4)
        assert excinfo.value.status_code == 500
        assert excinfo.value.context == "list_trace_ids"

    def test_unauthorized(self, make_client):
        client = make_client(FakeSession(trace_status=401))
        with pytest.raises(UpstreamError, match="401 Unauthorized"):
            client.list_trace_ids(limit=1)

    def test_transport_failure_has_no_status(self, make_client):
        client = make_client(FakeSession(unreachable_traces=["t1"]))
        with pytest.raises(UpstreamError) as excinfo:
            client.query_logs("t1")
        assert excinfo.value.status_code is None

    def test_query_logs_parses_rows(self, make_client):
        rows = [log_row("2024-01-15T10:30:00Z", "svcA", "INFO", "hello", span_id="s-1")]
        session = FakeSession(logs_by_trace={"t1": rows})
        events = make_client(session).query_logs("t1", limit=5, time_range_minutes=15)
        assert events == [
            LogEvent(timestamp="2024-01-15T10:30:00Z", service_name="svcA", level="INFO",
                     message="hello", span_id="s-1")
        ]
        assert session.calls[-1] == (
            QUERY_URL,
            {"traceId": "t1", "timeRangeMinutes": 15, "limit": 5,
             "orderBy": "log_timestamp", "orderDirection": "ASC"},
        )


class TestLogEvent:
    def test_camel_case_fallback(self):
        event = LogEvent.from_api(
            {"timestamp": "t", "serviceName": "svc", "level": "WARN", "message": "m"}
        )
        assert (event.timestamp, event.service_name, event.level, event.message) == ("t", "svc", "WARN", "m")
        assert event.metadata == {}


class TestQueryTrace:
    def test_display_payload(self, make_client):
        rows = [
            log_row("2024-01-15T10:30:00Z", "svcA", "INFO", "in", span_id="s-1", metadata={"k": "v"}),
            log_row("2024-01-15T10:30:01Z", "svcB", "ERROR", "out"),
        ]
        client = make_client(FakeSession(logs_by_trace={"t1": rows}))
        payload = query_trace(client, "t1", time_range_minutes=30, limit=10)
        assert payload["traceId"] == "t1"
        assert payload["totalLogs"] == 2
        assert payload["timeRange"] == "30 minutes"
        assert payload["logs"][0] == {
            "timestamp": "2024-01-15T10:30:00Z",
            "service": "svcA",
            "level": "INFO",
            "spanId": "s-1",
            "message": "in",
            "metadata": {"k": "v"},
        }
        assert payload["logs"][1]["spanId"] == "N/A"
        assert payload["logs"][1]["metadata"] == {}

    def test_blank_trace_id_rejected(self, make_client):
        with pytest.raises(ValueError):
            query_trace(make_client(FakeSession()), "  ")

    def test_upstream_failure_propagates(self, make_client):
        client = make_client(FakeSession(failing_traces=["t1"]))
        with pytest.raises(UpstreamError):
            query_trace(client, "t1")


def test_urls_come_from_settings(make_client):
    session = FakeSession(trace_ids=[])
    make_client(session).list_trace_ids(limit=2)
    assert session.calls[0][0] == TRACES_URL
