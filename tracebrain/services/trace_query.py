# tracebrain/services/trace_query.py

from typing import Any, Dict

from tracebrain.adapters.log_store_client import LogStoreClient


def query_trace(
    client: LogStoreClient,
    trace_id: str,
    *,
    time_range_minutes: int = 60,
    limit: int = 100,
) -> Dict[str, Any]:
    """
    Fetch every log line for one trace ID, oldest first, in display form.

    UpstreamError from the client propagates to the caller.
    """
    if not trace_id or not str(trace_id).strip():
        raise ValueError("Trace ID is required")

    events = client.query_logs(
        trace_id,
        limit=limit,
        time_range_minutes=time_range_minutes,
    )
    logs = [
        {
            "timestamp": event.timestamp,
            "service": event.service_name,
            "level": event.level,
            "spanId": event.span_id or "N/A",
            "message": event.message,
            "metadata": event.metadata or {},
        }
        for event in events
    ]
    return {
        "traceId": trace_id,
        "totalLogs": len(logs),
        "timeRange": f"{time_range_minutes} minutes",
        "logs": logs,
    }
