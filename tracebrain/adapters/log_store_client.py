import logging
from typing import Any, Dict, List, Optional

import requests

from tracebrain.core.models import LogEvent, LogStoreSettings

logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    """
    The log store answered with a non-success status, or could not be reached.
    status_code is None for transport failures.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None, context: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.context = context


class LogStoreClient:
    """
    Log store client using Bearer auth.
    Authorization: Bearer <api key>
    """

    def __init__(
        self,
        settings: LogStoreSettings,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.timeout_seconds = int(settings.timeout_seconds)

        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {settings.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            }
        )

    def _post(self, url: str, payload: Dict[str, Any], *, context: str) -> Dict[str, Any]:
        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            raise UpstreamError(
                f"Log store request failed ({context}): {exc}", context=context
            ) from exc
        self._raise_for_status(resp, context=context)
        data = resp.json()
        if not isinstance(data, dict):
            logger.warning("Non-object response body (%s); treating as empty", context)
            return {}
        return data

    def _raise_for_status(self, resp: requests.Response, *, context: str) -> None:
        if resp.status_code == 401:
            raise UpstreamError(
                f"Log store 401 Unauthorized - check API key. ({context})",
                status_code=401,
                context=context,
            )
        if resp.status_code >= 400:
            raise UpstreamError(
                f"Log store API error ({context}). HTTP {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
                context=context,
            )

    # ---------------------------
    # Traces
    # ---------------------------

    def list_trace_ids(
        self,
        limit: int,
        include_errors: bool = True,
        include_warnings: bool = True,
    ) -> List[str]:
        payload = {
            "limit": limit,
            "includeErrors": include_errors,
            "includeWarnings": include_warnings,
        }
        data = self._post(self.settings.traces_url, payload, context="list_trace_ids")
        return list(data.get("traceIds", []) or [])

    # ---------------------------
    # Logs
    # ---------------------------

    def query_logs(
        self,
        trace_id: str,
        limit: int = 100,
        time_range_minutes: Optional[int] = None,
        order_by: str = "log_timestamp",
        order_direction: str = "ASC",
    ) -> List[LogEvent]:
        payload: Dict[str, Any] = {"traceId": trace_id}
        if time_range_minutes is not None:
            payload["timeRangeMinutes"] = time_range_minutes
        payload.update(
            {
                "limit": limit,
                "orderBy": order_by,
                "orderDirection": order_direction,
            }
        )
        data = self._post(self.settings.query_url, payload, context=f"query_logs({trace_id})")
        rows = data.get("logs", []) or []
        logger.debug("Fetched %d log(s) for trace %s", len(rows), trace_id)
        return [LogEvent.from_api(row) for row in rows if isinstance(row, dict)]
