"""Build a log-analysis fine-tuning dataset from traces in the log store."""

import json
import logging

from tracebrain.adapters.log_store_client import UpstreamError

from .features import render_example_text
from .schemas import (
    STATUS_ERROR,
    STATUS_NO_DATA,
    STATUS_OK,
    DatasetExample,
    DatasetResult,
)

logger = logging.getLogger(__name__)

_CANDIDATE_FACTOR = 2
_LOGS_PER_TRACE = 500


def build_dataset(config, client):
    """Run one build. Never raises; failures come back as an error DatasetResult."""
    try:
        return _build(config, client)
    except UpstreamError as exc:
        logger.error("Trace discovery failed: %s", exc)
        return DatasetResult(
            status=STATUS_ERROR,
            message="Error preparing dataset: {error}".format(error=exc),
            error=str(exc),
            status_code=exc.status_code,
        )
    except Exception as exc:
        logger.exception("Unexpected error preparing dataset")
        return DatasetResult(
            status=STATUS_ERROR,
            message="Error preparing dataset: {error}".format(error=exc),
            error=str(exc),
        )


def _build(config, client):
    try:
        trace_ids = client.list_trace_ids(
            limit=config.sample_size * _CANDIDATE_FACTOR,
            include_errors=config.include_errors,
            include_warnings=config.include_warnings,
        )
    except UpstreamError as exc:
        status = exc.status_code if exc.status_code is not None else "unreachable"
        raise UpstreamError(
            "Failed to retrieve trace IDs: {status}".format(status=status),
            status_code=exc.status_code,
            context=exc.context,
        ) from exc

    if not trace_ids:
        logger.info("No trace IDs found in the log store")
        return DatasetResult(
            status=STATUS_NO_DATA,
            message="No trace IDs found in the database",
            output_format=config.output_format,
            output_path=config.output_path,
        )

    selected = trace_ids[: config.sample_size]
    examples = []
    skipped = []
    for trace_id in selected:
        example = _build_example(client, trace_id)
        if example is None:
            skipped.append(trace_id)
            continue
        examples.append(example)

    logger.info(
        "Built %d example(s) from %d trace(s), skipped %d",
        len(examples),
        len(selected),
        len(skipped),
    )
    return DatasetResult(
        status=STATUS_OK,
        message="Dataset prepared successfully with {count} examples".format(count=len(examples)),
        output_format=config.output_format,
        output_path=config.output_path,
        examples=examples,
        skipped_trace_ids=skipped,
        serialized=serialize_dataset(examples, config.output_format),
    )


def _build_example(client, trace_id):
    try:
        events = client.query_logs(
            trace_id,
            limit=_LOGS_PER_TRACE,
            order_by="log_timestamp",
            order_direction="ASC",
        )
    except UpstreamError as exc:
        logger.warning("Failed to retrieve logs for trace ID %s: %s", trace_id, exc)
        return None

    if not events:
        logger.info("No logs for trace ID %s; skipping", trace_id)
        return None
    return DatasetExample(text=render_example_text(trace_id, events))


def serialize_dataset(examples, output_format):
    if output_format == "jsonl":
        return to_jsonl(examples)
    return to_csv(examples)


def to_jsonl(examples):
    return "\n".join(
        json.dumps(example.to_dict(), ensure_ascii=False, separators=(",", ":"))
        for example in examples
    )


def to_csv(examples):
    rows = ['"{text}"'.format(text=example.text.replace('"', '""')) for example in examples]
    return "text\n" + "\n".join(rows)
