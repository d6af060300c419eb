"""Trace grouping and text rendering for fine-tuning examples."""

import logging
import re
from collections import OrderedDict
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)

SAMPLE_LOGS_PER_SERVICE = 10
FLOW_SEPARATOR = " → "
INSTRUCTION = (
    "Analyze these logs and provide a detailed explanation of what happened "
    "in this transaction, including any errors or issues:"
)

_FRACTION = re.compile(r"\.(\d+)")


def group_by_service(events):
    grouped = OrderedDict()
    for event in events:
        grouped.setdefault(event.service_name, []).append(event)
    return grouped


def events_with_level(events, level):
    return [event for event in events if event.level == level]


def parse_timestamp(value):
    if not value:
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits.
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def duration_ms(events):
    """Milliseconds between the first and last event of an ordered trace."""
    if not events:
        return 0
    start = parse_timestamp(events[0].timestamp)
    end = parse_timestamp(events[-1].timestamp)
    if start is None or end is None:
        logger.warning(
            "Unparseable trace timestamps (%r, %r); reporting duration 0",
            events[0].timestamp,
            events[-1].timestamp,
        )
        return 0
    try:
        delta = end - start
    except TypeError:
        # One side carries a UTC offset and the other does not.
        logger.warning("Mixed naive/aware trace timestamps; reporting duration 0")
        return 0
    return delta // timedelta(milliseconds=1)


def make_prompt(trace_id, events, by_service, errors, warnings, duration):
    lines = [
        "Distributed transaction logs with trace ID {trace_id}:".format(trace_id=trace_id),
        "",
        "Transaction Summary:",
        "- Total logs: {count}".format(count=len(events)),
        "- Services involved: {services}".format(services=", ".join(by_service)),
        "- Errors: {count}".format(count=len(errors)),
        "- Warnings: {count}".format(count=len(warnings)),
        "- Duration: {duration}ms".format(duration=duration),
        "",
    ]

    if errors:
        lines.append("Error Logs:")
        for event in errors:
            lines.append(
                "[{ts}] {service} - {message}".format(
                    ts=event.timestamp, service=event.service_name, message=event.message
                )
            )
        lines.append("")

    lines.append("Sample Logs by Service:")
    for service, service_events in by_service.items():
        lines.append("{service}:".format(service=service))
        for event in service_events[:SAMPLE_LOGS_PER_SERVICE]:
            lines.append(
                "  [{ts}] {level} - {message}".format(
                    ts=event.timestamp, level=event.level, message=event.message
                )
            )
    return "\n".join(lines) + "\n"


def classify_error(message):
    # Case-sensitive: "Timeout" is an application error.
    if "timeout" in (message or ""):
        return "timeout"
    return "application error"


def make_completion(trace_id, by_service, errors, warnings, duration):
    text = "Analysis of transaction {trace_id}:\n\n".format(trace_id=trace_id)

    if errors:
        first = errors[0]
        text += "This transaction failed with {count} errors. ".format(count=len(errors))
        text += 'The primary error occurred in the {service} service: "{message}". '.format(
            service=first.service_name, message=first.message
        )
        text += "This appears to be a {kind} issue.\n\n".format(
            kind=classify_error(first.message)
        )
    elif warnings:
        first = warnings[0]
        text += "This transaction completed with {count} warnings. ".format(count=len(warnings))
        text += 'The main warning was in the {service} service: "{message}".\n\n'.format(
            service=first.service_name, message=first.message
        )
    else:
        text += "This transaction completed successfully in {duration}ms across {count} services.\n\n".format(
            duration=duration, count=len(by_service)
        )

    text += "The transaction flow was: {flow}.".format(flow=FLOW_SEPARATOR.join(by_service))
    return text


def render_example_text(trace_id, events):
    by_service = group_by_service(events)
    errors = events_with_level(events, "ERROR")
    warnings = events_with_level(events, "WARN")
    duration = duration_ms(events)

    prompt = make_prompt(trace_id, events, by_service, errors, warnings, duration)
    completion = make_completion(trace_id, by_service, errors, warnings, duration)
    return "{prompt}\n\n{instruction}\n\n{completion}".format(
        prompt=prompt, instruction=INSTRUCTION, completion=completion
    )
