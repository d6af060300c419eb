"""Offline validation tool for trace fine-tuning datasets (JSONL or CSV)."""

import argparse
import csv
import io
import json
import math
import sys
from collections import Counter

_OUTCOME_MARKERS = [
    ("failed", "This transaction failed with"),
    ("warnings", "This transaction completed with"),
    ("success", "This transaction completed successfully"),
]
_ISSUE_MARKERS = [
    ("timeout", "This appears to be a timeout issue."),
    ("application error", "This appears to be a application error issue."),
]


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    output_format = args.output_format or _guess_format(args.input_path)
    result = validate_dataset(args.input_path, output_format=output_format)
    _print_summary(result, include_stats=args.stats)


def _parse_args(argv):
    parser = argparse.ArgumentParser(
        description="Validate a trace fine-tuning dataset file."
    )
    parser.add_argument(
        "--in",
        dest="input_path",
        required=True,
        help="Input dataset file",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=["jsonl", "csv"],
        default=None,
        help="Dataset format (default: from file extension)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print additional dataset statistics.",
    )
    return parser.parse_args(argv)


def _guess_format(path):
    if str(path).lower().endswith(".csv"):
        return "csv"
    return "jsonl"


def validate_dataset(input_path, output_format="jsonl"):
    with open(input_path, "r", encoding="utf-8", newline="") as infile:
        content = infile.read()
    return validate_dataset_text(content, output_format=output_format)


def validate_dataset_text(content, output_format="jsonl"):
    if output_format == "csv":
        texts = _read_csv_texts(content)
    else:
        texts = _read_jsonl_texts(content)

    outcome_counts = Counter()
    issue_counts = Counter()
    for text in texts:
        _update_outcome_counts(text, outcome_counts, issue_counts)

    return {
        "total_records": len(texts),
        "text_lengths": [len(text) for text in texts],
        "outcome_counts": outcome_counts,
        "issue_counts": issue_counts,
    }


def _read_jsonl_texts(content):
    texts = []
    for index, line in enumerate(content.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except ValueError:
            raise ValueError(
                "record {index} failed contract validation: invalid json".format(index=index)
            )
        errors = _validate_record(record)
        if errors:
            raise ValueError(
                "record {index} failed contract validation: {errors}".format(
                    index=index, errors="; ".join(errors)
                )
            )
        texts.append(record["text"])
    return texts


def _read_csv_texts(content):
    if not content.startswith("text\n") and content.strip() != "text":
        raise ValueError("csv dataset must start with a 'text' header row")
    body = content[len("text\n"):]
    texts = []
    reader = csv.reader(io.StringIO(body, newline=""))
    for index, row in enumerate(reader, start=1):
        if len(row) != 1:
            raise ValueError(
                "record {index} failed contract validation: expected 1 column, got {count}".format(
                    index=index, count=len(row)
                )
            )
        texts.append(row[0])
    return texts


def _validate_record(record):
    if not isinstance(record, dict):
        return ["record is not an object"]
    errors = []
    keys = set(record.keys())
    if "text" not in keys:
        errors.append("record missing keys: text")
    extra = keys - {"text"}
    if extra:
        errors.append(
            "record has unexpected keys: {keys}".format(keys=", ".join(sorted(extra)))
        )
    if "text" in keys and not isinstance(record.get("text"), str):
        errors.append("text must be a string")
    return errors


def _update_outcome_counts(text, outcome_counts, issue_counts):
    for label, marker in _OUTCOME_MARKERS:
        if marker in text:
            outcome_counts[label] += 1
            break
    for label, marker in _ISSUE_MARKERS:
        if marker in text:
            issue_counts[label] += 1
            break


def _print_summary(result, include_stats=False):
    print("total_records: {total}".format(total=result["total_records"]))
    print("invalid_records: 0")
    if include_stats:
        _print_stats(result)


def _print_stats(result):
    avg_text = 0.0
    p95_text = 0
    if result["text_lengths"]:
        avg_text = sum(result["text_lengths"]) / float(len(result["text_lengths"]))
        p95_text = _percentile(result["text_lengths"], 0.95)

    print("stats:")
    print("  avg_text_length: {avg:.1f}".format(avg=avg_text))
    print("  p95_text_length: {p95}".format(p95=p95_text))
    print("  outcomes:")
    _print_top_counts(result["outcome_counts"])
    print("  primary_error_kinds:")
    _print_top_counts(result["issue_counts"])


def _print_top_counts(counter, limit=10):
    if not counter:
        print("    - none")
        return
    for value, count in counter.most_common(limit):
        print("    - {value}: {count}".format(value=value, count=count))


def _percentile(values, percentile):
    if not values:
        return 0
    sorted_values = sorted(values)
    rank = int(math.ceil(percentile * len(sorted_values)))
    index = max(rank - 1, 0)
    return sorted_values[index]


if __name__ == "__main__":
    main()
