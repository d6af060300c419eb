# tracebrain/cli/main.py

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from tracebrain.adapters.log_store_client import LogStoreClient, UpstreamError
from tracebrain.core.config_loader import build_log_store_settings, load_app_config
from tracebrain.services.logger import init_logger
from tracebrain.services.metrics import generate_daily_summary, print_summary
from tracebrain.services.trace_query import query_trace
from trace_catering.build_dataset import build_dataset
from trace_catering.schemas import DatasetConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tracebrain")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config YAML (overrides $TRACEBRAIN_CONFIG and defaults)",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    # tracebrain build --format csv --sample-size 50
    parser_build = subparsers.add_parser("build", help="Build a fine-tuning dataset from traces")
    parser_build.add_argument("--format", dest="output_format", choices=["jsonl", "csv"], default=None,
                              help="Output format (default: dataset.output_format or jsonl)")
    parser_build.add_argument("--sample-size", type=int, default=None,
                              help="Number of traces to sample (default: dataset.sample_size or 100)")
    parser_build.add_argument("--no-errors", action="store_false", dest="include_errors", default=None,
                              help="Do not ask the log store to prioritize traces with errors")
    parser_build.add_argument("--no-warnings", action="store_false", dest="include_warnings", default=None,
                              help="Do not ask the log store to prioritize traces with warnings")
    parser_build.add_argument("--output-path", type=str, default=None,
                              help="Destination reported for the dataset")
    parser_build.add_argument("--print-data", action="store_true",
                              help="Print the serialized dataset after the summary")

    # tracebrain trace 4bf92f3577b34da6
    parser_trace = subparsers.add_parser("trace", help="Show the logs of one trace")
    parser_trace.add_argument("trace_id")
    parser_trace.add_argument("--limit", type=int, default=100)
    parser_trace.add_argument("--time-range-minutes", type=int, default=60)

    # tracebrain metrics --date 2025-01-15
    parser_metrics = subparsers.add_parser("metrics", help="Summarize recorded build runs")
    parser_metrics.add_argument("--date", type=str, default=None,
                                help="Date to analyze (YYYY-MM-DD, default: today)")
    parser_metrics.add_argument("--days", type=int, default=1,
                                help="Number of days to analyze (default: 1)")
    parser_metrics.add_argument("--format", choices=["text", "json"], default="text",
                                help="Output format (default: text)")

    subparsers.add_parser("doctor", help="Check config and log store settings")
    return parser


def _dataset_params(args: argparse.Namespace, dataset_cfg: Dict[str, Any]) -> Dict[str, Any]:
    params = dict(dataset_cfg or {})
    overrides = {
        "output_format": args.output_format,
        "sample_size": args.sample_size,
        "include_errors": args.include_errors,
        "include_warnings": args.include_warnings,
        "output_path": args.output_path,
    }
    for key, value in overrides.items():
        if value is not None:
            params[key] = value
    return params


def _run_build(args: argparse.Namespace, config: Dict[str, Any], run_logger) -> int:
    dataset_config = DatasetConfig.from_params(_dataset_params(args, config.get("dataset", {})))
    client = LogStoreClient(build_log_store_settings(config))

    print("[INFO] Sampling %d trace(s) from %s" % (dataset_config.sample_size, client.settings.traces_url))
    result = build_dataset(dataset_config, client)
    if run_logger:
        run_logger.log_run(result, requested_sample_size=dataset_config.sample_size)

    print(json.dumps(result.to_payload(), indent=2, ensure_ascii=False))
    if args.print_data and result.serialized:
        print(result.serialized)
    return 1 if result.is_error else 0


def _run_trace(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    client = LogStoreClient(build_log_store_settings(config))
    try:
        payload = query_trace(
            client,
            args.trace_id,
            time_range_minutes=args.time_range_minutes,
            limit=args.limit,
        )
    except UpstreamError as exc:
        print("[ERROR] Error querying logs: %s" % exc)
        return 1
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def _run_metrics(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    logging_cfg = config.get("logging", {})
    summary = generate_daily_summary(
        log_dir=logging_cfg.get("log_dir", "logs"),
        date=args.date,
        days=args.days,
        log_file=logging_cfg.get("log_file", "tracebrain_runs.log"),
    )
    if args.format == "json":
        print(json.dumps(summary, indent=2))
    else:
        print_summary(summary)
    return 0


def _run_doctor(config: Dict[str, Any], config_path) -> int:
    if config_path:
        print("[OK] Config file: %s" % config_path)
    else:
        print("[WARN] No config file found; using defaults")

    store = config.get("log_store", {})
    print("[OK] Trace listing endpoint: %s" % store.get("traces_url"))
    print("[OK] Log query endpoint: %s" % store.get("query_url"))

    api_key = str(store.get("api_key") or "").strip()
    api_key_env = store.get("api_key_env")
    if api_key:
        print("[OK] Log store API key available via config")
    elif os.environ.get(api_key_env, "").strip():
        print("[OK] Log store API key available via %s" % api_key_env)
    else:
        print("[FAIL] Log store API key missing: set %s (recommended) or log_store.api_key in config" % api_key_env)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    config, config_path, base_dir = load_app_config(getattr(args, "config", None))

    run_logger = init_logger(config)

    if args.command == "build":
        if run_logger:
            print("[INFO] Run log: %s" % run_logger._get_log_path())
        print("[INFO] Using config: %s" % (config_path or "defaults"))
        return _run_build(args, config, run_logger)
    if args.command == "trace":
        return _run_trace(args, config)
    if args.command == "metrics":
        return _run_metrics(args, config)
    if args.command == "doctor":
        print("[OK] Base dir: %s" % base_dir)
        return _run_doctor(config, config_path)
    return 2


if __name__ == "__main__":
    sys.exit(main())
