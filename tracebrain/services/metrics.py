# tracebrain/services/metrics.py

import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Any, Optional


def load_run_entries(
    log_dir: str = "logs",
    days: int = 1,
    log_file: str = "tracebrain_runs.log",
) -> List[Dict[str, Any]]:
    """
    Load JSON run entries from the run log, daily-rotated or not.

    Args:
        log_dir: Directory containing log files
        days: How many days back to load (default: 1)
        log_file: Base run-log file name (rotation inserts _YYYY-MM-DD)

    Returns:
        List of run entry dictionaries
    """
    log_path = Path(log_dir)
    if not log_path.exists():
        return []

    name, ext = os.path.splitext(log_file)
    prefix = f"{name}_"
    cutoff_date = (datetime.now() - timedelta(days=days)).replace(
        hour=0, minute=0, second=0, microsecond=0
    )

    entries = []
    for run_log in sorted(log_path.glob(f"{prefix}*{ext}")):
        try:
            file_date = datetime.strptime(run_log.stem[len(prefix):], "%Y-%m-%d")
        except ValueError:
            continue
        if file_date < cutoff_date:
            continue
        entries.extend(_read_entries(run_log))

    # rotate_daily: false writes everything to the base file
    plain_log = log_path / log_file
    if plain_log.is_file():
        cutoff_key = cutoff_date.strftime("%Y-%m-%d")
        entries.extend(
            e for e in _read_entries(plain_log) if str(e.get("timestamp", ""))[:10] >= cutoff_key
        )
    return entries


def _read_entries(run_log: Path) -> List[Dict[str, Any]]:
    entries = []
    with run_log.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                # Text-format lines are not aggregated
                continue
            if isinstance(entry, dict):
                entries.append(entry)
    return entries


def calculate_run_summary(entries: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Aggregate build runs.

    Returns:
        Dict with success_rate, total_runs, successful, no_data, failed,
        examples_produced, traces_skipped
    """
    if not entries:
        return {
            "success_rate": 0.0,
            "total_runs": 0,
            "successful": 0,
            "no_data": 0,
            "failed": 0,
            "examples_produced": 0,
            "traces_skipped": 0,
        }

    total = len(entries)
    successful = sum(1 for e in entries if e.get("status") == "ok")
    no_data = sum(1 for e in entries if e.get("status") == "no_data")
    failed = sum(1 for e in entries if e.get("status") == "error")
    examples = sum(int(e.get("examples") or 0) for e in entries)
    skipped = sum(len(e.get("skipped_trace_ids") or []) for e in entries)

    return {
        "success_rate": round(successful / total * 100, 2),
        "total_runs": total,
        "successful": successful,
        "no_data": no_data,
        "failed": failed,
        "examples_produced": examples,
        "traces_skipped": skipped,
    }


def generate_daily_summary(
    log_dir: str = "logs",
    date: Optional[str] = None,
    days: int = 1,
    log_file: str = "tracebrain_runs.log",
) -> Dict[str, Any]:
    """
    Generate a summary report for `days` days ending at `date` (YYYY-MM-DD, default today).
    """
    if date is None:
        date = datetime.now().strftime("%Y-%m-%d")
    end = datetime.strptime(date, "%Y-%m-%d")
    day_keys = {
        (end - timedelta(days=offset)).strftime("%Y-%m-%d") for offset in range(max(days, 1))
    }

    lookback = (datetime.now() - end).days + max(days, 1)
    entries = load_run_entries(log_dir, days=max(lookback, 1), log_file=log_file)
    selected = [e for e in entries if str(e.get("timestamp", ""))[:10] in day_keys]

    return {
        "date": date,
        "days": max(days, 1),
        "runs": calculate_run_summary(selected),
    }


def print_summary(summary: Dict[str, Any]) -> None:
    """Print a human-readable summary."""
    print(f"\n=== TraceBrain Run Summary - {summary['date']} ({summary['days']} day(s)) ===\n")

    runs = summary["runs"]
    print(f"Total Runs: {runs['total_runs']}")
    print(f"Successful: {runs['successful']}")
    print(f"No Data: {runs['no_data']}")
    print(f"Failed: {runs['failed']}")
    print(f"Examples Produced: {runs['examples_produced']}")
    print(f"Traces Skipped: {runs['traces_skipped']}")

    if runs["total_runs"] > 0:
        print(f"\nSuccess Rate: {runs['success_rate']}%")

    print()
