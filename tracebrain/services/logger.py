# tracebrain/services/logger.py

import json
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from trace_catering.schemas import DatasetResult


class RunLogger:
    """
    Logger for tracking dataset build runs.
    Supports both JSON and text formats.
    """

    def __init__(
        self,
        log_dir: str = "logs",
        log_file: str = "tracebrain_runs.log",
        log_format: str = "json",
        rotate_daily: bool = True,
    ):
        self.log_dir = Path(log_dir)
        self.log_file = log_file
        self.log_format = log_format.lower()
        self.rotate_daily = rotate_daily

        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_path(self) -> Path:
        """Get the full path to the log file, with date rotation if enabled."""
        if self.rotate_daily:
            date_str = datetime.now().strftime("%Y-%m-%d")
            name, ext = os.path.splitext(self.log_file)
            filename = f"{name}_{date_str}{ext}"
        else:
            filename = self.log_file
        return self.log_dir / filename

    def log_run(self, result: DatasetResult, *, requested_sample_size: Optional[int] = None) -> None:
        """
        Log one build run.

        Args:
            result: DatasetResult returned by build_dataset
            requested_sample_size: sample size the run was asked for
        """
        timestamp = datetime.now().isoformat()

        if self.log_format == "json":
            log_entry: Dict[str, Any] = {
                "timestamp": timestamp,
                "status": result.status,
                "format": result.output_format,
                "output_path": result.output_path,
                "requested_sample_size": requested_sample_size,
                "examples": result.example_count,
                "skipped_trace_ids": list(result.skipped_trace_ids),
                "error": result.error,
            }
            log_line = json.dumps(log_entry, ensure_ascii=False)
        else:
            log_parts = [timestamp, result.status.upper()]
            if result.output_format:
                log_parts.append(f"format={result.output_format}")
            if requested_sample_size is not None:
                log_parts.append(f"requested={requested_sample_size}")
            log_parts.append(f"examples={result.example_count}")
            if result.skipped_trace_ids:
                log_parts.append(f"skipped={len(result.skipped_trace_ids)}")
            if result.error:
                log_parts.append(f"error={result.error}")
            log_line = " | ".join(log_parts)

        log_path = self._get_log_path()
        try:
            with log_path.open("a", encoding="utf-8") as f:
                f.write(log_line + "\n")
        except OSError as e:
            logging.getLogger(__name__).warning("Failed to write to run log %s: %s", log_path, e)


_logger_instance: Optional[RunLogger] = None


def get_logger() -> Optional[RunLogger]:
    """Get the global run logger instance."""
    return _logger_instance


def init_logger(config: Dict[str, Any]) -> Optional[RunLogger]:
    """
    Initialize the global run logger and stdlib logging level from config.

    Returns:
        RunLogger instance or None if logging disabled
    """
    global _logger_instance

    logging_cfg = config.get("logging", {}) or {}
    level_name = str(logging_cfg.get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not logging_cfg.get("enabled", True):
        _logger_instance = None
        return None

    _logger_instance = RunLogger(
        log_dir=logging_cfg.get("log_dir", "logs"),
        log_file=logging_cfg.get("log_file", "tracebrain_runs.log"),
        log_format=logging_cfg.get("log_format", "json"),
        rotate_daily=logging_cfg.get("rotate_daily", True),
    )
    return _logger_instance
