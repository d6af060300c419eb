import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, List

import yaml

from tracebrain.core.models import DEFAULT_QUERY_URL, DEFAULT_TRACES_URL, LogStoreSettings

DEFAULT_API_KEY_ENV = "TRACEBRAIN_DB_API_KEY"


def _expand_path(value: str) -> Path:
    return Path(os.path.expandvars(os.path.expanduser(value))).resolve()


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def _base_dir_from_config_path(config_path: Path) -> Path:
    """
    Determine the "project base dir" used to resolve relative paths.

    - If config is .../config/config.yaml, treat base as the parent of config/
    - Otherwise treat base as the directory containing the config file
    """
    config_dir = config_path.parent
    if config_dir.name.lower() == "config":
        return config_dir.parent
    return config_dir


def config_path_candidates(explicit: Optional[str] = None) -> List[Path]:
    candidates: List[Path] = []

    if explicit and str(explicit).strip():
        candidates.append(_expand_path(str(explicit).strip()))

    env_cfg = _env("TRACEBRAIN_CONFIG")
    if env_cfg:
        candidates.append(_expand_path(env_cfg))

    home = _env("TRACEBRAIN_HOME")
    if home:
        candidates.append(_expand_path(home) / "config" / "config.yaml")

    candidates.append(Path.cwd() / "config" / "config.yaml")

    xdg = _env("XDG_CONFIG_HOME")
    if xdg:
        candidates.append(_expand_path(xdg) / "tracebrain" / "config.yaml")
    candidates.append(Path.home() / ".config" / "tracebrain" / "config.yaml")
    return candidates


def discover_config_path(explicit: Optional[str] = None) -> Optional[Path]:
    """
    Return the first existing config file, or None when running on defaults.

    An explicit path that does not exist is an error.
    """
    candidates = config_path_candidates(explicit)
    if explicit and str(explicit).strip() and not candidates[0].is_file():
        raise FileNotFoundError(f"TraceBrain config not found: {candidates[0]}")

    for path in candidates:
        try:
            if path.exists() and path.is_file():
                return path
        except OSError:
            continue
    return None


def load_config(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a YAML mapping: {path}")
    return data


def _resolve_path(base_dir: Path, maybe_path: Any) -> Any:
    if not isinstance(maybe_path, str):
        return maybe_path
    s = maybe_path.strip()
    if not s:
        return maybe_path
    p = Path(os.path.expandvars(os.path.expanduser(s)))
    if p.is_absolute():
        return str(p)
    return str((base_dir / p).resolve())


def normalize_config(config: Dict[str, Any], *, base_dir: Path) -> Dict[str, Any]:
    """
    Normalize config for portability:
    - Apply endpoint overrides from the environment
    - Resolve the run-log directory relative to a stable base dir
    """
    cfg: Dict[str, Any] = dict(config or {})

    store = dict(cfg.get("log_store", {}) or {})
    shared_url = _env("DB_API_URL")
    traces_url = _env("TRACEBRAIN_TRACES_URL") or shared_url or store.get("traces_url") or DEFAULT_TRACES_URL
    query_url = _env("TRACEBRAIN_QUERY_URL") or shared_url or store.get("query_url") or DEFAULT_QUERY_URL
    store["traces_url"] = str(traces_url).strip()
    store["query_url"] = str(query_url).strip()
    store.setdefault("api_key_env", DEFAULT_API_KEY_ENV)
    store.setdefault("timeout_seconds", 30)
    cfg["log_store"] = store

    cfg["dataset"] = dict(cfg.get("dataset", {}) or {})

    logging_cfg = dict(cfg.get("logging", {}) or {})
    log_dir = _env("TRACEBRAIN_LOG_DIR") or logging_cfg.get("log_dir", "logs")
    logging_cfg["log_dir"] = _resolve_path(base_dir, log_dir)
    cfg["logging"] = logging_cfg

    return cfg


def build_log_store_settings(config: Dict[str, Any], *, require_api_key: bool = False) -> LogStoreSettings:
    store = dict(config.get("log_store", {}) or {})
    api_key_env = store.get("api_key_env") or DEFAULT_API_KEY_ENV

    api_key = store.get("api_key")
    if api_key is None or not str(api_key).strip():
        api_key = os.environ.get(api_key_env, "")
    api_key = str(api_key).strip()
    if require_api_key and not api_key:
        raise RuntimeError(
            "Missing log store API key. Set log_store.api_key in config/config.yaml "
            f"or set the environment variable {api_key_env}."
        )

    return LogStoreSettings(
        traces_url=store.get("traces_url") or DEFAULT_TRACES_URL,
        query_url=store.get("query_url") or DEFAULT_QUERY_URL,
        api_key=api_key,
        timeout_seconds=int(store.get("timeout_seconds", 30)),
    )


def load_app_config(explicit_path: Optional[str] = None) -> Tuple[Dict[str, Any], Optional[Path], Path]:
    """
    Returns: (config_dict, config_path or None, base_dir)
    """
    config_path = discover_config_path(explicit_path)
    if config_path is None:
        home = _env("TRACEBRAIN_HOME")
        base_dir = _expand_path(home) if home else Path.cwd()
        return normalize_config({}, base_dir=base_dir), None, base_dir

    home = _env("TRACEBRAIN_HOME")
    base_dir = _expand_path(home) if home else _base_dir_from_config_path(config_path)
    cfg = normalize_config(load_config(config_path), base_dir=base_dir)
    return cfg, config_path, base_dir
