# urban_node/config.py
import copy
import os
from typing import Any, Dict, List

import yaml

from .settings import settings
from .urban_runtime.disclosure import DEFAULT_CHAIN_ID, DEFAULT_DURATION_DAYS

# -------- Defaults (non-secret) --------
_DEFAULT: Dict[str, Any] = {
    "directory": {
        "driver": "memory",  # memory | file | http
        "path": os.path.join(settings.DATA_DIR, "directory.json"),  # file driver
        "url": "",  # http driver
        "address": "",  # overrides the resolved directory address
        "timeout_sec": 10.0,
    },
    "disclosure": {"chain_id": DEFAULT_CHAIN_ID, "duration_days": DEFAULT_DURATION_DAYS},
    "notifications": {"success_ttl_sec": 2.0, "error_ttl_sec": 3.0},
    "logging": {"level": "INFO"},
    "server": {"host": "127.0.0.1", "port": 8000},
    "cors": {
        "origins": [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    },
}

# -------- ENV secrets / overrides (do NOT bake secrets in YAML) --------
_ENV_MAP = {
    ("directory", "driver"): ("URBAN_DIRECTORY_DRIVER", str),
    ("directory", "path"): ("URBAN_DIRECTORY_PATH", str),
    ("directory", "url"): ("URBAN_DIRECTORY_URL", str),
    # Write token is only read from ENV
    ("directory", "token"): ("URBAN_DIRECTORY_TOKEN", str),
    ("disclosure", "chain_id"): ("URBAN_CHAIN_ID", int),
    ("logging", "level"): ("URBAN_LOG_LEVEL", str),
}


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    for (section, key), (env_name, cast) in _ENV_MAP.items():
        val = os.getenv(env_name)
        if val is None:
            continue
        try:
            casted = cast(val)
        except ValueError:
            casted = val
        cfg.setdefault(section, {})
        cfg[section][key] = casted
    return cfg


def load_config(repo_root: str) -> Dict[str, Any]:
    """
    Loads the YAML config from repo_root/urban_config.yaml.
    Returns defaults if the file doesn't exist or can't be parsed.
    Also applies ENV overrides for certain keys & secrets.
    """
    path = os.path.join(repo_root, "urban_config.yaml")
    cfg = copy.deepcopy(_DEFAULT)

    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                cfg = _deep_merge(cfg, data)
        except (OSError, yaml.YAMLError):
            # fall back to defaults
            pass

    cfg = _apply_env_overrides(cfg)

    origins = cfg.get("cors", {}).get("origins")
    if isinstance(origins, str):
        cfg["cors"]["origins"] = [origins]

    return cfg


# -------- Small helpers used by the app --------
def get_bind_host(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("server", {}).get("host", "127.0.0.1"))


def get_bind_port(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("server", {}).get("port", 8000))


def get_cors_origins(cfg: Dict[str, Any]) -> List[str]:
    return list(cfg.get("cors", {}).get("origins", []))


def get_chain_id(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("disclosure", {}).get("chain_id", DEFAULT_CHAIN_ID))


def get_duration_days(cfg: Dict[str, Any]) -> int:
    return int(cfg.get("disclosure", {}).get("duration_days", DEFAULT_DURATION_DAYS))


def get_notice_ttls(cfg: Dict[str, Any]) -> Dict[str, float]:
    sec = cfg.get("notifications", {})
    return {
        "success": float(sec.get("success_ttl_sec", 2.0)),
        "error": float(sec.get("error_ttl_sec", 3.0)),
    }


def get_log_level(cfg: Dict[str, Any]) -> str:
    return str(cfg.get("logging", {}).get("level", "INFO")).upper()
