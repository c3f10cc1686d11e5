"""Config discovery, YAML parsing and ``${ENV_VAR}`` expansion."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from folio.config.schema import FolioConfig

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "FOLIO_CONFIG"

DEFAULT_CONFIG_PATHS = [
    Path("config.yaml"),
    Path("~/.folio/config.yaml"),
]

_ENV_REF = re.compile(r"\$\{(\w+)\}")


def _expand_env_vars(value: Any) -> Any:
    """Substitute ${VAR} references in every string leaf; unset vars become ""."""
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


def _candidate_paths(explicit_path: str | Path | None) -> list[Path]:
    if explicit_path is not None:
        return [Path(explicit_path)]
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return [Path(env_path)]
    return list(DEFAULT_CONFIG_PATHS)


def find_config_file(explicit_path: str | Path | None = None) -> Path | None:
    """Return the first existing config file, or None.

    An explicit path (or ``$FOLIO_CONFIG``) that does not exist is reported
    and treated as "no file" rather than silently falling back to the
    default locations.
    """
    candidates = _candidate_paths(explicit_path)
    for candidate in candidates:
        resolved = candidate.expanduser()
        if resolved.exists():
            return resolved
    if explicit_path is not None or os.environ.get(CONFIG_ENV_VAR):
        logger.warning("Config file not found: %s", candidates[0])
    return None


def load_config(path: str | Path | None = None) -> FolioConfig:
    """Load and validate configuration.

    Resolution order:
    1. Explicit path argument
    2. ``$FOLIO_CONFIG``
    3. config.yaml in the current directory
    4. ~/.folio/config.yaml
    5. All defaults (no file needed)
    """
    config_path = find_config_file(path)

    raw: dict[str, Any] = {}
    if config_path is not None:
        logger.info("Loading config from %s", config_path)
        with open(config_path) as f:
            raw = _expand_env_vars(yaml.safe_load(f) or {})
    else:
        logger.debug("No config file found, using defaults")

    return FolioConfig.model_validate(raw)


def resolve_path(path_str: str) -> Path:
    """Expand ~ and make a config-supplied path absolute."""
    return Path(path_str).expanduser().resolve()
