"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reload support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from weaverbird.config.merge import merge_configs
from weaverbird.config.paths import get_config_paths
from weaverbird.config.schema import (
    Config,
    GenerationFlow,
    LLMConfig,
    LoggingConfig,
    PollingConfig,
    SessionConfig,
    is_generation_flow,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("weaverbird.config")

_cached_config: Config | None = None

_KNOWN_SECTIONS = {"llm", "polling", "session", "logging"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from environment variables.

    Note: API tokens are NOT loaded here - use fetch_secret() for secrets.
    """
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("WEAVERBIRD_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    model = os.environ.get("WEAVERBIRD_MODEL")
    if model:
        overrides.setdefault("llm", {})["model"] = model

    return overrides


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass."""
    defaults = LLMConfig()
    llm_data = _section(data, "llm")
    flow_value = llm_data.get("generation_flow", defaults.generation_flow.value)
    if is_generation_flow(str(flow_value)):
        flow = GenerationFlow(str(flow_value))
    else:
        _log.warning(
            "Unknown generation_flow %r, using %s", flow_value, defaults.generation_flow.value
        )
        flow = defaults.generation_flow
    llm = LLMConfig(
        model=llm_data.get("model", defaults.model),
        max_tokens_to_sample=int(
            llm_data.get("max_tokens_to_sample", defaults.max_tokens_to_sample)
        ),
        temperature=float(llm_data.get("temperature", defaults.temperature)),
        debate_rounds=int(llm_data.get("debate_rounds", defaults.debate_rounds)),
        generation_flow=flow,
    )

    poll_defaults = PollingConfig()
    poll_data = _section(data, "polling")
    polling = PollingConfig(
        max_attempts=int(poll_data.get("max_attempts", poll_defaults.max_attempts)),
        interval=float(poll_data.get("interval", poll_defaults.interval)),
    )

    session_defaults = SessionConfig()
    session_data = _section(data, "session")
    session = SessionConfig(
        mock_data_dir=session_data.get("mock_data_dir", session_defaults.mock_data_dir),
        write_code_directive=session_data.get(
            "write_code_directive", session_defaults.write_code_directive
        ),
        mock_code_directive=session_data.get(
            "mock_code_directive", session_defaults.mock_code_directive
        ),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    extra = {k: v for k, v in data.items() if k not in _KNOWN_SECTIONS}

    return Config(
        llm=llm,
        polling=polling,
        session=session,
        logging=logging_config,
        extra=extra,
    )


def load_config(workspace_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. Project config ($workspace_root/.weaverbird/config.yaml)
    3. User config
    4. System config

    Args:
        workspace_root: Workspace directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and workspace_root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []
    for path in get_config_paths(workspace_root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only global config (no workspace_root)
    if workspace_root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it if needed."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config. Useful for testing or forcing a reload."""
    global _cached_config
    _cached_config = None
