"""Configuration management for Weaverbird.

Two kinds of configuration live here:

- Backend endpoint map, resolved from the ``WEAVERBIRD_CONFIG`` JSON blob
  (see :mod:`weaverbird.config.backend`).
- Application config in YAML (system, user, project levels) with
  environment variable overrides.

Example usage:
    from weaverbird.config import BackendConfigProvider, load_config

    config = load_config(workspace_root="/path/to/project")
    print(config.llm.model)

    backend = BackendConfigProvider().get()
    print(backend.lambda_arns.codegen.get_results)
"""

from weaverbird.config.backend import (
    APP_CONFIG_FORMAT_VERSION,
    DEFAULT_BACKEND_CONFIG,
    ApproachFunctions,
    BackendConfig,
    BackendConfigProvider,
    CodegenFunctions,
    ConfigVersionError,
    FunctionArns,
    resolve_backend_config,
)
from weaverbird.config.loader import (
    get_config,
    load_config,
    reset_config,
)
from weaverbird.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from weaverbird.config.schema import (
    Config,
    GenerationFlow,
    LLMConfig,
    LoggingConfig,
    PollingConfig,
    SessionConfig,
    is_generation_flow,
)
from weaverbird.config.secrets import (
    clear_secret_cache,
    fetch_secret,
)

__all__ = [
    # Backend endpoint map
    "APP_CONFIG_FORMAT_VERSION",
    "DEFAULT_BACKEND_CONFIG",
    "ApproachFunctions",
    "BackendConfig",
    "BackendConfigProvider",
    "CodegenFunctions",
    "ConfigVersionError",
    "FunctionArns",
    "resolve_backend_config",
    # Application config
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    # Schema types
    "GenerationFlow",
    "LLMConfig",
    "LoggingConfig",
    "PollingConfig",
    "SessionConfig",
    "is_generation_flow",
    # Secret management
    "fetch_secret",
    "clear_secret_cache",
    # Path utilities
    "get_config_paths",
    "get_system_config_path",
    "get_user_config_path",
    "get_project_config_path",
]
