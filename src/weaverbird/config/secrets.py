"""Secret management for Weaverbird.

Secrets are read from the environment first, then from a ``.env.secrets``
file (cached) so that API tokens never need to live in YAML config.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

SECRETS_FILE = ".env.secrets"


@lru_cache(maxsize=1)
def _load_secrets(secrets_path: Path | None = None) -> dict[str, str | None]:
    if secrets_path:
        if secrets_path.exists():
            return dotenv_values(secrets_path)
        return {}

    default_path = Path(SECRETS_FILE)
    if default_path.exists():
        return dotenv_values(default_path)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Fetch a secret from environment or .env.secrets.

    Priority:
    1. Environment variable (os.environ)
    2. .env.secrets file (cached)

    Args:
        key: Environment variable name (e.g., "WEAVERBIRD_API_TOKEN")
        default: Default value if not found
        secrets_path: Optional path to .env.secrets file

    Returns:
        Secret value or default if not found.
    """
    value = os.environ.get(key)
    if value is not None:
        return value

    secrets = _load_secrets(secrets_path)
    if secrets.get(key) is not None:
        return secrets[key]

    return default


def clear_secret_cache() -> None:
    """Clear the secrets cache (after editing .env.secrets or in tests)."""
    _load_secrets.cache_clear()
