"""Backend endpoint configuration.

The remote function map is supplied as a JSON blob in the ``WEAVERBIRD_CONFIG``
environment variable::

    {
        "version": 2,
        "endpoint": "https://...",
        "region": "us-west-2",
        "lambdaArns": {
            "approach": {"generate": "...", "iterate": "..."},
            "codegen": {"generate": "...", "iterate": "...", "getResults": "..."}
        }
    }

Every field except ``version`` is optional and falls back to the built-in
defaults. A version mismatch or an unparseable blob yields the full defaults.
"""

from __future__ import annotations

import json
import math
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from weaverbird.config.merge import deep_merge
from weaverbird.logging import get_logger

log = get_logger("config.backend")

CONFIG_ENV_VAR = "WEAVERBIRD_CONFIG"
APP_CONFIG_FORMAT_VERSION = 2

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class ConfigVersionError(ValueError):
    """The backend config blob declares an unsupported schema version."""

    def __init__(self, found: Any) -> None:
        self.found = found
        super().__init__(
            f"Invalid config version, required {APP_CONFIG_FORMAT_VERSION}, found {found}"
        )


@dataclass(frozen=True)
class ApproachFunctions:
    generate: str
    iterate: str


@dataclass(frozen=True)
class CodegenFunctions:
    generate: str
    iterate: str
    get_results: str


@dataclass(frozen=True)
class FunctionArns:
    approach: ApproachFunctions
    codegen: CodegenFunctions


@dataclass(frozen=True)
class BackendConfig:
    """Resolved endpoint map used by every session state."""

    endpoint: str
    region: str
    lambda_arns: FunctionArns

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the same camelCase keys as the config blob."""
        return {
            "endpoint": self.endpoint,
            "region": self.region,
            "lambdaArns": {
                "approach": {
                    "generate": self.lambda_arns.approach.generate,
                    "iterate": self.lambda_arns.approach.iterate,
                },
                "codegen": {
                    "generate": self.lambda_arns.codegen.generate,
                    "iterate": self.lambda_arns.codegen.iterate,
                    "getResults": self.lambda_arns.codegen.get_results,
                },
            },
        }


_ARN_PREFIX = "arn:aws:lambda:us-west-2:789621683470:function:WeaverbirdService-Service-"

DEFAULT_BACKEND_CONFIG = BackendConfig(
    endpoint="https://8id2rzphzj.execute-api.us-west-2.amazonaws.com/gamma",
    region="us-west-2",
    lambda_arns=FunctionArns(
        approach=ApproachFunctions(
            generate=_ARN_PREFIX + "GenerateApproachLambda47-VIjB8vZYS3Iu:live",
            iterate=_ARN_PREFIX + "IterateApproachLambda18D-48KTZ8YLkK70:live",
        ),
        codegen=CodegenFunctions(
            generate=_ARN_PREFIX + "GenerateCodeLambdaCDE418-nXvafUVY7rmw:live",
            iterate=_ARN_PREFIX + "IterateCodeLambdaA908EBD-Asyx9VdIH3k2:live",
            get_results=_ARN_PREFIX + "GetCodeGenerationLambdaB-3W5Wr1TtVHcr:live",
        ),
    ),
)


def _parse_version(value: Any) -> int | None:
    """Read the leading integer of a version value.

    Only the leading integer counts: "2.0", " 2 " and 2.5 all read as 2.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _text(data: Mapping[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _mapping(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def backend_config_from_dict(data: Mapping[str, Any]) -> BackendConfig:
    """Build a BackendConfig, taking each missing or non-string field from defaults."""
    default = DEFAULT_BACKEND_CONFIG
    merged = deep_merge(default.to_dict(), dict(data))
    arns = _mapping(merged, "lambdaArns")
    approach = _mapping(arns, "approach")
    codegen = _mapping(arns, "codegen")
    return BackendConfig(
        endpoint=_text(merged, "endpoint", default.endpoint),
        region=_text(merged, "region", default.region),
        lambda_arns=FunctionArns(
            approach=ApproachFunctions(
                generate=_text(approach, "generate", default.lambda_arns.approach.generate),
                iterate=_text(approach, "iterate", default.lambda_arns.approach.iterate),
            ),
            codegen=CodegenFunctions(
                generate=_text(codegen, "generate", default.lambda_arns.codegen.generate),
                iterate=_text(codegen, "iterate", default.lambda_arns.codegen.iterate),
                get_results=_text(
                    codegen, "getResults", default.lambda_arns.codegen.get_results
                ),
            ),
        ),
    )


def validate_backend_blob(raw: str | None) -> BackendConfig:
    """Parse and validate a config blob.

    Raises:
        json.JSONDecodeError: If the blob is not valid JSON.
        ConfigVersionError: If the version is missing or not supported.
    """
    parsed = json.loads(raw if raw is not None else f'{{"version": {APP_CONFIG_FORMAT_VERSION}}}')
    if not isinstance(parsed, dict):
        raise ConfigVersionError(None)

    version = _parse_version(parsed.get("version"))
    if version != APP_CONFIG_FORMAT_VERSION:
        error = ConfigVersionError(parsed.get("version"))
        log.error("%s", error)
        raise error

    return backend_config_from_dict(parsed)


def resolve_backend_config(raw: str | None) -> BackendConfig:
    """Resolve a config blob, falling back to the defaults on any error."""
    try:
        return validate_backend_blob(raw)
    except (ValueError, TypeError) as e:
        # JSONDecodeError and ConfigVersionError are both ValueErrors
        log.debug("Using default backend config: %s", e)
        return DEFAULT_BACKEND_CONFIG


class BackendConfigProvider:
    """Lazily resolves the backend config once and hands out the cached value.

    Owned by whoever drives sessions and passed into every conversation
    context, so there is no module-level cache to reset between tests.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        env_var: str = CONFIG_ENV_VAR,
    ) -> None:
        self._environ = environ if environ is not None else os.environ
        self._env_var = env_var
        self._config: BackendConfig | None = None

    @property
    def resolved(self) -> bool:
        return self._config is not None

    def get(self) -> BackendConfig:
        if self._config is None:
            self._config = resolve_backend_config(self._environ.get(self._env_var))
        return self._config
