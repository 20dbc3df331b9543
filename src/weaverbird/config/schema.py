"""Configuration schema dataclasses for Weaverbird.

Defines the structure of configuration at all levels (system, user, project).
All fields have defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class GenerationFlow(Enum):
    """Backend execution flow used for code generation."""

    FARGATE = "fargate"
    LAMBDA = "lambda"
    STEP_FUNCTION = "stepFunction"


def is_generation_flow(value: str) -> bool:
    """Return True if ``value`` names a known generation flow."""
    return value in {flow.value for flow in GenerationFlow}


@dataclass(frozen=True)
class LLMConfig:
    """Generation parameters sent with every remote call."""

    model: str = "claude-2"
    max_tokens_to_sample: int = 50000
    temperature: float = 0.0
    debate_rounds: int = 2
    generation_flow: GenerationFlow = GenerationFlow.LAMBDA

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the wire ``config`` object."""
        return {
            "model": self.model,
            "maxTokensToSample": self.max_tokens_to_sample,
            "temperature": self.temperature,
            "debateRounds": self.debate_rounds,
            "generationFlow": self.generation_flow.value,
        }


@dataclass(frozen=True)
class PollingConfig:
    """Polling budget for code generation results."""

    max_attempts: int = 60
    interval: float = 10.0  # seconds between attempts


@dataclass(frozen=True)
class SessionConfig:
    """Conversation defaults."""

    mock_data_dir: str = "mock-data"
    write_code_directive: str = "WRITE CODE"
    mock_code_directive: str = "MOCK CODE"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, overrides level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    llm: LLMConfig = field(default_factory=LLMConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Unknown top-level sections are kept for extensions
    extra: dict[str, Any] = field(default_factory=dict)
