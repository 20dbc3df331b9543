"""Polling engine for long-running code generation.

A generation is started remotely and then polled by id until it reaches a
terminal status, the attempt budget runs out, or the owner cancels. Sleep is
injectable so tests never wait on the wall clock.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from weaverbird.logging import get_logger
from weaverbird.types import (
    AddToChat,
    FileMetadata,
    GenerationStatus,
    Interaction,
    files_from_payload,
)

log = get_logger("polling")

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL = 10.0  # seconds

FAILED_MESSAGE = "Code generation failed\n"
TIMEOUT_MESSAGE = "Code generation did not finish within the expected time"

FetchStatus = Callable[[], Awaitable[dict[str, Any]]]
Sleep = Callable[[float], Awaitable[Any]]


class CancellationToken:
    """Read side of a cooperative cancellation flag."""

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def on_cancellation_requested(self, callback: Callable[[], None]) -> None:
        if self._cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def _cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


class CancellationTokenSource:
    """Owner side of a cancellation flag. Only the owner may cancel."""

    def __init__(self) -> None:
        self._token = CancellationToken()

    @property
    def token(self) -> CancellationToken:
        return self._token

    def cancel(self) -> None:
        self._token._cancel()


class PollOutcome(Enum):
    """How a polling cycle ended."""

    READY = "ready"
    FAILED = "failed"
    UNKNOWN_STATUS = "unknown_status"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(slots=True)
class PollResult:
    """Result of a polling cycle.

    Attributes:
        outcome: How polling ended
        files: Generated files (only non-empty when outcome is READY)
        attempts: Number of status fetches performed
        status: Last raw status value seen, if any
    """

    outcome: PollOutcome
    files: list[FileMetadata] = field(default_factory=list)
    attempts: int = 0
    status: Any = None

    @property
    def ready(self) -> bool:
        return self.outcome is PollOutcome.READY


def _emit(add_to_chat: AddToChat | None, text: str) -> None:
    if add_to_chat is not None:
        add_to_chat([Interaction.ai_message(text)])


async def poll_until_done(
    fetch_status: FetchStatus,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL,
    token: CancellationToken | None = None,
    add_to_chat: AddToChat | None = None,
    sleep: Sleep = asyncio.sleep,
) -> PollResult:
    """Poll a generation until it is terminal.

    ``fetch_status`` returns the raw get-results response, with a
    ``codeGenerationStatus`` field and, once ready, ``result.newFileContents``.
    Errors raised by ``fetch_status`` propagate to the caller.

    Failed, unknown-status and timeout endings each post exactly one chat
    message. Cancellation is only checked before an attempt starts; it never
    interrupts a fetch already in flight.

    Args:
        fetch_status: Zero-argument coroutine function fetching the status
        max_attempts: Attempt ceiling
        interval: Seconds to wait after an in-progress response
        token: Cancellation token checked before each attempt
        add_to_chat: Chat callback for diagnostics
        sleep: Delay function (injectable for tests)

    Returns:
        PollResult describing the outcome.
    """
    attempts = 0
    last_status: Any = None

    while attempts < max_attempts:
        if token is not None and token.is_cancellation_requested:
            log.info("Code generation polling cancelled after %d attempts", attempts)
            return PollResult(PollOutcome.CANCELLED, attempts=attempts, status=last_status)

        response = await fetch_status()
        attempts += 1
        log.info("Codegen response: %s", response)

        last_status = response.get("codeGenerationStatus")
        status = GenerationStatus.parse(last_status)

        if status is GenerationStatus.READY:
            result = response.get("result")
            new_files = result.get("newFileContents") if isinstance(result, dict) else None
            files = files_from_payload(new_files)
            return PollResult(PollOutcome.READY, files=files, attempts=attempts, status=last_status)

        if status is GenerationStatus.FAILED:
            log.error("Failed to generate code")
            _emit(add_to_chat, FAILED_MESSAGE)
            return PollResult(PollOutcome.FAILED, attempts=attempts, status=last_status)

        if status is GenerationStatus.UNKNOWN:
            message = f"Unknown status: {last_status}\n"
            log.error("%s", message.strip())
            _emit(add_to_chat, message)
            return PollResult(PollOutcome.UNKNOWN_STATUS, attempts=attempts, status=last_status)

        # in-progress; no wait once the budget is spent
        if attempts < max_attempts:
            await sleep(interval)

    log.error("%s", TIMEOUT_MESSAGE)
    _emit(add_to_chat, TIMEOUT_MESSAGE)
    return PollResult(PollOutcome.TIMEOUT, attempts=attempts, status=last_status)
