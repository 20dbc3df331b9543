"""Tests for the polling engine."""

from __future__ import annotations

import pytest

from weaverbird.invoke import InvocationError
from weaverbird.polling import (
    FAILED_MESSAGE,
    TIMEOUT_MESSAGE,
    CancellationTokenSource,
    PollOutcome,
    poll_until_done,
)
from weaverbird.types import FileMetadata, GenerationStatus


def _fetcher(*responses):
    """Return a fetch function yielding responses in order (last repeats)."""
    queue = list(responses)
    calls = []

    async def fetch():
        calls.append(len(calls))
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    fetch.calls = calls
    return fetch


IN_PROGRESS = {"codeGenerationStatus": "in-progress"}


class TestGenerationStatus:
    def test_parse_known(self) -> None:
        assert GenerationStatus.parse("ready") is GenerationStatus.READY
        assert GenerationStatus.parse("in-progress") is GenerationStatus.IN_PROGRESS
        assert GenerationStatus.parse("failed") is GenerationStatus.FAILED

    def test_parse_unrecognized(self) -> None:
        assert GenerationStatus.parse("exploded") is GenerationStatus.UNKNOWN
        assert GenerationStatus.parse(None) is GenerationStatus.UNKNOWN
        assert GenerationStatus.parse("unknown") is GenerationStatus.UNKNOWN


class TestPollUntilDone:
    @pytest.mark.asyncio
    async def test_ready_immediately(self, fake_sleep, chat) -> None:
        fetch = _fetcher(
            {
                "codeGenerationStatus": "ready",
                "result": {"newFileContents": [{"filePath": "a.txt", "fileContent": "1"}]},
            }
        )

        result = await poll_until_done(fetch, add_to_chat=chat, sleep=fake_sleep)

        assert result.outcome is PollOutcome.READY
        assert result.ready
        assert result.files == [FileMetadata("a.txt", "1")]
        assert result.attempts == 1
        assert fake_sleep.delays == []
        assert chat.interactions == []

    @pytest.mark.asyncio
    async def test_ready_without_result(self, fake_sleep) -> None:
        fetch = _fetcher({"codeGenerationStatus": "ready"})

        result = await poll_until_done(fetch, sleep=fake_sleep)

        assert result.ready
        assert result.files == []

    @pytest.mark.asyncio
    async def test_in_progress_then_ready(self, fake_sleep) -> None:
        fetch = _fetcher(
            IN_PROGRESS,
            IN_PROGRESS,
            {"codeGenerationStatus": "ready", "result": {"newFileContents": []}},
        )

        result = await poll_until_done(fetch, interval=10.0, sleep=fake_sleep)

        assert result.ready
        assert result.attempts == 3
        assert fake_sleep.delays == [10.0, 10.0]

    @pytest.mark.asyncio
    async def test_failed_stops_without_retry(self, fake_sleep, chat) -> None:
        fetch = _fetcher(IN_PROGRESS, {"codeGenerationStatus": "failed"})

        result = await poll_until_done(fetch, add_to_chat=chat, sleep=fake_sleep)

        assert result.outcome is PollOutcome.FAILED
        assert result.files == []
        assert result.attempts == 2
        assert chat.messages == [FAILED_MESSAGE]

    @pytest.mark.asyncio
    async def test_unknown_status_stops(self, fake_sleep, chat) -> None:
        fetch = _fetcher({"codeGenerationStatus": "sideways"})

        result = await poll_until_done(fetch, add_to_chat=chat, sleep=fake_sleep)

        assert result.outcome is PollOutcome.UNKNOWN_STATUS
        assert result.status == "sideways"
        assert chat.messages == ["Unknown status: sideways\n"]
        assert fake_sleep.delays == []

    @pytest.mark.asyncio
    async def test_timeout_respects_ceiling(self, fake_sleep, chat) -> None:
        fetch = _fetcher(IN_PROGRESS)

        result = await poll_until_done(
            fetch, max_attempts=5, interval=2.0, add_to_chat=chat, sleep=fake_sleep
        )

        assert result.outcome is PollOutcome.TIMEOUT
        assert result.attempts == 5
        assert len(fetch.calls) == 5
        # total waiting stays below ceiling x interval
        assert sum(fake_sleep.delays) < 5 * 2.0
        assert chat.messages == [TIMEOUT_MESSAGE]

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, fake_sleep, chat) -> None:
        source = CancellationTokenSource()
        source.cancel()
        fetch = _fetcher(IN_PROGRESS)

        result = await poll_until_done(
            fetch, token=source.token, add_to_chat=chat, sleep=fake_sleep
        )

        assert result.outcome is PollOutcome.CANCELLED
        assert result.attempts == 0
        assert fetch.calls == []
        assert chat.interactions == []

    @pytest.mark.asyncio
    async def test_cancelled_between_attempts(self, chat) -> None:
        source = CancellationTokenSource()
        fetch = _fetcher(IN_PROGRESS)

        async def cancelling_sleep(delay: float) -> None:
            source.cancel()

        result = await poll_until_done(
            fetch, token=source.token, add_to_chat=chat, sleep=cancelling_sleep
        )

        assert result.outcome is PollOutcome.CANCELLED
        assert result.attempts == 1
        assert len(fetch.calls) == 1

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self, fake_sleep) -> None:
        fetch = _fetcher(InvocationError("get-results", "boom"))

        with pytest.raises(InvocationError):
            await poll_until_done(fetch, sleep=fake_sleep)


class TestCancellationTokenSource:
    def test_cancel_sets_flag_once(self) -> None:
        source = CancellationTokenSource()
        fired = []
        source.token.on_cancellation_requested(lambda: fired.append(True))

        assert not source.token.is_cancellation_requested
        source.cancel()
        source.cancel()

        assert source.token.is_cancellation_requested
        assert fired == [True]

    def test_callback_after_cancel_runs_immediately(self) -> None:
        source = CancellationTokenSource()
        source.cancel()
        fired = []
        source.token.on_cancellation_requested(lambda: fired.append(True))
        assert fired == [True]
