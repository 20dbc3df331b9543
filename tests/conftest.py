"""Root pytest configuration for all tests."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest

from weaverbird.config.backend import DEFAULT_BACKEND_CONFIG, BackendConfig
from weaverbird.config.schema import LLMConfig, PollingConfig
from weaverbird.invoke import InvocationError
from weaverbird.session.context import ConversationContext
from weaverbird.session.protocols import SessionStateAction
from weaverbird.types import FileMetadata, Interaction
from weaverbird.vfs import VirtualFileSystem


class FakeInvoker:
    """Invoker returning queued responses per function id.

    The last queued item for a function repeats forever. Exceptions in the
    queue are raised instead of returned.
    """

    def __init__(self, responses: Mapping[str, Sequence[Any]] | None = None) -> None:
        self.responses: dict[str, list[Any]] = {
            k: list(v) for k, v in (responses or {}).items()
        }
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def queue(self, function_id: str, *items: Any) -> None:
        self.responses.setdefault(function_id, []).extend(items)

    async def invoke(self, function_id: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        self.calls.append((function_id, dict(payload)))
        queue = self.responses.get(function_id)
        if not queue:
            raise InvocationError(function_id, "no response queued")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item

    def calls_to(self, function_id: str) -> list[dict[str, Any]]:
        return [payload for fid, payload in self.calls if fid == function_id]


class FakeSleep:
    """Records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ChatLog:
    """Collects interactions sent through an action's add_to_chat callback."""

    def __init__(self) -> None:
        self.interactions: list[Interaction] = []

    def __call__(self, interactions: Sequence[Interaction]) -> None:
        self.interactions.extend(interactions)

    @property
    def messages(self) -> list[str]:
        return [i.content for i in self.interactions if isinstance(i.content, str)]


@pytest.fixture
def backend() -> BackendConfig:
    return DEFAULT_BACKEND_CONFIG


@pytest.fixture
def invoker() -> FakeInvoker:
    return FakeInvoker()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def chat() -> ChatLog:
    return ChatLog()


@pytest.fixture
def fs() -> VirtualFileSystem:
    return VirtualFileSystem()


@pytest.fixture
def context(
    invoker: FakeInvoker, fake_sleep: FakeSleep, backend: BackendConfig, tmp_path: Path
) -> ConversationContext:
    """Context with a small polling budget and no real waiting."""
    return ConversationContext(
        client=invoker,
        llm_config=LLMConfig(),
        workspace_root=str(tmp_path),
        backend_config=backend,
        polling=PollingConfig(max_attempts=3, interval=10.0),
        sleep=fake_sleep,
    )


@pytest.fixture
def workspace_files() -> list[FileMetadata]:
    return [
        FileMetadata("src/app.py", "print('hello')\n"),
        FileMetadata("README.md", "# App\n"),
    ]


@pytest.fixture
def make_action(
    chat: ChatLog, fs: VirtualFileSystem, workspace_files: list[FileMetadata]
) -> Callable[..., SessionStateAction]:
    def factory(
        msg: str | None = None,
        *,
        task: str = "add a button",
        files: Sequence[FileMetadata] | None = None,
    ) -> SessionStateAction:
        return SessionStateAction(
            task=task,
            files=tuple(workspace_files if files is None else files),
            msg=msg,
            add_to_chat=chat,
            fs=fs,
        )

    return factory
