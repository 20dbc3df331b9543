"""Contracts shared by every conversation state.

A driver holds exactly one current ``SessionState``. Each user turn it builds
a ``SessionStateAction`` and calls ``interact``; the returned next state
replaces the current one and the returned interactions are appended to the
visible conversation.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from weaverbird.types import AddToChat, FileMetadata, Interaction

if TYPE_CHECKING:
    from weaverbird.polling import CancellationTokenSource
    from weaverbird.vfs import VirtualFileSystem


class SessionStatePhase(Enum):
    """Coarse phase of a state, used by the chat layer for rendering."""

    APPROACH = "Approach"
    CODEGEN = "Codegen"


@dataclass(frozen=True, slots=True)
class SessionStateAction:
    """Everything a state needs for one turn.

    Attributes:
        task: The task the session was started with
        files: Current workspace snapshot
        msg: Optional free-text user message
        add_to_chat: Appends interactions to the visible conversation immediately
        fs: Virtual filesystem that receives generated files
    """

    task: str
    files: Sequence[FileMetadata]
    add_to_chat: AddToChat
    fs: VirtualFileSystem
    msg: str | None = None


@dataclass(slots=True)
class SessionStateInteraction:
    """Result of ``interact``: the state to continue with and chat output."""

    next_state: SessionState
    interactions: list[Interaction] = field(default_factory=list)


@runtime_checkable
class SessionState(Protocol):
    """A conversation state."""

    @property
    def phase(self) -> SessionStatePhase: ...

    @property
    def conversation_id(self) -> str | None: ...

    @property
    def approach(self) -> str: ...

    @property
    def token_source(self) -> CancellationTokenSource: ...

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        """Consume one action and produce the next state.

        Never raises for remote failures; degraded results flow into the
        next legitimate state instead.
        """
        ...
