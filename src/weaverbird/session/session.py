"""Session driver: owns the current state and the visible conversation."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from weaverbird.logging import get_logger
from weaverbird.session.context import ConversationContext
from weaverbird.session.protocols import SessionState, SessionStateAction
from weaverbird.session.states import RefinementState
from weaverbird.types import AddToChat, FileMetadata, Interaction
from weaverbird.vfs import VirtualFileSystem

log = get_logger("session")

CLEAR_COMMAND = "CLEAR"


class Session:
    """One conversation about one task.

    The first message becomes the task. Every call to ``send`` runs exactly
    one ``interact`` on the current state; calls must not overlap.

    Usage:
        session = Session(context)
        await session.send("add a button", files, fs)
        await session.send("use a blue button", files, fs)
        await session.send("WRITE CODE", files, fs)
    """

    def __init__(
        self,
        context: ConversationContext,
        *,
        session_id: str | None = None,
        name: str | None = None,
    ) -> None:
        self._session_id = session_id or f"session-{uuid.uuid4().hex[:8]}"
        self._context = context
        self.name = name
        self.task: str | None = None
        self.state: SessionState = RefinementState(context, "")
        self.history: list[Interaction] = []
        self._resets = 0

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def conversation_id(self) -> str | None:
        return self.state.conversation_id

    def _append(self, interactions: Sequence[Interaction]) -> None:
        self.history.extend(interactions)

    def _append_unless_reset(self, resets: int) -> AddToChat:
        def add_to_chat(interactions: Sequence[Interaction]) -> None:
            if self._resets == resets:
                self._append(interactions)

        return add_to_chat

    async def send(
        self,
        message: str,
        files: Sequence[FileMetadata],
        fs: VirtualFileSystem,
    ) -> list[Interaction]:
        """Process one user message.

        Args:
            message: User text; ``CLEAR`` resets the session
            files: Current workspace snapshot
            fs: Virtual filesystem for generated files

        Returns:
            The interactions returned by the state for this turn; empty when
            the session was reset before the turn finished.
        """
        if message.strip() == CLEAR_COMMAND:
            self.reset()
            return []

        self._append([Interaction.user_message(message)])
        if self.task is None:
            self.task = message
            if self.name is None:
                self.name = message[:80]

        resets = self._resets
        action = SessionStateAction(
            task=self.task,
            files=tuple(files),
            msg=message,
            add_to_chat=self._append_unless_reset(resets),
            fs=fs,
        )
        result = await self.state.interact(action)
        if self._resets != resets:
            # Reset while the turn was in flight; the fresh state stays.
            log.info("Session %s: dropping result of a turn interrupted by reset", self._session_id)
            return []
        log.debug(
            "Session %s: %s -> %s",
            self._session_id,
            type(self.state).__name__,
            type(result.next_state).__name__,
        )
        self.state = result.next_state
        self._append(result.interactions)
        return result.interactions

    def reset(self) -> None:
        """Cancel in-flight polling and start over with a fresh state."""
        self.state.token_source.cancel()
        self._resets += 1
        self.task = None
        self.history = []
        self.state = RefinementState(self._context, "")
        log.info("Session %s reset", self._session_id)


@dataclass(slots=True)
class SessionInfo:
    """Stored summary of a session."""

    name: str | None = None
    history: list[Interaction] = field(default_factory=list)


class SessionStorage:
    """In-memory store of session summaries, keyed by session id.

    Nothing is persisted across process restarts.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionInfo] = {}

    def save(self, session: Session) -> SessionInfo:
        info = SessionInfo(name=session.name, history=list(session.history))
        self._sessions[session.session_id] = info
        return info

    def get(self, session_id: str) -> SessionInfo | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def list_ids(self) -> list[str]:
        return list(self._sessions)
