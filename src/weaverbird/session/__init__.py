"""Conversation state machine and session driver."""

from weaverbird.session.context import ConversationContext
from weaverbird.session.protocols import (
    SessionState,
    SessionStateAction,
    SessionStateInteraction,
    SessionStatePhase,
)
from weaverbird.session.session import Session, SessionInfo, SessionStorage
from weaverbird.session.states import (
    APPROACH_FALLBACK,
    CodeGenIterationState,
    CodeGenState,
    MockCodeGenState,
    RefinementIterationState,
    RefinementState,
)

__all__ = [
    "APPROACH_FALLBACK",
    "CodeGenIterationState",
    "CodeGenState",
    "ConversationContext",
    "MockCodeGenState",
    "RefinementIterationState",
    "RefinementState",
    "Session",
    "SessionInfo",
    "SessionState",
    "SessionStateAction",
    "SessionStateInteraction",
    "SessionStatePhase",
    "SessionStorage",
]
