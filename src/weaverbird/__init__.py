"""Weaverbird: conversation-driven code generation orchestrator."""

__version__ = "0.1.0"

# Public API
from weaverbird.changes import create_changes
from weaverbird.config import (
    BackendConfig,
    BackendConfigProvider,
    Config,
    LLMConfig,
    get_config,
    load_config,
    resolve_backend_config,
)
from weaverbird.invoke import HttpInvoker, InvocationError, Invoker, invoke
from weaverbird.polling import (
    CancellationToken,
    CancellationTokenSource,
    PollOutcome,
    PollResult,
    poll_until_done,
)
from weaverbird.session import (
    CodeGenIterationState,
    CodeGenState,
    ConversationContext,
    MockCodeGenState,
    RefinementIterationState,
    RefinementState,
    Session,
    SessionState,
    SessionStateAction,
    SessionStateInteraction,
    SessionStorage,
)
from weaverbird.types import FileMetadata, GenerationStatus, Interaction
from weaverbird.vfs import VirtualFileSystem, VirtualMemoryFile, make_uri

__all__ = [
    # Config
    "BackendConfig",
    "BackendConfigProvider",
    "Config",
    "LLMConfig",
    "get_config",
    "load_config",
    "resolve_backend_config",
    # Invocation
    "HttpInvoker",
    "InvocationError",
    "Invoker",
    "invoke",
    # Polling
    "CancellationToken",
    "CancellationTokenSource",
    "PollOutcome",
    "PollResult",
    "poll_until_done",
    # Session
    "CodeGenIterationState",
    "CodeGenState",
    "ConversationContext",
    "MockCodeGenState",
    "RefinementIterationState",
    "RefinementState",
    "Session",
    "SessionState",
    "SessionStateAction",
    "SessionStateInteraction",
    "SessionStorage",
    # Files and chat
    "FileMetadata",
    "GenerationStatus",
    "Interaction",
    "VirtualFileSystem",
    "VirtualMemoryFile",
    "create_changes",
    "make_uri",
]
