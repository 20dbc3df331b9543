"""Conversation context threaded through every state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace

from weaverbird.config.backend import BackendConfig, BackendConfigProvider
from weaverbird.config.loader import load_config
from weaverbird.config.schema import Config, LLMConfig, PollingConfig, SessionConfig
from weaverbird.invoke import Invoker
from weaverbird.logging import get_logger, setup_logging
from weaverbird.polling import Sleep

log = get_logger("session.context")


@dataclass(frozen=True)
class ConversationContext:
    """Identifiers and configuration shared by the states of one session.

    Immutable: the only change over a session's life is filling in the
    conversation id, which produces a new context.
    """

    client: Invoker
    llm_config: LLMConfig
    workspace_root: str
    backend_config: BackendConfig
    conversation_id: str | None = None
    polling: PollingConfig = field(default_factory=PollingConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    sleep: Sleep = field(default=asyncio.sleep, compare=False, repr=False)

    def with_conversation_id(self, conversation_id: str | None) -> ConversationContext:
        """Return a copy bound to ``conversation_id``.

        An id that is already assigned is never replaced.
        """
        if self.conversation_id is not None:
            if conversation_id is not None and conversation_id != self.conversation_id:
                log.warning(
                    "Ignoring conversation id %s, session is bound to %s",
                    conversation_id,
                    self.conversation_id,
                )
            return self
        return replace(self, conversation_id=conversation_id)

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        client: Invoker,
        workspace_root: str,
        backend_config: BackendConfig,
        sleep: Sleep = asyncio.sleep,
    ) -> ConversationContext:
        """Build a context from loaded application config."""
        return cls(
            client=client,
            llm_config=config.llm,
            workspace_root=workspace_root,
            backend_config=backend_config,
            polling=config.polling,
            session=config.session,
            sleep=sleep,
        )

    @classmethod
    def from_workspace(
        cls,
        workspace_root: str,
        *,
        client: Invoker,
        backend_provider: BackendConfigProvider | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> ConversationContext:
        """Load the config cascade for ``workspace_root`` and build a context.

        Also sets up logging from the loaded ``logging`` section. The backend
        endpoint map comes from ``backend_provider`` (``WEAVERBIRD_CONFIG``
        when omitted).

        Usage:
            async with HttpInvoker.from_config(backend) as client:
                context = ConversationContext.from_workspace("/path/to/project", client=client)
                session = Session(context)
        """
        config = load_config(workspace_root)
        setup_logging(config.logging)
        provider = backend_provider or BackendConfigProvider()
        context = cls.from_config(
            config,
            client=client,
            workspace_root=workspace_root,
            backend_config=provider.get(),
            sleep=sleep,
        )
        log.debug("Context for %s: model=%s", workspace_root, config.llm.model)
        return context
