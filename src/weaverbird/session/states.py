"""Conversation states for approach refinement and code generation.

Transitions::

    Refinement -> RefinementIteration -+-> RefinementIteration (iterate approach)
                                       +-> CodeGen -----> CodeGenIteration (loops on itself)
                                       +-> MockCodeGen -> CodeGenIteration

Every state produces a valid next state even when remote calls fail; failures
surface as chat messages and empty results, never as exceptions.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from weaverbird.changes import create_changes
from weaverbird.files import collect_files, merge_file_snapshots
from weaverbird.invoke import InvocationError, invoke
from weaverbird.logging import get_logger
from weaverbird.polling import (
    FAILED_MESSAGE,
    CancellationTokenSource,
    poll_until_done,
)
from weaverbird.session.context import ConversationContext
from weaverbird.session.protocols import (
    SessionStateAction,
    SessionStateInteraction,
    SessionStatePhase,
)
from weaverbird.types import (
    FileMetadata,
    GenerateApproachInput,
    GenerateCodeInput,
    GetCodeGenerationResultInput,
    Interaction,
    IterateApproachInput,
    files_to_payload,
)

log = get_logger("session.states")

APPROACH_FALLBACK = (
    "There has been a problem generating an approach. Please type 'CLEAR' and start over."
)
GENERATION_STARTED_MESSAGE = "Code generation started\n"


def _approach_text(response: dict[str, Any]) -> str:
    approach = response.get("approach")
    return approach if isinstance(approach, str) else APPROACH_FALLBACK


class _StateBase:
    """Fields every state carries."""

    phase = SessionStatePhase.APPROACH

    def __init__(
        self,
        config: ConversationContext,
        approach: str,
        token_source: CancellationTokenSource | None = None,
    ) -> None:
        self.config = config
        self.approach = approach
        # A state that delegates its turn hands over its source so a reset
        # reaches the polling started by the delegate.
        self.token_source = token_source or CancellationTokenSource()

    @property
    def conversation_id(self) -> str | None:
        return self.config.conversation_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(conversation_id={self.conversation_id!r})"


class RefinementState(_StateBase):
    """Initial state: ask the backend for a first approach to the task."""

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        payload = GenerateApproachInput(
            task=action.task,
            originalFileContents=files_to_payload(action.files),
            config=self.config.llm_config.to_payload(),
        )

        try:
            response = await invoke(
                self.config.client,
                self.config.backend_config.lambda_arns.approach.generate,
                payload,
            )
        except InvocationError as e:
            log.error("Failed to generate approach: %s", e)
            response = {}

        self.approach = _approach_text(response)
        conversation_id = response.get("conversationId")
        next_config = self.config.with_conversation_id(
            conversation_id if isinstance(conversation_id, str) else None
        )

        return SessionStateInteraction(
            next_state=RefinementIterationState(next_config, self.approach),
            interactions=[Interaction.ai_message(f"{self.approach}\n")],
        )


class RefinementIterationState(_StateBase):
    """Refine the approach until the user asks for code."""

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        directives = self.config.session
        if action.msg and directives.write_code_directive in action.msg:
            return await CodeGenState(
                self.config, self.approach, token_source=self.token_source
            ).interact(action)

        if action.msg and directives.mock_code_directive in action.msg:
            return await MockCodeGenState(
                self.config, self.approach, token_source=self.token_source
            ).interact(action)

        payload = IterateApproachInput(
            task=action.task,
            request=action.msg or "",
            approach=self.approach,
            originalFileContents=files_to_payload(action.files),
            config=self.config.llm_config.to_payload(),
            conversationId=self.config.conversation_id,
        )

        try:
            response = await invoke(
                self.config.client,
                self.config.backend_config.lambda_arns.approach.iterate,
                payload,
            )
        except InvocationError as e:
            log.error("Failed to iterate approach: %s", e)
            response = {}

        self.approach = _approach_text(response)

        return SessionStateInteraction(
            next_state=RefinementIterationState(self.config, self.approach),
            interactions=[Interaction.ai_message(f"{self.approach}\n")],
        )


class _CodeGenBase(_StateBase):
    phase = SessionStatePhase.CODEGEN

    async def _generate(
        self, action: SessionStateAction, files: Sequence[FileMetadata]
    ) -> tuple[list[FileMetadata], list[Interaction]]:
        """Start a generation for ``files``, poll it, and materialize the result.

        Returns:
            The generated files and the materialization summary; both empty
            when the generation did not complete.
        """
        payload = GenerateCodeInput(
            task=action.task,
            approach=self.approach,
            originalFileContents=files_to_payload(files),
            config=self.config.llm_config.to_payload(),
            conversationId=self.config.conversation_id,
        )
        codegen = self.config.backend_config.lambda_arns.codegen

        try:
            # The iterate function does not follow the poll-results protocol,
            # so every round goes through generate.
            response = await invoke(self.config.client, codegen.generate, payload)
        except InvocationError as e:
            log.error("Failed to start code generation: %s", e)
            return [], []

        generation_id = response.get("generationId")
        if not isinstance(generation_id, str) or not generation_id:
            log.error("Code generation response has no generation id: %s", response)
            action.add_to_chat([Interaction.ai_message(FAILED_MESSAGE)])
            return [], []

        action.add_to_chat([Interaction.ai_message(GENERATION_STARTED_MESSAGE)])

        request = GetCodeGenerationResultInput(
            generationId=generation_id,
            conversationId=self.config.conversation_id,
        )

        async def fetch_status() -> dict[str, Any]:
            return await invoke(self.config.client, codegen.get_results, request)

        try:
            result = await poll_until_done(
                fetch_status,
                max_attempts=self.config.polling.max_attempts,
                interval=self.config.polling.interval,
                token=self.token_source.token,
                add_to_chat=action.add_to_chat,
                sleep=self.config.sleep,
            )
        except InvocationError as e:
            log.error("Failed to generate code: %s", e)
            return [], []

        if not result.ready:
            return [], []

        return result.files, create_changes(action.fs, result.files)


class CodeGenState(_CodeGenBase):
    """Generate code for the agreed approach against the workspace snapshot."""

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        new_files, interactions = await self._generate(action, action.files)
        return SessionStateInteraction(
            next_state=CodeGenIterationState(self.config, self.approach, new_files),
            interactions=interactions,
        )


class MockCodeGenState(_StateBase):
    """Stand-in for CodeGen that serves files from the workspace's mock data dir."""

    phase = SessionStatePhase.CODEGEN

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        new_files = self._read_mock_files()
        return SessionStateInteraction(
            next_state=CodeGenIterationState(self.config, self.approach, new_files),
            interactions=create_changes(action.fs, new_files),
        )

    def _read_mock_files(self) -> list[FileMetadata]:
        mock_dir_name = self.config.session.mock_data_dir.strip("/")
        prefix = f"{mock_dir_name}/"
        root = Path(self.config.workspace_root)
        try:
            files = collect_files(root / mock_dir_name, relative_to=root)
        except OSError as e:
            log.error("Unable to use mock code generation: %s", e)
            return []
        return [
            FileMetadata(file_path=f.file_path.removeprefix(prefix), file_content=f.file_content)
            for f in files
        ]


class CodeGenIterationState(_CodeGenBase):
    """Regenerate on top of the previous round's files. Loops on itself."""

    def __init__(
        self,
        config: ConversationContext,
        approach: str,
        new_files: Sequence[FileMetadata],
    ) -> None:
        super().__init__(config, approach)
        self._new_files = list(new_files)

    @property
    def new_files(self) -> list[FileMetadata]:
        return list(self._new_files)

    async def interact(self, action: SessionStateAction) -> SessionStateInteraction:
        files = merge_file_snapshots(self._new_files, action.files)
        self._new_files, interactions = await self._generate(action, files)
        return SessionStateInteraction(next_state=self, interactions=interactions)
