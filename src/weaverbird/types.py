"""Shared value types and wire payload shapes."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypedDict


class Origin(Enum):
    """Who produced a chat interaction."""

    USER = "user"
    AI = "ai"


class InteractionType(Enum):
    """How the chat layer should render an interaction."""

    MESSAGE = "message"
    CODEGEN = "codegen"


class GenerationStatus(Enum):
    """Status values reported by the get-results function."""

    IN_PROGRESS = "in-progress"
    READY = "ready"
    FAILED = "failed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> GenerationStatus:
        """Map a raw status value; anything unrecognized becomes UNKNOWN."""
        for status in cls:
            if status is not cls.UNKNOWN and status.value == value:
                return status
        return cls.UNKNOWN


def _text_or_empty(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """One file of a snapshot: a workspace-relative path and its text."""

    file_path: str
    file_content: str

    def to_payload(self) -> dict[str, str]:
        return {"filePath": self.file_path, "fileContent": self.file_content}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> FileMetadata:
        return cls(
            file_path=_text_or_empty(data.get("filePath")),
            file_content=_text_or_empty(data.get("fileContent")),
        )


@dataclass(frozen=True, slots=True)
class Interaction:
    """A unit of chat output.

    Attributes:
        origin: user or ai
        type: message (content is str) or codegen (content is a list of paths)
        content: The payload to render
    """

    origin: Origin
    type: InteractionType
    content: str | tuple[str, ...]

    @classmethod
    def ai_message(cls, text: str) -> Interaction:
        return cls(origin=Origin.AI, type=InteractionType.MESSAGE, content=text)

    @classmethod
    def user_message(cls, text: str) -> Interaction:
        return cls(origin=Origin.USER, type=InteractionType.MESSAGE, content=text)

    @classmethod
    def codegen_summary(cls, paths: Iterable[str]) -> Interaction:
        return cls(origin=Origin.AI, type=InteractionType.CODEGEN, content=tuple(paths))

    def to_dict(self) -> dict[str, Any]:
        content = self.content if isinstance(self.content, str) else list(self.content)
        return {"origin": self.origin.value, "type": self.type.value, "content": content}


# Chat-append callback handed to states through the action
AddToChat = Callable[[Sequence[Interaction]], None]


# -----------------------------------------------------------------------------
# Wire payloads (JSON objects exchanged with the remote functions)
# -----------------------------------------------------------------------------


class FilePayload(TypedDict):
    filePath: str
    fileContent: str


class GenerateApproachInput(TypedDict):
    task: str
    originalFileContents: list[FilePayload]
    config: dict[str, Any]


class IterateApproachInput(TypedDict):
    task: str
    request: str
    approach: str
    originalFileContents: list[FilePayload]
    config: dict[str, Any]
    conversationId: str | None


class GenerateCodeInput(TypedDict):
    task: str
    approach: str
    originalFileContents: list[FilePayload]
    config: dict[str, Any]
    conversationId: str | None


class GetCodeGenerationResultInput(TypedDict):
    generationId: str
    conversationId: str | None


def files_to_payload(files: Iterable[FileMetadata]) -> list[FilePayload]:
    return [FilePayload(filePath=f.file_path, fileContent=f.file_content) for f in files]


def files_from_payload(items: Any) -> list[FileMetadata]:
    """Decode ``newFileContents``; entries without a path are skipped."""
    if not isinstance(items, list):
        return []
    return [
        FileMetadata.from_payload(item)
        for item in items
        if isinstance(item, dict) and item.get("filePath")
    ]
