"""In-memory virtual filesystem for generated files.

The host editor opens and diffs generated content through URIs of the
``weaverbird`` scheme. Paths are flat strings; there are no directories.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Protocol

from weaverbird.logging import get_logger

log = get_logger("vfs")

WEAVERBIRD_SCHEME = "weaverbird"


@dataclass(frozen=True, slots=True)
class VirtualUri:
    """Scheme-qualified path, rendered as ``scheme:/path``."""

    scheme: str
    path: str

    def __str__(self) -> str:
        return f"{self.scheme}:{self.path}"


def make_uri(path: str, scheme: str = WEAVERBIRD_SCHEME) -> VirtualUri:
    """Build a URI for ``path``; the path always gets a leading slash."""
    normalized = path.replace("\\", "/")
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return VirtualUri(scheme=scheme, path=normalized)


class FileProvider(Protocol):
    def read(self) -> bytes: ...


class VirtualMemoryFile:
    """A file whose bytes live in memory."""

    def __init__(self, contents: bytes) -> None:
        self._contents = contents

    def read(self) -> bytes:
        return self._contents

    @property
    def size(self) -> int:
        return len(self._contents)


class VirtualFileSystem:
    """Registry mapping URIs to file providers.

    Registering a URI that already exists overwrites it. Listeners are told
    about every registration so the host can refresh open editors.
    """

    def __init__(self) -> None:
        self._providers: dict[VirtualUri, FileProvider] = {}
        self._listeners: list[Callable[[VirtualUri], None]] = []

    def register_provider(self, uri: VirtualUri, provider: FileProvider) -> None:
        replaced = uri in self._providers
        self._providers[uri] = provider
        log.debug("%s %s", "Replaced" if replaced else "Registered", uri)
        for listener in list(self._listeners):
            listener(uri)

    def delete_provider(self, uri: VirtualUri) -> bool:
        return self._providers.pop(uri, None) is not None

    def read_file(self, uri: VirtualUri) -> bytes:
        """Read a registered file.

        Raises:
            FileNotFoundError: If nothing is registered at ``uri``.
        """
        provider = self._providers.get(uri)
        if provider is None:
            raise FileNotFoundError(str(uri))
        return provider.read()

    def is_registered(self, uri: VirtualUri) -> bool:
        return uri in self._providers

    def on_did_change(self, listener: Callable[[VirtualUri], None]) -> Callable[[], None]:
        """Register a change listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unregister() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unregister

    def __iter__(self) -> Iterator[VirtualUri]:
        return iter(list(self._providers))

    def __len__(self) -> int:
        return len(self._providers)
