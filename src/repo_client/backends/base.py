"""Abstract base class for repository backends.

Defines the capability set every backend provides to the repository client,
so the same traversal and search semantics hold over very different
storage:
- GitBackend: local on-disk git object store
- RemoteGitBackend: remote repository materialized as a temporary clone
- DirectoryBackend: plain source tree without version control
- InMemoryBackend: ephemeral snapshot held in memory
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from ..models import Commit


class RepositoryBackend(ABC):
    """Abstract interface for repository backends.

    A backend is bound once to a reference and is read-only afterwards.
    All backends must implement these methods to ensure consistent behavior
    across different storage solutions.
    """

    # Backends without version-control history report an empty commit list
    has_history: bool = True

    @abstractmethod
    def bind(self, reference: str, commit_depth: Optional[int]) -> Optional[str]:
        """Resolve the locator and reference into a read-only snapshot.

        Args:
            reference: Symbolic name ("HEAD", a branch, a tag) or commit sha
            commit_depth: History bound, None for unbounded. Backends that
                fetch history may use it to limit what they download.

        Returns:
            Full sha of the resolved commit, or None for history-less backends

        Raises:
            BindingError: If the locator is not a readable repository
            ReferenceResolutionError: If the reference does not resolve
        """
        pass

    @abstractmethod
    def get_commit(self, sha: str) -> Commit:
        """Read one commit of the bound repository's history.

        Raises:
            ReferenceResolutionError: If no commit has this sha
        """
        pass

    @abstractmethod
    def list_files(self) -> List[str]:
        """List tracked files at the bound snapshot.

        Paths are relative to the repository root and ``/`` separated.
        Version-control metadata is never included. Order is unspecified.
        """
        pass

    @abstractmethod
    def read_file(self, path: str) -> bytes:
        """Read one tracked file at the bound snapshot.

        Raises:
            ContentReadError: If the path is not tracked or cannot be read
        """
        pass

    def iter_file_contents(self, paths: Iterable[str]) -> Iterator[Tuple[str, bytes]]:
        """Stream (path, content) pairs for the given tracked paths.

        Default implementation reads one file at a time; backends with a
        cheaper batch read override it.
        """
        for path in paths:
            yield path, self.read_file(path)

    @abstractmethod
    def release(self) -> None:
        """Release any temporary storage. Safe to call more than once."""
        pass

    @property
    def local_path(self) -> Optional[Path]:
        """On-disk root of the snapshot, when there is one."""
        return None

    def default_branch(self) -> Optional[str]:
        """Name of the repository's default branch, when known."""
        return None
