"""Repository backends: the storage-specific half of the client."""

from .base import RepositoryBackend
from .backend_factory import BackendFactory
from .directory_backend import DirectoryBackend
from .git_backend import GitBackend
from .memory_backend import InMemoryBackend
from .remote_backend import RemoteGitBackend

__all__ = [
    "RepositoryBackend",
    "BackendFactory",
    "DirectoryBackend",
    "GitBackend",
    "InMemoryBackend",
    "RemoteGitBackend",
]
