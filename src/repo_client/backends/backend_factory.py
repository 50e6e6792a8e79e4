"""Factory for creating repository backends."""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..errors import BindingError
from ..repos import LocalDirRepo, RemoteRepo, Repo
from ..utils.git_runner import is_bare_repository, is_git_repository
from .base import RepositoryBackend
from .directory_backend import DirectoryBackend
from .git_backend import GitBackend
from .remote_backend import RemoteGitBackend

if TYPE_CHECKING:
    from ..config import ClientConfig

logger = logging.getLogger(__name__)


class BackendFactory:
    """Factory for creating the backend that serves a repository locator."""

    @staticmethod
    def create(
        repo: Repo, config: Optional["ClientConfig"] = None
    ) -> RepositoryBackend:
        """Create appropriate backend for a locator.

        Args:
            repo: Repository locator
            config: Client configuration (defaults apply when omitted)

        Returns:
            RemoteGitBackend for remote locators, GitBackend for local git
            repositories and DirectoryBackend for plain directories

        Raises:
            BindingError: If no backend can serve the locator (e.g. a
                MemoryRepo, which needs an explicit InMemoryBackend)
        """
        if config is None:
            from ..config import ClientConfig

            config = ClientConfig()

        batch_size = config.walker.prefetch_batch_size
        read_bytes = config.search.batch_read_bytes

        if isinstance(repo, RemoteRepo):
            logger.info(f"Creating RemoteGitBackend for {repo}")
            return RemoteGitBackend(
                repo,
                timeout=config.clone.timeout,
                filter_blobs=config.clone.filter_blobs,
                prefetch_batch_size=batch_size,
                batch_read_bytes=read_bytes,
            )

        if isinstance(repo, LocalDirRepo):
            if BackendFactory._is_repository_root(repo.path):
                logger.info(f"Creating GitBackend for {repo.path}")
                return GitBackend(
                    repo.path,
                    prefetch_batch_size=batch_size,
                    batch_read_bytes=read_bytes,
                )
            logger.info(f"Creating DirectoryBackend for {repo.path}")
            return DirectoryBackend(repo.path)

        raise BindingError(f"No backend can serve repository locator: {repo!r}")

    @staticmethod
    def _is_repository_root(path: Path) -> bool:
        """True for a work tree root or a bare repository.

        Plain directories nested inside some other work tree are served as
        directories, not as the enclosing repository.
        """
        if (path / ".git").exists():
            return is_git_repository(path)
        return is_bare_repository(path)
