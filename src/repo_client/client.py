"""
Repository client: the single entry point for repository access.

A RepoClient binds one backend to a reference and history bound with
init_repo(), then answers list_commits() and search() against that bound
state until close() releases it.

Typical use::

    with RepoClient() as client:
        client.init_repo("/path/to/repo", "HEAD", commit_depth=30)
        commits = client.list_commits()
        response = client.search(SearchRequest(query="eval("))
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from .backends.backend_factory import BackendFactory
from .backends.base import RepositoryBackend
from .config import ClientConfig
from .errors import ContentReadError, NotInitializedError
from .models import Commit, SearchRequest, SearchResponse
from .repos import Repo, make_repo
from .search import ContentSearchEngine
from .walker import CommitWalker, normalize_depth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepoHandle:
    """A repository bound to a reference with a fixed history bound.

    ``commit_depth`` is None when history is unbounded. ``resolved_sha`` is
    None for backends without history.
    """

    repo: Repo
    backend: RepositoryBackend
    reference: str
    resolved_sha: Optional[str]
    commit_depth: Optional[int]


class RepoClient:
    """Facade over one bound repository.

    Operations on one client are serialized by an internal lock. Separate
    clients share no state and may be used from separate threads.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self._lock = threading.RLock()
        self._handle: Optional[RepoHandle] = None
        self._commits: Optional[List[Commit]] = None

    def __enter__(self) -> "RepoClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def handle(self) -> Optional[RepoHandle]:
        return self._handle

    def init_repo(
        self,
        repo: Union[Repo, str, Path],
        reference: Optional[str] = None,
        commit_depth: Optional[int] = None,
        backend: Optional[RepositoryBackend] = None,
    ) -> RepoHandle:
        """Bind the client to a repository at a reference.

        Args:
            repo: Locator, or a path/URI string turned into one by make_repo()
            reference: Where history starts; defaults to config.reference
            commit_depth: Commits to materialize; defaults to
                config.commit_depth. Zero or negative means the whole history.
            backend: Use this backend instead of one chosen by BackendFactory

        Returns:
            The new RepoHandle

        Raises:
            BindingError: If the locator is not a readable repository
            ReferenceResolutionError: If the reference does not resolve
        """
        repo = make_repo(repo)
        reference = reference if reference is not None else self.config.reference
        depth = normalize_depth(
            commit_depth if commit_depth is not None else self.config.commit_depth
        )

        with self._lock:
            if self._handle is not None:
                logger.debug(f"Releasing previous binding to {self._handle.repo}")
                self.close()

            if backend is None:
                backend = BackendFactory.create(repo, self.config)
            try:
                resolved_sha = backend.bind(reference, depth)
            except BaseException:
                backend.release()
                raise

            self._handle = RepoHandle(
                repo=repo,
                backend=backend,
                reference=reference,
                resolved_sha=resolved_sha,
                commit_depth=depth,
            )
            self._commits = None
            return self._handle

    def _require_handle(self) -> RepoHandle:
        if self._handle is None:
            raise NotInitializedError("init_repo() must be called first")
        return self._handle

    def list_commits(self) -> List[Commit]:
        """Commits within the history bound, newest first.

        Raises:
            NotInitializedError: If the client is not bound
        """
        with self._lock:
            handle = self._require_handle()
            if self._commits is None:
                if handle.resolved_sha is None or not handle.backend.has_history:
                    self._commits = []
                else:
                    walker = CommitWalker(
                        handle.backend,
                        first_parent_only=self.config.walker.first_parent_only,
                    )
                    self._commits = walker.walk(
                        handle.resolved_sha, handle.commit_depth
                    )
            return list(self._commits)

    def make_request(
        self, query: str, filename: str = "", path: str = ""
    ) -> SearchRequest:
        """Build a SearchRequest with the configured case sensitivity."""
        return SearchRequest(
            query=query,
            filename=filename,
            path=path,
            case_sensitive=self.config.search.case_sensitive,
        )

    def search(self, request: SearchRequest) -> SearchResponse:
        """Search tracked content at the bound reference.

        The history bound does not affect which files are searched.

        Raises:
            NotInitializedError: If the client is not bound
            SearchError: If the query is empty
            ContentReadError: If a tracked file cannot be read
        """
        with self._lock:
            handle = self._require_handle()
            return ContentSearchEngine(handle.backend).search(request)

    def list_files(
        self, predicate: Optional[Callable[[str], bool]] = None
    ) -> List[str]:
        """Tracked paths at the bound reference, sorted, optionally filtered."""
        with self._lock:
            handle = self._require_handle()
            files = handle.backend.list_files()
            if predicate is not None:
                files = [f for f in files if predicate(f)]
            return sorted(files)

    def get_file_content(self, path: str) -> bytes:
        """Content of one tracked file at the bound reference.

        Raises:
            ContentReadError: If the file is not tracked or unreadable
        """
        with self._lock:
            handle = self._require_handle()
            if not path:
                raise ContentReadError("Empty file path")
            return handle.backend.read_file(path)

    def local_path(self) -> Optional[Path]:
        """On-disk root of the bound snapshot (a temporary clone for remotes)."""
        with self._lock:
            return self._require_handle().backend.local_path

    def get_default_branch(self) -> Optional[str]:
        with self._lock:
            return self._require_handle().backend.default_branch()

    def close(self) -> None:
        """Release the handle and any temporary storage it owns."""
        with self._lock:
            handle, self._handle = self._handle, None
            self._commits = None
            if handle is not None:
                handle.backend.release()
                logger.debug(f"Released {handle.repo}")
