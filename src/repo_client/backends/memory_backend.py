"""In-memory backend: an ephemeral snapshot held entirely in memory."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Union

from ..errors import ContentReadError, NotInitializedError, ReferenceResolutionError
from ..models import Commit
from .base import RepositoryBackend

logger = logging.getLogger(__name__)

# Shortest abbreviated sha accepted as a reference, as in git
MIN_ABBREV_LENGTH = 4


class InMemoryBackend(RepositoryBackend):
    """Backend over files and commits supplied by the caller.

    Args:
        files: Mapping of repository-relative path to content
        commits: Commits of the history, in any order
        refs: Symbolic names (branches, tags) mapped to commit shas
        head: Sha ``HEAD`` resolves to; defaults to the first commit given
    """

    def __init__(
        self,
        files: Optional[Mapping[str, Union[str, bytes]]] = None,
        commits: Iterable[Commit] = (),
        refs: Optional[Mapping[str, str]] = None,
        head: Optional[str] = None,
        default_branch: Optional[str] = None,
    ):
        self._files: Dict[str, bytes] = {
            path: content.encode("utf-8") if isinstance(content, str) else content
            for path, content in (files or {}).items()
        }
        self._commits: Dict[str, Commit] = {}
        for commit in commits:
            self._commits[commit.sha] = commit
        self._refs: Dict[str, str] = dict(refs or {})
        if head is None and self._commits:
            head = next(iter(self._commits))
        self._head = head
        self._default_branch = default_branch
        self._resolved_sha: Optional[str] = None
        self._bound = False

    @property
    def has_history(self) -> bool:  # type: ignore[override]
        return bool(self._commits)

    def bind(self, reference: str, commit_depth: Optional[int]) -> Optional[str]:
        ref = (reference or "").strip() or "HEAD"
        if not self._commits:
            if ref != "HEAD":
                raise ReferenceResolutionError(f"Reference not found: {reference}")
            self._bound = True
            return None

        self._resolved_sha = self._resolve(ref)
        self._bound = True
        return self._resolved_sha

    def _resolve(self, ref: str) -> str:
        if ref == "HEAD" and self._head is not None:
            return self._head
        if ref in self._refs:
            return self._refs[ref]
        if ref in self._commits:
            return ref

        if len(ref) >= MIN_ABBREV_LENGTH:
            candidates = [sha for sha in self._commits if sha.startswith(ref)]
            if len(candidates) == 1:
                return candidates[0]
            if len(candidates) > 1:
                raise ReferenceResolutionError(f"Ambiguous reference: {ref}")

        raise ReferenceResolutionError(f"Reference not found: {ref}")

    def get_commit(self, sha: str) -> Commit:
        try:
            return self._commits[sha]
        except KeyError:
            raise ReferenceResolutionError(f"Commit not found: {sha}") from None

    def list_files(self) -> List[str]:
        if not self._bound:
            raise NotInitializedError("In-memory backend is not bound")
        return list(self._files)

    def read_file(self, path: str) -> bytes:
        if not self._bound:
            raise NotInitializedError("In-memory backend is not bound")
        try:
            return self._files[path]
        except KeyError:
            raise ContentReadError(f"File not tracked: {path}") from None

    def default_branch(self) -> Optional[str]:
        return self._default_branch

    def release(self) -> None:
        self._bound = False
        self._resolved_sha = None
