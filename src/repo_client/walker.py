"""Commit history walker.

Produces the bounded, newest-first commit sequence reachable from a
starting commit, independent of which backend stores the history.
"""

import heapq
import itertools
import logging
from typing import List, Optional, Set, Tuple

from .backends.base import RepositoryBackend
from .models import Commit

logger = logging.getLogger(__name__)


def normalize_depth(commit_depth: Optional[int]) -> Optional[int]:
    """Map a caller-supplied depth to a bound; None means unbounded.

    Non-positive depths are accepted and mean "whole history".
    """
    if commit_depth is None or commit_depth <= 0:
        return None
    return commit_depth


class CommitWalker:
    """Reverse-chronological traversal over a backend's commit graph."""

    def __init__(self, backend: RepositoryBackend, first_parent_only: bool = False):
        self.backend = backend
        self.first_parent_only = first_parent_only

    def walk(self, start_sha: str, commit_depth: Optional[int] = None) -> List[Commit]:
        """Collect commits reachable from ``start_sha``, newest first.

        Candidates wait in a queue ordered by committer timestamp; ties keep
        discovery order. Each sha is queued at most once, so ancestors
        reachable over several merge paths are emitted once.

        Args:
            start_sha: Commit the walk starts at; always emitted first
            commit_depth: Maximum commits to return; None or <= 0 for all

        Returns:
            List of commits ordered from ``start_sha`` backwards

        Raises:
            ReferenceResolutionError: If a listed commit cannot be read
        """
        limit = normalize_depth(commit_depth)
        counter = itertools.count()
        queue: List[Tuple[float, int, Commit]] = []
        seen: Set[str] = {start_sha}
        commits: List[Commit] = []

        start = self.backend.get_commit(start_sha)
        heapq.heappush(queue, (-start.committed_date.timestamp(), next(counter), start))

        while queue:
            _, _, commit = heapq.heappop(queue)
            commits.append(commit)
            if limit is not None and len(commits) >= limit:
                break

            parents = commit.parents[:1] if self.first_parent_only else commit.parents
            for parent_sha in parents:
                if parent_sha in seen:
                    continue
                seen.add(parent_sha)
                parent = self.backend.get_commit(parent_sha)
                heapq.heappush(
                    queue,
                    (-parent.committed_date.timestamp(), next(counter), parent),
                )

        logger.debug(
            f"Walked {len(commits)} commits from {start_sha} (limit={limit or 'none'})"
        )
        return commits
