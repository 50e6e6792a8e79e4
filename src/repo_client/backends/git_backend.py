"""Git backend: reads history and tracked content from a local object store.

Content is read from the bound commit's tree, never from the working
directory, so uncommitted edits are invisible to search. All git access goes
through run_git_command() from git_runner.
"""

import logging
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import (
    BindingError,
    ContentReadError,
    NotInitializedError,
    ReferenceResolutionError,
)
from ..models import Commit, Signature
from ..utils.git_runner import get_current_branch, is_git_repository, run_git_command
from .base import RepositoryBackend

logger = logging.getLogger(__name__)


class GitBackend(RepositoryBackend):
    """Backend over a git repository on local disk."""

    # Fields separated by NUL; with -z each record is NUL terminated as well
    LOG_FORMAT = "%H%x00%P%x00%an%x00%ae%x00%aI%x00%cn%x00%ce%x00%cI%x00%B"
    LOG_FIELD_COUNT = 9

    DEFAULT_BATCH_READ_BYTES = 32 * 1024 * 1024

    def __init__(
        self,
        repo_path: Path,
        prefetch_batch_size: int = 500,
        batch_read_bytes: int = DEFAULT_BATCH_READ_BYTES,
    ):
        """Initialize GitBackend.

        Args:
            repo_path: Path to the repository (work tree or bare)
            prefetch_batch_size: Commits read per ``git log`` call when a
                commit is not cached yet
            batch_read_bytes: Content held in memory per ``cat-file --batch``
                call during a scan
        """
        self.repo_path = Path(repo_path)
        self.prefetch_batch_size = max(1, prefetch_batch_size)
        self.batch_read_bytes = max(1, batch_read_bytes)
        self._resolved_sha: Optional[str] = None
        self._commit_cache: Dict[str, Commit] = {}
        self._tree_cache: Optional[Dict[str, str]] = None

    @property
    def local_path(self) -> Optional[Path]:
        return self.repo_path

    def bind(self, reference: str, commit_depth: Optional[int]) -> Optional[str]:
        if not self.repo_path.is_dir() or not is_git_repository(self.repo_path):
            raise BindingError(f"Not a git repository: {self.repo_path}")

        self._resolved_sha = self.resolve_reference(reference)
        logger.info(f"Bound {self.repo_path} at {reference} ({self._resolved_sha})")
        return self._resolved_sha

    def resolve_reference(self, reference: str) -> str:
        """Resolve a symbolic name or (abbreviated) sha to a full commit sha.

        Raises:
            ReferenceResolutionError: If the reference does not name a commit
        """
        ref = (reference or "").strip() or "HEAD"
        if ref.startswith("-"):
            raise ReferenceResolutionError(f"Invalid reference: {reference}")

        try:
            result = run_git_command(
                ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
                cwd=self.repo_path,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            raise ReferenceResolutionError(
                f"Reference not found in {self.repo_path}: {reference}"
            ) from e
        except FileNotFoundError as e:
            raise BindingError("git executable not found") from e

        return str(result.stdout.strip())

    def _require_bound(self) -> str:
        if self._resolved_sha is None:
            raise NotInitializedError("Backend is not bound to a reference")
        return self._resolved_sha

    # History

    def get_commit(self, sha: str) -> Commit:
        commit = self._commit_cache.get(sha)
        if commit is None:
            self._prefetch(sha)
            commit = self._commit_cache.get(sha)
        if commit is None:
            raise ReferenceResolutionError(f"Commit not found: {sha}")
        return commit

    def _prefetch(self, sha: str) -> None:
        """Read ``sha`` and a batch of its ancestors into the commit cache."""
        cmd = [
            "git",
            "log",
            "-z",
            "--encoding=UTF-8",
            f"--format={self.LOG_FORMAT}",
            f"--max-count={self.prefetch_batch_size}",
            sha,
            "--",
        ]
        try:
            result = run_git_command(cmd, cwd=self.repo_path, check=True, text=False)
        except subprocess.CalledProcessError as e:
            raise ReferenceResolutionError(f"Commit not found: {sha}") from e

        commits = self._parse_log_output(result.stdout.decode("utf-8", "replace"))
        logger.debug(f"Prefetched {len(commits)} commits starting at {sha}")
        for commit in commits:
            self._commit_cache[commit.sha] = commit

    def _parse_log_output(self, output: str) -> List[Commit]:
        """Parse ``git log -z`` output into Commit objects.

        Args:
            output: Raw output produced with LOG_FORMAT

        Returns:
            List of Commit objects in output order
        """
        fields = output.split("\x00")
        # Trailing terminator leaves one empty element behind
        if len(fields) % self.LOG_FIELD_COUNT == 1 and not fields[-1].strip():
            fields = fields[:-1]

        commits = []
        for i in range(0, len(fields) - self.LOG_FIELD_COUNT + 1, self.LOG_FIELD_COUNT):
            record = fields[i : i + self.LOG_FIELD_COUNT]
            sha = record[0].strip()
            if not sha:
                continue

            commits.append(
                Commit(
                    sha=sha,
                    parents=tuple(record[1].split()),
                    author=Signature(
                        name=record[2],
                        email=record[3],
                        when=datetime.fromisoformat(record[4]),
                    ),
                    committer=Signature(
                        name=record[5],
                        email=record[6],
                        when=datetime.fromisoformat(record[7]),
                    ),
                    message=record[8].rstrip("\n"),
                )
            )

        return commits

    # Content

    def _tree(self) -> Dict[str, str]:
        """Map of tracked path to blob id at the bound commit."""
        if self._tree_cache is not None:
            return self._tree_cache

        sha = self._require_bound()
        try:
            result = run_git_command(
                ["git", "ls-tree", "-r", "-z", "--full-tree", sha],
                cwd=self.repo_path,
                check=True,
                text=False,
            )
        except subprocess.CalledProcessError as e:
            raise ContentReadError(f"Cannot list tree of {sha}: {e.stderr!r}") from e

        tree: Dict[str, str] = {}
        for entry in result.stdout.split(b"\x00"):
            if not entry:
                continue
            meta, _, raw_path = entry.partition(b"\t")
            _mode, obj_type, oid = meta.split()
            # Submodules show up as "commit" entries and have no content here
            if obj_type != b"blob":
                continue
            # surrogateescape keeps non-UTF-8 names distinct, as os.fsdecode does
            tree[raw_path.decode("utf-8", "surrogateescape")] = oid.decode("ascii")

        self._tree_cache = tree
        return tree

    def list_files(self) -> List[str]:
        return list(self._tree())

    def _blob_id(self, path: str) -> str:
        oid = self._tree().get(path)
        if oid is None:
            raise ContentReadError(f"File not tracked at {self._resolved_sha}: {path}")
        return oid

    def read_file(self, path: str) -> bytes:
        oid = self._blob_id(path)
        try:
            result = run_git_command(
                ["git", "cat-file", "blob", oid],
                cwd=self.repo_path,
                check=True,
                text=False,
            )
        except subprocess.CalledProcessError as e:
            raise ContentReadError(f"Cannot read {path} ({oid})") from e
        return bytes(result.stdout)

    def iter_file_contents(self, paths: Iterable[str]) -> Iterator[Tuple[str, bytes]]:
        """Read the requested blobs through ``git cat-file --batch``.

        Blobs are grouped so that one batch holds at most ``batch_read_bytes``
        of content (or a single larger blob), which bounds memory use to one
        group rather than the whole snapshot.
        """
        wanted = [(path, self._blob_id(path)) for path in paths]
        if not wanted:
            return

        sizes = self._blob_sizes(oid for _, oid in wanted)
        group: List[Tuple[str, str]] = []
        group_bytes = 0
        for path, oid in wanted:
            size = sizes[oid]
            if group and group_bytes + size > self.batch_read_bytes:
                yield from self._read_batch(group)
                group, group_bytes = [], 0
            group.append((path, oid))
            group_bytes += size
        if group:
            yield from self._read_batch(group)

    def _batch_command(self, mode: str, oids: Iterable[str]) -> bytes:
        batch_input = b"".join(oid.encode("ascii") + b"\n" for oid in oids)
        try:
            result = run_git_command(
                ["git", "cat-file", mode],
                cwd=self.repo_path,
                check=True,
                text=False,
                input=batch_input,
            )
        except subprocess.CalledProcessError as e:
            raise ContentReadError(f"Batch read failed in {self.repo_path}") from e
        return bytes(result.stdout)

    def _blob_sizes(self, oids: Iterable[str]) -> Dict[str, int]:
        """Object sizes from ``git cat-file --batch-check``."""
        sizes: Dict[str, int] = {}
        for line in self._batch_command("--batch-check", oids).splitlines():
            fields = line.split()
            if len(fields) != 3:
                raise ContentReadError(f"Missing object in {self.repo_path}: {line!r}")
            sizes[fields[0].decode("ascii")] = int(fields[2])
        return sizes

    def _read_batch(self, wanted: List[Tuple[str, str]]) -> Iterator[Tuple[str, bytes]]:
        output = self._batch_command("--batch", (oid for _, oid in wanted))
        pos = 0
        for path, oid in wanted:
            header_end = output.find(b"\n", pos)
            if header_end < 0:
                raise ContentReadError(f"Truncated object stream at {path}")
            header = output[pos:header_end].split()
            if len(header) != 3:
                raise ContentReadError(f"Cannot read {path} ({oid})")

            size = int(header[2])
            start = header_end + 1
            content = output[start : start + size]
            if len(content) != size:
                raise ContentReadError(f"Truncated object stream at {path}")
            # Each object is followed by a newline
            pos = start + size + 1
            yield path, bytes(content)

    def default_branch(self) -> Optional[str]:
        return get_current_branch(self.repo_path)

    def release(self) -> None:
        self._commit_cache.clear()
        self._tree_cache = None
