"""Directory backend: a plain source tree without version control."""

import logging
import os
from pathlib import Path
from typing import List, Optional

import pathspec

from ..errors import (
    BindingError,
    ContentReadError,
    NotInitializedError,
    ReferenceResolutionError,
)
from ..models import Commit
from .base import RepositoryBackend

logger = logging.getLogger(__name__)

# The only reference a history-less tree can be bound to
SNAPSHOT_REFERENCES = ("", "HEAD")

ALWAYS_EXCLUDED_DIRS = (".git", ".hg", ".svn")


def _rebase_pattern(line: str, relative_dir: str) -> str:
    """Rewrite a pattern from ``relative_dir/.gitignore`` to be root-relative.

    A pattern with a slash before its last character is anchored to the
    directory of its .gitignore; any other pattern matches at every depth
    below that directory.
    """
    negate = line.startswith("!")
    body = line[1:] if negate else line
    prefix = "!" if negate else ""
    if "/" in body.rstrip("/"):
        return f"{prefix}{relative_dir}/{body.lstrip('/')}"
    return f"{prefix}{relative_dir}/**/{body}"


class DirectoryBackend(RepositoryBackend):
    """Backend over the files currently on disk in a directory.

    Every file is "tracked" except version-control metadata and paths
    matched by ``.gitignore`` files. Symbolic links are never followed: their
    content is the link target, as in a git tree. There is no history.
    """

    has_history = False

    def __init__(self, root: Path):
        self.root = Path(root)
        self._bound = False
        self._files: Optional[List[str]] = None
        self._file_set: frozenset = frozenset()

    @property
    def local_path(self) -> Optional[Path]:
        return self.root

    def bind(self, reference: str, commit_depth: Optional[int]) -> Optional[str]:
        if not self.root.is_dir():
            raise BindingError(f"Not a directory: {self.root}")
        if not os.access(self.root, os.R_OK | os.X_OK):
            raise BindingError(f"Directory is not readable: {self.root}")
        if (reference or "").strip() not in SNAPSHOT_REFERENCES:
            raise ReferenceResolutionError(
                f"{self.root} has no version control; cannot resolve {reference}"
            )

        self._bound = True
        logger.info(f"Bound directory {self.root}")
        return None

    def get_commit(self, sha: str) -> Commit:
        raise ReferenceResolutionError(f"{self.root} has no commit history")

    def _build_ignore_spec(self) -> pathspec.GitIgnoreSpec:
        """Collect patterns from the root and nested .gitignore files."""
        patterns: List[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in ALWAYS_EXCLUDED_DIRS]
            if ".gitignore" not in filenames:
                continue

            directory = Path(dirpath)
            relative_dir = directory.relative_to(self.root).as_posix()
            try:
                with open(directory / ".gitignore", "r", encoding="utf-8") as f:
                    lines = f.read().splitlines()
            except (OSError, UnicodeDecodeError) as e:
                raise ContentReadError(f"Cannot read {directory / '.gitignore'}") from e

            for line in lines:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if relative_dir != ".":
                    line = _rebase_pattern(line, relative_dir)
                patterns.append(line)

        return pathspec.GitIgnoreSpec.from_lines(patterns)

    def list_files(self) -> List[str]:
        if self._files is not None:
            return list(self._files)
        if not self._bound:
            raise NotInitializedError(f"Directory backend for {self.root} is not bound")

        ignore_spec = self._build_ignore_spec()
        files: List[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = [d for d in dirnames if d not in ALWAYS_EXCLUDED_DIRS]
            relative_dir = Path(dirpath).relative_to(self.root)
            # os.walk does not descend into linked directories; like git, list
            # the link itself as a file
            linked_dirs = [
                d for d in dirnames if os.path.islink(os.path.join(dirpath, d))
            ]
            for name in filenames + linked_dirs:
                rel_path = (relative_dir / name).as_posix()
                if not ignore_spec.match_file(rel_path):
                    files.append(rel_path)

        self._files = files
        self._file_set = frozenset(files)
        return list(files)

    def read_file(self, path: str) -> bytes:
        if self._files is None:
            self.list_files()
        if path not in self._file_set:
            raise ContentReadError(f"File not tracked in {self.root}: {path}")
        full_path = self.root / path
        try:
            # A symlink's content is its target path, as git stores it
            if full_path.is_symlink():
                return os.fsencode(os.readlink(full_path))
            return full_path.read_bytes()
        except OSError as e:
            raise ContentReadError(f"Cannot read {path}: {e}") from e

    def release(self) -> None:
        self._files = None
        self._file_set = frozenset()
        self._bound = False
