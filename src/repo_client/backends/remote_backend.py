"""Remote backend: clones a remote repository into a temporary directory.

Once the clone exists every operation is served by GitBackend, so search
and traversal behave exactly as they do for a local repository. The history
bound maps directly onto the clone depth.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from ..errors import BindingError, ReferenceResolutionError
from ..repos import RemoteRepo
from ..utils.git_runner import run_git_command
from .git_backend import GitBackend

logger = logging.getLogger(__name__)


class RemoteGitBackend(GitBackend):
    """Backend over a temporary clone of a remote repository."""

    def __init__(
        self,
        repo: RemoteRepo,
        timeout: Optional[float] = None,
        filter_blobs: bool = False,
        prefetch_batch_size: int = 500,
        batch_read_bytes: int = GitBackend.DEFAULT_BATCH_READ_BYTES,
    ):
        """Initialize RemoteGitBackend.

        Args:
            repo: Remote locator to clone
            timeout: Seconds allowed for each network operation (None: no limit)
            filter_blobs: Clone with ``--filter=blob:none`` so blobs are only
                fetched when search reads them
            prefetch_batch_size: See GitBackend
            batch_read_bytes: See GitBackend
        """
        super().__init__(
            Path("."),
            prefetch_batch_size=prefetch_batch_size,
            batch_read_bytes=batch_read_bytes,
        )
        self.repo = repo
        self.timeout = timeout
        self.filter_blobs = filter_blobs
        self._temp_dir: Optional[Path] = None

    def bind(self, reference: str, commit_depth: Optional[int]) -> Optional[str]:
        if self._temp_dir is not None:
            raise BindingError(f"Backend for {self.repo} is already bound")

        self._temp_dir = Path(tempfile.mkdtemp(prefix="repo-client-"))
        self.repo_path = self._temp_dir / "repo"
        try:
            self._clone(commit_depth)
            return self._bind_reference(reference, commit_depth)
        except BaseException:
            self.release()
            raise

    def _clone(self, commit_depth: Optional[int]) -> None:
        cmd = ["git", "clone", "--no-checkout", "--quiet"]
        if commit_depth is not None and commit_depth >= 1:
            cmd.append(f"--depth={commit_depth}")
        if self.filter_blobs:
            cmd.append("--filter=blob:none")
        cmd.extend(["--", self.repo.uri, str(self.repo_path)])

        logger.info(f"Cloning {self.repo} (depth={commit_depth or 'full'})")
        self._run_network(cmd, cwd=self._temp_dir, action="clone")

    def _bind_reference(self, reference: str, commit_depth: Optional[int]) -> str:
        try:
            return super().bind(reference, commit_depth)
        except ReferenceResolutionError:
            ref = (reference or "").strip()
            if not ref or ref == "HEAD" or ref.startswith("-"):
                raise

        # Branches other than the default one and bare shas are not part of
        # a single-branch clone; fetch the reference explicitly.
        cmd = ["git", "fetch", "--quiet"]
        if commit_depth is not None and commit_depth >= 1:
            cmd.append(f"--depth={commit_depth}")
        cmd.extend(["origin", ref])
        try:
            self._run_network(cmd, cwd=self.repo_path, action="fetch")
        except BindingError as e:
            raise ReferenceResolutionError(
                f"Reference not found in {self.repo}: {reference}"
            ) from e

        self._resolved_sha = self.resolve_reference("FETCH_HEAD")
        logger.info(f"Bound {self.repo} at {reference} ({self._resolved_sha})")
        return self._resolved_sha

    def _run_network(self, cmd: List[str], cwd: Path, action: str) -> None:
        try:
            run_git_command(cmd, cwd=cwd, check=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise BindingError(
                f"git {action} of {self.repo} timed out after {self.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            raise BindingError(
                f"git {action} of {self.repo} failed: {(e.stderr or '').strip()}"
            ) from e
        except FileNotFoundError as e:
            raise BindingError("git executable not found") from e

    @property
    def clone_dir(self) -> Optional[Path]:
        return self._temp_dir

    def release(self) -> None:
        super().release()
        temp_dir, self._temp_dir = self._temp_dir, None
        if temp_dir is None:
            return
        try:
            shutil.rmtree(temp_dir)
            logger.debug(f"Removed clone directory {temp_dir}")
        except OSError as e:
            logger.warning(f"Failed to remove clone directory {temp_dir}: {e}")
