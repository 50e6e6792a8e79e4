"""
Shared pytest fixtures for repo-client tests.

Builds real git repositories through the git CLI with fixed author and
committer dates, so history order is deterministic.
"""

import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

BASE_TIMESTAMP = 1700000000


class GitRepoBuilder:
    """Creates commits in a throwaway git repository."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True, exist_ok=True)
        self._clock = BASE_TIMESTAMP
        self.git("init", "--quiet")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.email", "author@example.com")
        self.git("config", "user.name", "Test Author")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args: str, env: Optional[Dict[str, str]] = None) -> str:
        full_env = os.environ.copy()
        full_env.update(env or {})
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            check=True,
            capture_output=True,
            text=True,
            env=full_env,
        )
        return result.stdout.strip()

    def _date_env(self, timestamp: Optional[int]) -> Dict[str, str]:
        if timestamp is None:
            self._clock += 60
            timestamp = self._clock
        date = f"{timestamp} +0000"
        return {"GIT_AUTHOR_DATE": date, "GIT_COMMITTER_DATE": date}

    def write(self, files: Dict[str, Union[str, bytes]]) -> None:
        for rel_path, content in files.items():
            target = self.path / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content)

    def commit(
        self,
        message: str,
        files: Optional[Dict[str, Union[str, bytes]]] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """Write files, commit everything and return the new sha."""
        self.write(files or {})
        self.git("add", "-A")
        self.git(
            "commit", "--quiet", "--allow-empty", "-m", message,
            env=self._date_env(timestamp),
        )
        return self.head()

    def merge(self, branch: str, message: str, timestamp: Optional[int] = None) -> str:
        self.git(
            "merge", "--no-ff", "--quiet", "-m", message, branch,
            env=self._date_env(timestamp),
        )
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def log(self) -> List[str]:
        return self.git("log", "--format=%H").splitlines()


@pytest.fixture
def make_git_repo(tmp_path: Path):
    """Factory fixture: make_git_repo("name") returns a GitRepoBuilder."""

    def _make(name: str = "repo") -> GitRepoBuilder:
        return GitRepoBuilder(tmp_path / name)

    return _make


@pytest.fixture
def single_commit_repo(make_git_repo) -> GitRepoBuilder:
    """One commit containing ``file`` = "Hello, World!"."""
    repo = make_git_repo("single")
    repo.commit("Initial commit", {"file": "Hello, World!"})
    return repo


@pytest.fixture
def search_repo(single_commit_repo: GitRepoBuilder) -> GitRepoBuilder:
    """``file`` and ``test.txt``, both "Hello, World!", in two commits."""
    single_commit_repo.commit("Add test.txt", {"test.txt": "Hello, World!"})
    return single_commit_repo


@pytest.fixture
def linear_repo(make_git_repo) -> GitRepoBuilder:
    """Five commits on a straight line."""
    repo = make_git_repo("linear")
    for i in range(5):
        repo.commit(f"Commit {i}", {"counter.txt": f"{i}\n"})
    return repo


@pytest.fixture
def diamond_repo(make_git_repo) -> GitRepoBuilder:
    """root -> (main, side) -> merge, with side older than main."""
    repo = make_git_repo("diamond")
    repo.root = repo.commit("Root", {"README.md": "root\n"})
    repo.git("checkout", "--quiet", "-b", "side")
    repo.side = repo.commit("Side work", {"side.txt": "side\n"})
    repo.git("checkout", "--quiet", "main")
    repo.main = repo.commit("Main work", {"main.txt": "main\n"})
    repo.merge_sha = repo.merge("side", "Merge side")
    return repo
