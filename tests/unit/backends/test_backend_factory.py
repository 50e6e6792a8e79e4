"""Unit tests for BackendFactory."""

import subprocess
from pathlib import Path

import pytest

from repo_client.backends.backend_factory import BackendFactory
from repo_client.backends.directory_backend import DirectoryBackend
from repo_client.backends.git_backend import GitBackend
from repo_client.backends.remote_backend import RemoteGitBackend
from repo_client.config import ClientConfig
from repo_client.errors import BindingError
from repo_client.repos import LocalDirRepo, MemoryRepo, make_remote_repo


class TestBackendFactory:
    """Test backend selection per locator type."""

    def test_git_work_tree_gets_git_backend(self, single_commit_repo):
        backend = BackendFactory.create(LocalDirRepo(single_commit_repo.path))

        assert isinstance(backend, GitBackend)
        assert not isinstance(backend, RemoteGitBackend)
        assert backend.repo_path == single_commit_repo.path

    def test_bare_repository_gets_git_backend(self, single_commit_repo, tmp_path: Path):
        bare = tmp_path / "bare.git"
        source = str(single_commit_repo.path)
        subprocess.run(
            ["git", "clone", "--bare", "--quiet", source, str(bare)],
            check=True,
            capture_output=True,
        )

        assert isinstance(BackendFactory.create(LocalDirRepo(bare)), GitBackend)

    def test_plain_directory_gets_directory_backend(self, tmp_path: Path):
        plain = tmp_path / "plain"
        plain.mkdir()

        assert isinstance(BackendFactory.create(LocalDirRepo(plain)), DirectoryBackend)

    def test_subdirectory_of_work_tree_is_a_plain_directory(self, make_git_repo):
        repo = make_git_repo("outer")
        repo.commit("Add nested", {"nested/file.txt": "x"})

        backend = BackendFactory.create(LocalDirRepo(repo.path / "nested"))

        assert isinstance(backend, DirectoryBackend)

    def test_remote_backend_uses_clone_config(self):
        config = ClientConfig.model_validate(
            {
                "clone": {"timeout": 12.5, "filter_blobs": True},
                "walker": {"prefetch_batch_size": 50},
            }
        )

        backend = BackendFactory.create(
            make_remote_repo("https://github.com/ossf/scorecard"), config
        )

        assert isinstance(backend, RemoteGitBackend)
        assert backend.timeout == 12.5
        assert backend.filter_blobs is True
        assert backend.prefetch_batch_size == 50

    def test_git_backend_uses_search_read_budget(self, single_commit_repo):
        config = ClientConfig.model_validate({"search": {"batch_read_bytes": 4096}})

        backend = BackendFactory.create(LocalDirRepo(single_commit_repo.path), config)

        assert backend.batch_read_bytes == 4096

    def test_memory_locator_is_rejected(self):
        with pytest.raises(BindingError):
            BackendFactory.create(MemoryRepo("fixture"))
