"""Unit tests for InMemoryBackend."""

from datetime import datetime, timedelta, timezone

import pytest

from repo_client.backends.memory_backend import InMemoryBackend
from repo_client.errors import (
    ContentReadError,
    NotInitializedError,
    ReferenceResolutionError,
)
from repo_client.models import Commit, Signature

EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _commit(sha: str, minutes: int, *parents: str) -> Commit:
    signature = Signature("Dev", "dev@example.com", EPOCH + timedelta(minutes=minutes))
    return Commit(
        sha=sha,
        message=f"commit {sha[:4]}",
        author=signature,
        committer=signature,
        parents=parents,
    )


ROOT = "1111" + "0" * 36
CHILD = "2222" + "0" * 36


class TestInMemoryBackendReferences:
    """Test reference resolution over a supplied history."""

    def test_head_defaults_to_first_commit(self):
        backend = InMemoryBackend(commits=[_commit(CHILD, 2, ROOT), _commit(ROOT, 1)])

        assert backend.bind("HEAD", None) == CHILD
        assert backend.has_history is True

    def test_refs_full_and_abbreviated_sha(self):
        backend = InMemoryBackend(
            commits=[_commit(CHILD, 2, ROOT), _commit(ROOT, 1)],
            refs={"v1": ROOT},
        )

        assert backend.bind("v1", None) == ROOT
        assert backend.bind(CHILD, None) == CHILD
        assert backend.bind("2222", None) == CHILD

    def test_ambiguous_prefix_is_rejected(self):
        twin = "1111" + "f" * 36
        backend = InMemoryBackend(commits=[_commit(ROOT, 1), _commit(twin, 2)])

        with pytest.raises(ReferenceResolutionError, match="Ambiguous"):
            backend.bind("1111", None)

    def test_unknown_reference(self):
        backend = InMemoryBackend(commits=[_commit(ROOT, 1)])

        with pytest.raises(ReferenceResolutionError):
            backend.bind("main", None)

    def test_without_commits_only_head_binds(self):
        backend = InMemoryBackend(files={"a": "x"})

        assert backend.bind("HEAD", None) is None
        assert backend.has_history is False
        with pytest.raises(ReferenceResolutionError):
            backend.bind("main", None)

    def test_get_commit(self):
        root = _commit(ROOT, 1)
        backend = InMemoryBackend(commits=[root])

        assert backend.get_commit(ROOT) is root
        with pytest.raises(ReferenceResolutionError):
            backend.get_commit(CHILD)


class TestInMemoryBackendFiles:
    """Test content access."""

    def test_text_is_stored_as_utf8(self):
        backend = InMemoryBackend(files={"a.txt": "héllo", "b.bin": b"\x00\x01"})
        backend.bind("HEAD", None)

        assert backend.read_file("a.txt") == "héllo".encode("utf-8")
        assert backend.read_file("b.bin") == b"\x00\x01"
        assert sorted(backend.list_files()) == ["a.txt", "b.bin"]

    def test_missing_file_raises_content_read_error(self):
        backend = InMemoryBackend(files={})
        backend.bind("HEAD", None)

        with pytest.raises(ContentReadError):
            backend.read_file("missing")

    def test_access_requires_bind(self):
        backend = InMemoryBackend(files={"a": "x"})

        with pytest.raises(NotInitializedError):
            backend.list_files()

        backend.bind("HEAD", None)
        backend.release()

        with pytest.raises(NotInitializedError):
            backend.read_file("a")

    def test_default_branch(self):
        assert InMemoryBackend(default_branch="trunk").default_branch() == "trunk"
        assert InMemoryBackend().default_branch() is None
