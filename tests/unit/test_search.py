"""Unit tests for ContentSearchEngine."""

import pytest

from repo_client.backends.git_backend import GitBackend
from repo_client.backends.memory_backend import InMemoryBackend
from repo_client.errors import ContentReadError, SearchError
from repo_client.models import SearchRequest
from repo_client.search import ContentSearchEngine, count_occurrences


class FailingBackend(InMemoryBackend):
    """In-memory backend whose reads fail for one path."""

    def __init__(self, files, broken: str):
        super().__init__(files=files)
        self.broken = broken

    def read_file(self, path: str) -> bytes:
        if path == self.broken:
            raise ContentReadError(f"Permission denied: {path}")
        return super().read_file(path)


def _engine(files) -> ContentSearchEngine:
    backend = InMemoryBackend(files=files)
    backend.bind("HEAD", None)
    return ContentSearchEngine(backend)


class TestCountOccurrences:
    def test_non_overlapping(self):
        assert count_occurrences(b"aaaa", b"aa") == 2
        assert count_occurrences(b"aaa", b"aa") == 1

    def test_no_match(self):
        assert count_occurrences(b"hello", b"world") == 0

    def test_empty_needle_is_rejected(self):
        with pytest.raises(ValueError):
            count_occurrences(b"hello", b"")


class TestContentSearchEngine:
    """Test search semantics over in-memory snapshots."""

    def test_results_sorted_regardless_of_backend_order(self):
        engine = _engine({"z.txt": "needle", "a/b.txt": "needle", "m.txt": "needle"})

        response = engine.search(SearchRequest(query="needle"))

        assert response.paths == ("a/b.txt", "m.txt", "z.txt")
        assert response.hits == 3

    def test_hits_count_every_occurrence(self):
        engine = _engine({"one": "x x x", "two": "x", "none": "y"})

        response = engine.search(SearchRequest(query="x"))

        assert response.paths == ("one", "two")
        assert response.hits == 4

    def test_no_match_returns_empty_response(self):
        response = _engine({"a": "hello"}).search(SearchRequest(query="absent"))

        assert response.results == ()
        assert response.hits == 0

    def test_filename_filter_matches_basename(self):
        engine = _engine({"file": "Hello", "sub/file": "Hello", "other": "Hello"})

        response = engine.search(SearchRequest(query="Hello", filename="file"))

        assert response.paths == ("file", "sub/file")

    def test_path_filter_is_a_directory_prefix(self):
        engine = _engine(
            {"src/a.py": "hit", "src/pkg/b.py": "hit", "srcx/c.py": "hit", "d": "hit"}
        )

        response = engine.search(SearchRequest(query="hit", path="src/"))

        assert response.paths == ("src/a.py", "src/pkg/b.py")

    def test_filters_combine(self):
        engine = _engine({"src/file": "hit", "lib/file": "hit", "src/other": "hit"})

        request = SearchRequest(query="hit", filename="file", path="src")
        response = engine.search(request)

        assert response.paths == ("src/file",)

    def test_case_sensitive_by_default(self):
        engine = _engine({"a": "Hello hello HELLO"})

        assert engine.search(SearchRequest(query="hello")).hits == 1

    def test_case_insensitive(self):
        engine = _engine({"a": "Hello hello HELLO"})

        request = SearchRequest(query="hello", case_sensitive=False)

        assert engine.search(request).hits == 3

    def test_binary_content_is_searched_as_bytes(self):
        engine = _engine({"blob.bin": b"\x00\xffmarker\x00marker"})

        assert engine.search(SearchRequest(query="marker")).hits == 2

    def test_empty_query_raises_search_error(self):
        with pytest.raises(SearchError):
            _engine({"a": "x"}).search(SearchRequest(query=""))

    def test_unreadable_file_fails_the_whole_search(self):
        backend = FailingBackend({"a": "hit", "b": "hit"}, broken="b")
        backend.bind("HEAD", None)

        with pytest.raises(ContentReadError):
            ContentSearchEngine(backend).search(SearchRequest(query="hit"))

    def test_unreadable_file_outside_filter_is_not_read(self):
        backend = FailingBackend({"a": "hit", "b": "hit"}, broken="b")
        backend.bind("HEAD", None)

        response = ContentSearchEngine(backend).search(
            SearchRequest(query="hit", filename="a")
        )

        assert response.paths == ("a",)

    def test_search_is_repeatable(self):
        engine = _engine({"a": "hit", "b": "hit hit"})
        request = SearchRequest(query="hit")

        assert engine.search(request) == engine.search(request)


class TestContentSearchEngineGit:
    """Search over a committed git snapshot."""

    def test_hello_world_in_two_files(self, search_repo):
        backend = GitBackend(search_repo.path)
        backend.bind("HEAD", None)

        response = ContentSearchEngine(backend).search(SearchRequest(query="Hello"))

        assert response.to_dict() == {
            "results": [{"path": "file"}, {"path": "test.txt"}],
            "hits": 2,
        }

    def test_uncommitted_edits_are_ignored(self, search_repo):
        search_repo.write({"file": "Hello Hello Hello", "new.txt": "Hello"})
        backend = GitBackend(search_repo.path)
        backend.bind("HEAD", None)

        response = ContentSearchEngine(backend).search(SearchRequest(query="Hello"))

        assert response.hits == 2
