"""
Content search over the tracked files of a bound snapshot.

Scans file content directly (no index) for a plain substring and reports
which files matched and how many occurrences there were in total. Results
are sorted by path so responses do not depend on backend enumeration order.
"""

import logging
import posixpath
import time
from typing import List

from .backends.base import RepositoryBackend
from .errors import SearchError
from .models import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)


def count_occurrences(content: bytes, needle: bytes) -> int:
    """Count non-overlapping occurrences of ``needle`` in ``content``."""
    if not needle:
        raise ValueError("needle must not be empty")
    return content.count(needle)


def _normalize_dir(path: str) -> str:
    path = path.replace("\\", "/").strip("/")
    return "" if path in ("", ".") else path


class ContentSearchEngine:
    """Substring search over a backend's tracked file set."""

    def __init__(self, backend: RepositoryBackend):
        self.backend = backend

    def select_paths(self, request: SearchRequest) -> List[str]:
        """Tracked paths the request's filename and path filters admit."""
        directory = _normalize_dir(request.path)
        selected = []
        for path in self.backend.list_files():
            if request.filename and posixpath.basename(path) != request.filename:
                continue
            in_directory = path == directory or path.startswith(directory + "/")
            if directory and not in_directory:
                continue
            selected.append(path)
        return selected

    def search(self, request: SearchRequest) -> SearchResponse:
        """Search tracked content for ``request.query``.

        Args:
            request: Query plus optional filename/path filters

        Returns:
            SearchResponse with one result per matching file, sorted by path,
            and the total occurrence count

        Raises:
            SearchError: If the query is empty
            ContentReadError: If any selected file cannot be read; no partial
                response is returned
        """
        if not request.query:
            raise SearchError("Search query must not be empty")

        start_time = time.time()
        needle = request.query.encode("utf-8")
        # Case folding is ASCII only; other characters compare exactly
        if not request.case_sensitive:
            needle = needle.lower()

        paths = self.select_paths(request)
        counts = []
        for path, content in self.backend.iter_file_contents(paths):
            if not request.case_sensitive:
                content = content.lower()
            counts.append((path, count_occurrences(content, needle)))

        response = SearchResponse.from_counts(counts)
        elapsed_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Searched {len(paths)} files for {request.query!r}: "
            f"{response.hits} hits in {len(response.results)} files "
            f"({elapsed_ms:.1f} ms)"
        )
        return response
