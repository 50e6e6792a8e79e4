"""
repo-client - repository access for supply-chain security analysis.

Binds to a repository at a reference with a bounded history horizon, lists
the commits within that horizon and searches tracked file content, with the
same semantics over local git repositories, remote clones, plain
directories and in-memory snapshots.
"""

from .client import RepoClient, RepoHandle
from .errors import (
    BindingError,
    ContentReadError,
    NotInitializedError,
    ReferenceResolutionError,
    RepoClientError,
    SearchError,
)
from .models import Commit, SearchRequest, SearchResponse, SearchResult, Signature

__version__ = "0.1.0"

__all__ = [
    "RepoClient",
    "RepoHandle",
    "Commit",
    "Signature",
    "SearchRequest",
    "SearchResult",
    "SearchResponse",
    "RepoClientError",
    "BindingError",
    "ReferenceResolutionError",
    "NotInitializedError",
    "SearchError",
    "ContentReadError",
]
