"""Error taxonomy for the repository client.

Every failure surfaced by the client is one of these, so callers can decide
whether to retry, skip the repository or abort the run.
"""


class RepoClientError(Exception):
    """Base class for all repository client errors."""


class BindingError(RepoClientError):
    """Locator does not resolve to a readable repository."""


class ReferenceResolutionError(RepoClientError):
    """Reference does not resolve to a commit in the bound repository."""


class NotInitializedError(RepoClientError):
    """Operation invoked before init_repo() or after close()."""


class SearchError(RepoClientError):
    """Invalid search input, e.g. an empty query."""


class ContentReadError(RepoClientError, OSError):
    """Tracked content could not be read during search or checkout."""
