"""Value types shared by the walker, the search engine and their callers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Tuple


@dataclass(frozen=True)
class Signature:
    """Author or committer identity with its timestamp."""

    name: str
    email: str
    when: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "email": self.email, "when": self.when.isoformat()}


@dataclass(frozen=True)
class Commit:
    """A single version-control commit.

    Instances are produced by the commit walker and never mutated. ``parents``
    holds parent shas in recorded order, first parent first.
    """

    sha: str
    message: str
    author: Signature
    committer: Signature
    parents: Tuple[str, ...] = ()

    @property
    def committed_date(self) -> datetime:
        return self.committer.when

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form consumed by finding renderers."""
        return {
            "sha": self.sha,
            "message": self.message,
            "author": self.author.to_dict(),
            "committer": self.committer.to_dict(),
            "committed_date": self.committed_date.isoformat(),
            "parents": list(self.parents),
        }


@dataclass(frozen=True)
class SearchRequest:
    """Plain substring search over tracked file content.

    ``filename`` restricts the scan to files with that base name and ``path``
    to files under that directory. Both are empty (no restriction) by default.
    """

    query: str
    filename: str = ""
    path: str = ""
    case_sensitive: bool = True


@dataclass(frozen=True)
class SearchResult:
    """A file, relative to the repository root, with at least one match."""

    path: str


@dataclass(frozen=True)
class SearchResponse:
    """Matching files sorted by path plus the total occurrence count."""

    results: Tuple[SearchResult, ...] = field(default_factory=tuple)
    hits: int = 0

    def __post_init__(self) -> None:
        if self.hits < 0:
            raise ValueError(f"hits must be non-negative, got {self.hits}")
        if (self.hits == 0) != (len(self.results) == 0):
            raise ValueError(
                f"hits ({self.hits}) and results ({len(self.results)}) disagree"
            )
        if len(self.results) > self.hits:
            raise ValueError(
                f"{len(self.results)} results cannot come from {self.hits} hits"
            )

    @classmethod
    def from_counts(cls, counts: Iterable[Tuple[str, int]]) -> "SearchResponse":
        """Build a response from (path, occurrence count) pairs.

        Files with no occurrence are dropped; results are sorted by path.
        """
        per_path: Dict[str, int] = {}
        for path, count in counts:
            if count > 0:
                per_path[path] = per_path.get(path, 0) + count

        results = tuple(SearchResult(path=p) for p in sorted(per_path))
        return cls(results=results, hits=sum(per_path.values()))

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(r.path for r in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [{"path": r.path} for r in self.results],
            "hits": self.hits,
        }
