"""Repository locators.

A locator only says *where* a repository lives. Format validation happens
here; resolving the locator into a readable snapshot is the backend's job.
"""

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse

from .errors import BindingError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("https", "http", "ssh", "git", "file")

# user@host:path/to/repo(.git)
SCP_LIKE_PATTERN = re.compile(r"^[\w.\-]+@[\w.\-]+:(?!//)[^\s]+$")


class Repo(ABC):
    """Where a repository lives: a local directory or a remote URI."""

    @property
    @abstractmethod
    def uri(self) -> str:
        pass

    @property
    @abstractmethod
    def is_local(self) -> bool:
        pass

    def __str__(self) -> str:
        return self.uri


class LocalDirRepo(Repo):
    """A repository (or plain source tree) in a local directory."""

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def uri(self) -> str:
        return f"file://{self.path}"

    @property
    def is_local(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"LocalDirRepo({str(self.path)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocalDirRepo) and other.path == self.path

    def __hash__(self) -> int:
        return hash(("local", self.path))


class RemoteRepo(Repo):
    """A repository reachable by ``git clone``."""

    def __init__(self, url: str):
        self.url = url

    @property
    def uri(self) -> str:
        return self.url

    @property
    def is_local(self) -> bool:
        return False

    @property
    def host(self) -> str:
        if SCP_LIKE_PATTERN.match(self.url):
            return self.url.split("@", 1)[1].split(":", 1)[0]
        return urlparse(self.url).hostname or ""

    def __repr__(self) -> str:
        return f"RemoteRepo({self.url!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, RemoteRepo) and other.url == self.url

    def __hash__(self) -> int:
        return hash(("remote", self.url))


class MemoryRepo(Repo):
    """A named snapshot that exists only in memory.

    Has no storage of its own; bind it with an InMemoryBackend.
    """

    def __init__(self, name: str = "memory"):
        self.name = name

    @property
    def uri(self) -> str:
        return f"memory://{self.name}"

    @property
    def is_local(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"MemoryRepo({self.name!r})"


def _path_from_locator(locator: Union[str, Path]) -> Path:
    if isinstance(locator, str) and locator.startswith("file://"):
        return Path(unquote(urlparse(locator).path))
    return Path(locator)


def make_local_dir_repo(locator: Union[str, Path]) -> LocalDirRepo:
    """Build a locator for a local directory.

    Args:
        locator: Filesystem path or ``file://`` URI

    Raises:
        BindingError: If the path is empty, missing or not a directory
    """
    if isinstance(locator, str) and not locator.strip():
        raise BindingError("Empty repository locator")

    path = _path_from_locator(locator).expanduser()
    if not path.exists():
        raise BindingError(f"Repository path does not exist: {path}")
    if not path.is_dir():
        raise BindingError(f"Repository path is not a directory: {path}")

    return LocalDirRepo(path.resolve())


def make_remote_repo(url: str) -> RemoteRepo:
    """Build a locator for a clone-able remote repository.

    Raises:
        BindingError: If the URL is not in a form ``git clone`` accepts
    """
    url = url.strip() if url else ""
    if not url:
        raise BindingError("Empty repository locator")

    if SCP_LIKE_PATTERN.match(url):
        return RemoteRepo(url)

    parsed = urlparse(url)
    if parsed.scheme not in REMOTE_SCHEMES:
        raise BindingError(f"Unsupported repository URL scheme: {url}")
    if parsed.scheme == "file":
        if not parsed.path:
            raise BindingError(f"Missing path in repository URL: {url}")
    elif not parsed.hostname or not parsed.path.strip("/"):
        raise BindingError(f"Missing host or path in repository URL: {url}")

    return RemoteRepo(url)


def make_repo(locator: Union[str, Path, Repo]) -> Repo:
    """Pick the locator type for a path, URI or existing Repo.

    ``file://`` URIs and plain paths are local; network URLs and scp-like
    ``user@host:path`` strings are remote.
    """
    if isinstance(locator, Repo):
        return locator
    if isinstance(locator, Path):
        return make_local_dir_repo(locator)

    text = locator.strip() if locator else ""
    if text.startswith("memory://"):
        return MemoryRepo(text[len("memory://") :] or "memory")
    if text.startswith("file://"):
        return make_local_dir_repo(text)
    if "://" in text or SCP_LIKE_PATTERN.match(text):
        return make_remote_repo(text)
    return make_local_dir_repo(text)
