"""
Git backend for the wiki document store.

Wraps a GitPython repository and exposes the three read operations the store
needs (show, log, diff) over a repository-relative path. Everything here is
blocking; RevisionStore moves the calls off the event loop.
"""
import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import List, Optional, Union

from git import Repo, GitCommandError
from git.exc import InvalidGitRepositoryError, NoSuchPathError

from .exceptions import (
    BackendFailure,
    CaseMismatchException,
    NotFoundException,
    WikiStoreException,
)
from .models import HEAD, HistoryEntry, RevisionRange, validate_revision
from .namer import PAGE_EXTENSION

logger = logging.getLogger(__name__)

# Field and record layout for `git log --pretty=format:`
_FIELD_SEP = "\x1f"
_LOG_FORMAT = _FIELD_SEP.join(["%h", "%H", "%an", "%ae", "%aI", "%ar", "%at", "%s"])

# stderr fragments git prints for missing paths and revisions
_CASE_MISMATCH_RE = re.compile(r"exists on disk, but not in '")
_NOT_FOUND_RE = re.compile(
    r"does not exist|unknown revision|bad revision|invalid object name|"
    r"not a valid object name|bad object|ambiguous argument",
    re.IGNORECASE,
)

# Stored text is UTF-8; anything else is shown with replacement characters
_TEXT_ENCODING = "utf-8"


def _decode(raw: bytes) -> str:
    return raw.decode(_TEXT_ENCODING, errors="replace")

PathLike = Union[str, PurePosixPath]


class VersionControlBackend(ABC):
    """
    Read-only interface to the version-control system.

    All paths are relative to `root` and use forward slashes.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Working tree root on disk"""
        pass

    @abstractmethod
    def show(self, path: PathLike, revision: str = HEAD, binary: bool = False,
             timeout: Optional[float] = None) -> Union[str, bytes]:
        """Content of `path` at `revision`"""
        pass

    @abstractmethod
    def hashes(self, path: PathLike, revision: str = HEAD, count: int = 2,
               timeout: Optional[float] = None) -> List[str]:
        """Abbreviated hashes of the latest `count` commits touching `path`"""
        pass

    @abstractmethod
    def log(self, path: PathLike, revision: str = HEAD, limit: Optional[int] = None,
            timeout: Optional[float] = None) -> List[HistoryEntry]:
        """Commits touching `path`, newest first"""
        pass

    @abstractmethod
    def diff(self, path: PathLike, revisions: RevisionRange,
             timeout: Optional[float] = None) -> str:
        """Raw unified diff of `path` between the two revisions"""
        pass

    @abstractmethod
    def list_documents(self, timeout: Optional[float] = None) -> List[str]:
        """Top-level page files tracked at HEAD"""
        pass


class GitBackend(VersionControlBackend):
    """
    GitPython implementation of VersionControlBackend.

    One instance is shared by the whole process; it holds no per-request state.
    """

    def __init__(self, repo_path: str, timeout: Optional[float] = None):
        """
        Open the wiki repository.

        Args:
            repo_path: Path to the wiki git repository
            timeout: Default seconds before a git subprocess is killed

        Raises:
            WikiStoreException: If the path is not a readable git repository
        """
        self._root = Path(repo_path)
        self.timeout = timeout

        try:
            self.repo = Repo(self._root)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise WikiStoreException(f"Failed to open git repository at {repo_path}: {e}")

    @property
    def root(self) -> Path:
        return self._root

    def _git(self, command: str, *args, timeout: Optional[float] = None, **kwargs):
        """Run a git command, translating GitPython errors."""
        kill_after = timeout if timeout is not None else self.timeout
        logger.debug(f"git {command} {' '.join(str(a) for a in args)}")
        try:
            return getattr(self.repo.git, command)(*args, kill_after_timeout=kill_after, **kwargs)
        except GitCommandError as e:
            raise self._translate(e)

    @staticmethod
    def _translate(error: GitCommandError) -> WikiStoreException:
        """Map a failed git invocation to the store's exception taxonomy."""
        stderr = str(error.stderr or "").strip()
        message = stderr or str(error)
        if _CASE_MISMATCH_RE.search(message):
            return CaseMismatchException(message)
        if _NOT_FOUND_RE.search(message):
            return NotFoundException(message)
        return BackendFailure(f"git failed: {message}")

    def show(self, path: PathLike, revision: str = HEAD, binary: bool = False,
             timeout: Optional[float] = None) -> Union[str, bytes]:
        validate_revision(revision)
        raw = self._git(
            "show", f"{revision}:{PurePosixPath(path).as_posix()}",
            timeout=timeout,
            stdout_as_string=False,
            strip_newline_in_stdout=False,
        )
        return raw if binary else _decode(raw)

    def hashes(self, path: PathLike, revision: str = HEAD, count: int = 2,
               timeout: Optional[float] = None) -> List[str]:
        validate_revision(revision)
        output = self._git(
            "log", f"-{count}", "--no-notes", "--pretty=format:%h",
            revision, "--", PurePosixPath(path).as_posix(),
            timeout=timeout,
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def log(self, path: PathLike, revision: str = HEAD, limit: Optional[int] = None,
            timeout: Optional[float] = None) -> List[HistoryEntry]:
        validate_revision(revision)
        args = ["--no-notes", f"--pretty=format:{_LOG_FORMAT}"]
        if limit:
            args.insert(0, f"-{limit}")
        output = self._git(
            "log", *args, revision, "--", PurePosixPath(path).as_posix(),
            timeout=timeout,
        )
        return [self._parse_log_record(line) for line in output.splitlines() if line.strip()]

    @staticmethod
    def _parse_log_record(record: str) -> HistoryEntry:
        """
        Parse one `git log` record in _LOG_FORMAT.

        Raises:
            BackendFailure: If the record does not have the expected fields
        """
        fields = record.split(_FIELD_SEP)
        if len(fields) != 8:
            raise BackendFailure(f"Unexpected git log record: {record!r}")
        short, full, author, email, date, relative, timestamp, subject = fields
        try:
            return HistoryEntry(
                hash=short,
                full_hash=full,
                author=author,
                email=email,
                date=datetime.fromisoformat(date),
                relative_date=relative,
                timestamp=int(timestamp),
                subject=subject,
            )
        except ValueError as e:
            raise BackendFailure(f"Unexpected git log record {record!r}: {e}")

    def diff(self, path: PathLike, revisions: RevisionRange,
             timeout: Optional[float] = None) -> str:
        revisions = RevisionRange.parse(revisions)
        raw = self._git(
            "diff", "--no-color", "-b", str(revisions),
            "--", PurePosixPath(path).as_posix(),
            timeout=timeout,
            stdout_as_string=False,
        )
        return _decode(raw)

    def list_documents(self, timeout: Optional[float] = None) -> List[str]:
        try:
            # -z prints names unquoted, so non-ASCII names keep their ".md"
            output = self._git("ls_tree", "-z", "--name-only", HEAD, timeout=timeout)
        except NotFoundException:
            # Repository without commits
            return []
        return sorted(name for name in output.split("\0") if name.endswith(PAGE_EXTENSION))
