"""
Async access to the revisions of one stored path.

Git calls are blocking, so each one runs in the default executor and is
bounded by a timeout; the event loop stays free for other requests.
"""
import asyncio
import logging
from pathlib import PurePosixPath
from typing import Callable, List, Optional, TypeVar, Union

from .exceptions import BackendFailure, NotFoundException
from .git_backend import VersionControlBackend
from .models import HEAD, Fetched, HistoryEntry, RevisionRange, validate_revision

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_blocking(call: Callable[[], T], timeout: Optional[float], what: str) -> T:
    """
    Run a blocking backend call in the default executor.

    Raises:
        BackendFailure: If the call does not finish within `timeout` seconds
    """
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, call), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"{what} timed out after {timeout}s")
        raise BackendFailure(f"{what} timed out after {timeout}s")


class RevisionStore:
    """
    Content, history and diffs for a single repository path.

    Created per request; the backend it wraps is shared.
    """

    def __init__(self, backend: VersionControlBackend, path: Union[str, PurePosixPath],
                 timeout: Optional[float] = None):
        """
        Args:
            backend: Version-control backend to read from
            path: Repository-relative path of the stored object
            timeout: Seconds to wait for each backend call (None waits forever)
        """
        self.backend = backend
        self.path = PurePosixPath(path)
        self.timeout = timeout

    async def _run(self, call: Callable[[], T], what: str) -> T:
        return await run_blocking(call, self.timeout, f"git {what} for '{self.path}'")

    async def fetch_current(self, revision: str = HEAD, binary: bool = False) -> Fetched:
        """
        Get content at a revision plus the latest one or two hashes.

        Args:
            revision: Revision to read, HEAD by default
            binary: Return content as bytes instead of text

        Returns:
            Fetched with content, hashes (latest first) and latest commit metadata

        Raises:
            NotFoundException: If the path does not exist at that revision
            CaseMismatchException: If git only knows the path under another case
            BackendFailure: If git fails or times out
        """
        validate_revision(revision)

        content = await self._run(
            lambda: self.backend.show(self.path, revision, binary=binary, timeout=self.timeout),
            "show"
        )
        hashes = await self._run(
            lambda: self.backend.hashes(self.path, revision, count=2, timeout=self.timeout),
            "log"
        )
        metadata = None
        if hashes:
            entries = await self._run(
                lambda: self.backend.log(self.path, revision, limit=1, timeout=self.timeout),
                "log"
            )
            metadata = entries[0] if entries else None

        return Fetched(content=content, hashes=tuple(hashes[:2]), metadata=metadata)

    async def fetch_history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """
        Get the commits touching the path, newest first.

        Returns an empty list for an untracked path.

        Raises:
            BackendFailure: If git fails or times out
        """
        return await self._run(
            lambda: self.backend.log(self.path, HEAD, limit=limit, timeout=self.timeout),
            "log"
        )

    async def fetch_diff(self, revisions: Union[str, RevisionRange]) -> str:
        """
        Get the raw unified diff of the path between two revisions.

        Args:
            revisions: "old..new" or a RevisionRange

        Raises:
            InvalidRevisionRange: If the range cannot be parsed
            BackendFailure: If git fails or times out
        """
        revisions = RevisionRange.parse(revisions)
        try:
            return await self._run(
                lambda: self.backend.diff(self.path, revisions, timeout=self.timeout),
                "diff"
            )
        except NotFoundException as e:
            raise BackendFailure(f"Cannot read revision range '{revisions}': {e}")
