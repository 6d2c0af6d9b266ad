"""
Name resolution: from a user-supplied document name to a repository path.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """A stored file that matches a searched name."""
    path: PurePosixPath
    scoped: bool = False  # found inside the directory the name started with


@dataclass(frozen=True)
class Resolution:
    """
    Result of resolving a name.

    `path` is the exact storage path when nothing matched, otherwise the first
    ranked candidate. All matches stay in `candidates` so callers can offer a
    choice when `ambiguous` is set.
    """
    name: str
    path: Optional[PurePosixPath]
    exists: bool
    candidates: Tuple[Candidate, ...] = ()
    directory: bool = False

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) > 1


class NameResolver:
    """
    Locate documents under a repository root.

    Lookups only touch the filesystem; nothing is created or modified.
    """

    def __init__(self, root: Path, base: str = "", search: bool = True):
        """
        Args:
            root: Repository working tree
            base: Subdirectory all names live under ("" for pages, "files" for attachments)
            search: Fall back to searching the tree when the exact path is missing
        """
        self.root = Path(root)
        self.base = PurePosixPath(base) if base else PurePosixPath()
        self.search = search

    @staticmethod
    def normalize(raw_name: str) -> PurePosixPath:
        """
        Turn a raw name into a relative path that cannot leave the root.

        Backslashes count as separators; empty, "." and ".." segments are dropped.
        """
        if not raw_name:
            return PurePosixPath()
        segments = raw_name.strip().replace('\\', '/').split('/')
        parts = [s.strip() for s in segments if s.strip() not in ('', '.', '..')]
        return PurePosixPath(*parts)

    def storage_path(self, raw_name: str) -> PurePosixPath:
        """Exact repository-relative path for a name, without checking it exists."""
        return self.base / self.normalize(raw_name)

    def _on_disk(self, path: PurePosixPath) -> Path:
        return self.root.joinpath(*path.parts)

    def is_directory(self, raw_name: str) -> bool:
        relative = self.normalize(raw_name)
        return bool(relative.parts) and self._on_disk(self.base / relative).is_dir()

    def resolve(self, raw_name: str) -> Resolution:
        """
        Resolve a name to a stored file.

        Tries the exact path first. When it is missing and searching is
        enabled, a name whose first segment is a directory is looked up by its
        last segment inside that directory, then anywhere under the base.

        Args:
            raw_name: Name as received from the caller

        Returns:
            Resolution; `exists` is False when nothing matched
        """
        relative = self.normalize(raw_name)
        if not relative.parts:
            return Resolution(name=raw_name, path=None, exists=False)

        exact = self.base / relative
        on_disk = self._on_disk(exact)
        if on_disk.is_file():
            return Resolution(
                name=raw_name,
                path=exact,
                exists=True,
                candidates=(Candidate(exact),)
            )

        directory = on_disk.is_dir()
        if not self.search:
            return Resolution(name=raw_name, path=exact, exists=False, directory=directory)

        key = relative.name
        candidates: List[Candidate] = []
        first = self.base / relative.parts[0]
        if self._on_disk(first).is_dir():
            candidates.extend(self.find_candidates(key, within=first, scoped=True))

        seen = {c.path for c in candidates}
        candidates.extend(c for c in self.find_candidates(key) if c.path not in seen)

        if not candidates:
            return Resolution(name=raw_name, path=exact, exists=False, directory=directory)

        if len(candidates) > 1:
            logger.info(
                f"'{raw_name}' matches {len(candidates)} files, using {candidates[0].path}"
            )
        return Resolution(
            name=raw_name,
            path=candidates[0].path,
            exists=True,
            candidates=tuple(candidates),
            directory=directory
        )

    def find_candidates(self, filename: str, within: Optional[PurePosixPath] = None,
                        scoped: bool = False) -> List[Candidate]:
        """
        Find files named `filename` below `within` (the base by default).

        Hidden directories such as .git are skipped. Results are ranked by
        depth, then alphabetically.
        """
        start = within if within is not None else self.base
        top = self._on_disk(start)
        if not filename or not top.is_dir():
            return []

        found = []
        for dirpath, dirnames, filenames in os.walk(top):
            dirnames[:] = [d for d in dirnames if not d.startswith('.')]
            if filename in filenames:
                relative = Path(dirpath, filename).relative_to(self.root)
                found.append(PurePosixPath(relative.as_posix()))

        found.sort(key=lambda p: (len(p.parts), str(p)))
        return [Candidate(path, scoped=scoped) for path in found]
