"""
Value types shared by the document store.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from .exceptions import ErrorKind, InvalidRevisionRange

# Symbolic marker for the current revision
HEAD = "HEAD"

RANGE_SEPARATOR = ".."

_REVISION_RE = re.compile(r'^[\w./~^@{}-]+$')


def validate_revision(revision: str) -> str:
    """
    Check that a revision is safe to hand to git.

    Raises:
        InvalidRevisionRange: If the revision is empty, looks like an option
            or contains characters git revisions never need
    """
    if not revision or revision.startswith('-') or not _REVISION_RE.match(revision):
        raise InvalidRevisionRange(f"Invalid revision '{revision}'")
    if RANGE_SEPARATOR in revision:
        raise InvalidRevisionRange(f"Expected a single revision, got '{revision}'")
    return revision


@dataclass(frozen=True)
class RevisionRange:
    """An "old..new" comparison: old is the baseline, new the target."""
    old: str
    new: str

    @classmethod
    def parse(cls, value: Union[str, 'RevisionRange']) -> 'RevisionRange':
        """
        Parse "old..new".

        Raises:
            InvalidRevisionRange: If either side is missing or unsafe
        """
        if isinstance(value, RevisionRange):
            return value
        if not value or RANGE_SEPARATOR not in value:
            raise InvalidRevisionRange(f"Invalid revision range '{value}'")
        old, new = value.split(RANGE_SEPARATOR, 1)
        # "a...b" leaves a leading dot on the right side
        if new.startswith('.'):
            raise InvalidRevisionRange(f"Invalid revision range '{value}'")
        return cls(validate_revision(old), validate_revision(new))

    def as_list(self) -> List[str]:
        return [self.old, self.new]

    def __str__(self) -> str:
        return f"{self.old}{RANGE_SEPARATOR}{self.new}"


@dataclass(frozen=True)
class HistoryEntry:
    """One commit touching a document."""
    hash: str
    full_hash: str
    author: str
    email: str
    date: datetime
    relative_date: str
    timestamp: int
    subject: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "full_hash": self.full_hash,
            "author": self.author,
            "email": self.email,
            "date": self.date.isoformat(),
            "relative_date": self.relative_date,
            "timestamp": self.timestamp,
            "subject": self.subject,
        }


@dataclass(frozen=True)
class Fetched:
    """Successful fetch: content plus the latest one or two hashes."""
    content: Union[str, bytes]
    hashes: Tuple[str, ...] = ()
    metadata: Optional[HistoryEntry] = None
    ok = True
    error = None

    def __post_init__(self):
        if len(self.hashes) > 2:
            raise ValueError(f"At most two hashes expected, got {len(self.hashes)}")


@dataclass(frozen=True)
class FetchFailed:
    """Failed fetch: why, and what kind of failure."""
    reason: str
    kind: ErrorKind = ErrorKind.NOT_FOUND
    ok = False

    @property
    def error(self) -> str:
        return self.reason


DocumentState = Union[Fetched, FetchFailed]

