"""
Exceptions raised by the wiki document store.

Document-level failures are normally captured into a document's fetch state;
only WikiStoreException itself escapes for process-level problems such as an
unreadable repository root.
"""
from enum import Enum


class ErrorKind(Enum):
    """Why a document could not be fetched."""
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    BACKEND_FAILURE = "backend_failure"
    CASE_MISMATCH = "case_mismatch"


class WikiStoreException(Exception):
    """Base exception for wiki store operations"""
    kind = ErrorKind.BACKEND_FAILURE


class NotFoundException(WikiStoreException):
    """Raised when a name resolves to nothing in the requested revision"""
    kind = ErrorKind.NOT_FOUND


class CaseMismatchException(NotFoundException):
    """Raised when git knows the path only under a different case"""
    kind = ErrorKind.CASE_MISMATCH


class AmbiguousResolutionException(WikiStoreException):
    """Raised when a name only resolves to a directory"""
    kind = ErrorKind.AMBIGUOUS


class BackendFailure(WikiStoreException):
    """Raised when a git invocation fails, times out or returns garbage"""
    kind = ErrorKind.BACKEND_FAILURE


class InvalidRevisionRange(BackendFailure):
    """Raised for a revision or range git should never see"""
    pass


class DiffParseError(BackendFailure):
    """Raised when diff output has a malformed hunk header"""
    pass


class DocumentNotFetched(WikiStoreException):
    """Raised when history is requested before a successful fetch()"""
    pass
