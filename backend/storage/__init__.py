"""Git-backed document store for the wiki"""
from .diff_parser import DiffLine, DiffLineKind, parse as parse_diff
from .documents import Document, File, Page, Pages, WikiStore
from .exceptions import (
    AmbiguousResolutionException,
    BackendFailure,
    CaseMismatchException,
    DiffParseError,
    DocumentNotFetched,
    ErrorKind,
    InvalidRevisionRange,
    NotFoundException,
    WikiStoreException,
)
from .git_backend import GitBackend, VersionControlBackend
from .models import HEAD, Fetched, FetchFailed, HistoryEntry, RevisionRange
from .resolver import Candidate, NameResolver, Resolution
from .revision_store import RevisionStore

__all__ = [
    "AmbiguousResolutionException",
    "BackendFailure",
    "Candidate",
    "CaseMismatchException",
    "DiffLine",
    "DiffLineKind",
    "DiffParseError",
    "Document",
    "DocumentNotFetched",
    "ErrorKind",
    "Fetched",
    "FetchFailed",
    "File",
    "GitBackend",
    "HEAD",
    "HistoryEntry",
    "InvalidRevisionRange",
    "NameResolver",
    "NotFoundException",
    "Page",
    "Pages",
    "Resolution",
    "RevisionRange",
    "RevisionStore",
    "VersionControlBackend",
    "WikiStore",
    "WikiStoreException",
    "parse_diff",
]
