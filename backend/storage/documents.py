"""
Wiki documents: pages and attached files backed by the git repository.

A document is created per request from a raw name (and optionally a
revision), resolved to a repository path, then fetched. Failures never raise
out of fetch(); they end up in the document's `error` so callers can branch on
it.

Pages are top-level `<Name>.md` files. Attachments live under `files/`.
"""
import asyncio
import logging
import math
from pathlib import PurePosixPath
from typing import List, Optional, Tuple, Union
from urllib.parse import quote

from utils import format_bytes

from . import diff_parser
from .diff_parser import DiffLine
from .exceptions import (
    AmbiguousResolutionException,
    CaseMismatchException,
    DocumentNotFetched,
    ErrorKind,
    NotFoundException,
    WikiStoreException,
)
from .git_backend import VersionControlBackend
from .models import (
    HEAD,
    DocumentState,
    FetchFailed,
    HistoryEntry,
    RevisionRange,
)
from .namer import PAGE_EXTENSION, capitalize_first, page_filename, unwikify, wikify
from .resolver import NameResolver, Resolution
from .revision_store import RevisionStore, run_blocking

logger = logging.getLogger(__name__)

FILES_DIR = "files"

# Route templates for url_for(); {name} is the quoted wiki name
URL_ACTIONS = {
    "show": "/wiki/{name}",
    "history": "/wiki/{name}/history",
    "compare": "/wiki/{name}/compare",
    "edit": "/pages/{name}/edit",
    "new": "/pages/new/{name}",
}


class WikiStore:
    """
    Entry point to the document store.

    Holds the shared backend and settings; documents are created from it
    per request.
    """

    def __init__(self, backend: VersionControlBackend, index_page: str = "Home",
                 proxy_path: str = "", per_page: int = 25,
                 timeout: Optional[float] = None):
        self.backend = backend
        self.index_page = index_page
        self.proxy_path = proxy_path.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout

    def page(self, name: str, revision: str = HEAD) -> 'Page':
        return Page(self, name, revision)

    def file(self, name: str, directory: str = "") -> 'File':
        return File(self, name, directory)

    def pages(self) -> 'Pages':
        return Pages(self)

    def revision_store(self, path: PurePosixPath) -> RevisionStore:
        return RevisionStore(self.backend, path, timeout=self.timeout)


class Document:
    """
    Common behaviour of pages and files.

    Subclasses decide where names live (`base`), whether missing names are
    searched for (`search`) and how a raw name maps to a storage name.
    """
    base = ""
    search = False
    binary = False

    def __init__(self, store: WikiStore, name: str, revision: str = HEAD):
        self.store = store
        self.revision = revision or HEAD
        self.state: Optional[DocumentState] = None
        self.resolver = NameResolver(store.backend.root, base=self.base, search=self.search)
        self.resolution: Optional[Resolution] = None
        self.set_names(name)

    def _derive_names(self, name: str) -> Tuple[str, str, str]:
        """Return (display name, wiki name, name to resolve)."""
        raise NotImplementedError

    def set_names(self, name: str):
        """
        Rename the document and resolve it again.

        Clears any previous fetch result.
        """
        self.name, self.wikiname, storage_name = self._derive_names(name)
        self.resolution = self.resolver.resolve(storage_name)
        self.state = None

    @property
    def canonical_path(self) -> Optional[PurePosixPath]:
        """Resolved repository path, None until resolution succeeds."""
        if self.resolution and self.resolution.exists:
            return self.resolution.path
        return None

    def exists(self) -> bool:
        return bool(self.resolution and self.resolution.exists)

    # Fetch state views

    @property
    def fetched(self) -> bool:
        return self.state is not None

    @property
    def ok(self) -> bool:
        return self.state is not None and self.state.ok

    @property
    def error(self) -> Optional[str]:
        return self.state.error if self.state is not None else None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.state.kind if isinstance(self.state, FetchFailed) else None

    @property
    def content(self) -> Optional[Union[str, bytes]]:
        return self.state.content if self.ok else None

    @property
    def hashes(self) -> Tuple[str, ...]:
        return self.state.hashes if self.ok else ()

    @property
    def metadata(self) -> Optional[HistoryEntry]:
        return self.state.metadata if self.ok else None

    def _fail(self, error: WikiStoreException, kind: Optional[ErrorKind] = None) -> FetchFailed:
        logger.warning(f"{type(self).__name__} '{self.name}': {error}")
        self.state = FetchFailed(reason=str(error), kind=kind or error.kind)
        return self.state

    async def _fetch_current(self) -> DocumentState:
        """Resolve, then read the current revision; raises on any failure."""
        if not self.exists():
            if self.resolution and self.resolution.directory:
                raise AmbiguousResolutionException(f"'{self.name}' is a directory")
            raise NotFoundException(f"'{self.name}' not found")
        revisions = self.store.revision_store(self.canonical_path)
        return await revisions.fetch_current(self.revision, binary=self.binary)

    async def fetch(self) -> DocumentState:
        """
        Fetch content, hashes and metadata at the document's revision.

        When git reports the path exists on disk but not in the revision, the
        name is retried once with its first character upper-cased; a second
        miss is a plain NOT_FOUND.

        Returns:
            Fetched on success, FetchFailed otherwise (also stored in `state`)
        """
        try:
            self.state = await self._fetch_current()
            return self.state
        except CaseMismatchException as e:
            retry_name = capitalize_first(self.wikiname)
            if retry_name == self.wikiname:
                return self._fail(e, ErrorKind.NOT_FOUND)
            logger.info(f"'{self.wikiname}' not in {self.revision}, retrying as '{retry_name}'")
        except WikiStoreException as e:
            return self._fail(e)

        self.set_names(retry_name)
        try:
            self.state = await self._fetch_current()
        except CaseMismatchException as e:
            self._fail(e, ErrorKind.NOT_FOUND)
        except WikiStoreException as e:
            self._fail(e)
        return self.state

    async def fetch_history(self, limit: Optional[int] = None) -> List[HistoryEntry]:
        """
        Get the document's commits, newest first.

        Raises:
            DocumentNotFetched: If fetch() has not succeeded yet

        Backend failures are stored in `error` and give an empty list.
        """
        if not self.ok:
            raise DocumentNotFetched(f"'{self.name}' must be fetched before reading its history")
        try:
            return await self.store.revision_store(self.canonical_path).fetch_history(limit)
        except WikiStoreException as e:
            self._fail(e)
            return []

    async def fetch_revisions_diff(self, revisions: Union[str, RevisionRange]) -> List[DiffLine]:
        """
        Compare two revisions of the document.

        Args:
            revisions: "old..new" or a RevisionRange

        Returns:
            Parsed diff rows; empty with `error` set when the comparison fails
        """
        if not self.exists():
            self.state = FetchFailed(f"'{self.name}' not found", ErrorKind.NOT_FOUND)
            return []
        try:
            raw = await self.store.revision_store(self.canonical_path).fetch_diff(revisions)
            return diff_parser.parse(raw)
        except WikiStoreException as e:
            self._fail(e)
            return []

    def url_for(self, action: str) -> str:
        """
        Path of one of the document's views.

        Raises:
            ValueError: For an unknown action
        """
        if action not in URL_ACTIONS:
            raise ValueError(f"Unknown action '{action}'")
        name = quote(self.wikiname, safe="/")
        return self.store.proxy_path + URL_ACTIONS[action].format(name=name)

    def url_for_show(self) -> str:
        return self.url_for("show")

    def url_for_revision(self, revision: str) -> str:
        return f"{self.url_for_show()}/{quote(revision, safe='')}"


class Page(Document):
    """A markdown page at the top of the repository."""

    def _derive_names(self, name: str) -> Tuple[str, str, str]:
        wikiname = wikify(name)
        if wikiname.endswith(PAGE_EXTENSION):
            wikiname = wikiname[:-len(PAGE_EXTENSION)]
        return unwikify(wikiname), wikiname, page_filename(wikiname)

    @property
    def title(self) -> str:
        return self.name

    def is_index(self) -> bool:
        return self.wikiname == wikify(self.store.index_page)

    def is_latest(self) -> bool:
        """True when showing HEAD or the newest commit of the page."""
        if self.revision == HEAD:
            return True
        if not self.hashes:
            return False
        latest = self.hashes[0]
        return self.revision.startswith(latest) or latest.startswith(self.revision)

    @property
    def compare_range(self) -> str:
        """Range "previous..latest" when the page has at least two commits."""
        if len(self.hashes) == 2:
            return str(RevisionRange(self.hashes[1], self.hashes[0]))
        return ""


class File(Document):
    """
    An attachment under files/.

    A name whose first segment is a directory is looked up by its last
    segment, first inside that directory and then anywhere under files/.
    """
    base = FILES_DIR
    search = True
    binary = True

    def __init__(self, store: WikiStore, name: str, directory: str = ""):
        self.directory = NameResolver.normalize(directory)
        super().__init__(store, name, HEAD)

    def _derive_names(self, name: str) -> Tuple[str, str, str]:
        relative = (self.directory / NameResolver.normalize(name)).as_posix()
        if relative == ".":
            relative = ""
        return PurePosixPath(relative).name, relative, relative

    @property
    def alternatives(self) -> List[PurePosixPath]:
        """Other stored files the name could have meant."""
        if not self.resolution:
            return []
        return [c.path for c in self.resolution.candidates[1:]]

    @property
    def size(self) -> Optional[int]:
        if self.ok:
            return len(self.content)
        if self.canonical_path is not None:
            return self.store.backend.root.joinpath(*self.canonical_path.parts).stat().st_size
        return None

    @property
    def size_label(self) -> str:
        size = self.size
        return format_bytes(size) if size is not None else ""


class Pages:
    """Paginated listing of the pages tracked at HEAD."""

    def __init__(self, store: WikiStore):
        self.store = store
        self.items: List[Page] = []
        self.total_pages = 0
        self.current_page = 1

    async def fetch(self, page_number: int = 1) -> List[Page]:
        """
        Fetch one listing page; pages that fail to fetch are left out.

        Raises:
            BackendFailure: If the repository tree cannot be listed
        """
        backend = self.store.backend
        filenames = await run_blocking(
            lambda: backend.list_documents(timeout=self.store.timeout),
            self.store.timeout,
            "git ls-tree"
        )
        per_page = max(self.store.per_page, 1)
        self.total_pages = math.ceil(len(filenames) / per_page)
        self.current_page = min(max(page_number, 1), max(self.total_pages, 1))

        start = (self.current_page - 1) * per_page
        pages = [
            self.store.page(filename[:-len(PAGE_EXTENSION)])
            for filename in filenames[start:start + per_page]
        ]
        await asyncio.gather(*(page.fetch() for page in pages))

        self.items = [page for page in pages if page.ok]
        return self.items
