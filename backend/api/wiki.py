"""
Read-only wiki endpoints.

Shows pages and attachments, page history and revision comparisons as JSON.
The WikiStore lives on app.state and is shared by every request; documents
are created per request.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from storage import File, Page, RevisionRange, WikiStore
from storage.exceptions import ErrorKind

router = APIRouter(tags=["wiki"])


# ─────────────────────────────────────────────────────────────────────────────
# Pydantic Models
# ─────────────────────────────────────────────────────────────────────────────

class DiffLineOut(BaseModel):
    text: str
    left: str  # line number, "..." for hunk headers, "" when absent
    right: str
    kind: str
    css_class: str


class CompareOut(BaseModel):
    name: str
    title: str
    revisions: List[str]
    lines: List[DiffLineOut]


def get_store(request: Request) -> WikiStore:
    """WikiStore created at startup."""
    return request.app.state.store


def _not_found(detail: Any = "Not found"):
    return HTTPException(status_code=404, detail=detail)


def _page_summary(page: Page) -> Dict[str, Any]:
    return {
        "name": page.wikiname,
        "title": page.title,
        "path": str(page.canonical_path) if page.canonical_path else None,
        "revision": page.revision,
        "hashes": list(page.hashes),
        "url": page.url_for_show(),
    }


def _file_view(file: File) -> Dict[str, Any]:
    return {
        "type": "file",
        "name": file.name,
        "path": str(file.canonical_path),
        "hashes": list(file.hashes),
        "size": file.size,
        "size_label": file.size_label,
        "alternatives": [str(p) for p in file.alternatives],
        "url": file.url_for_show(),
    }


# ─────────────────────────────────────────────────────────────────────────────
# Endpoints
# ─────────────────────────────────────────────────────────────────────────────

@router.get("/")
async def get_index(store: WikiStore = Depends(get_store)):
    """Redirect to the index page"""
    return RedirectResponse(store.page(store.index_page).url_for_show())


@router.get("/wiki")
async def list_pages(page: int = Query(1, ge=1), store: WikiStore = Depends(get_store)):
    """List the pages tracked at HEAD, one listing page at a time"""
    listing = store.pages()
    items = await listing.fetch(page)
    return {
        "title": "All the pages",
        "items": [
            {**_page_summary(p), "compare": p.compare_range}
            for p in items
        ],
        "page_numbers": list(range(1, listing.total_pages + 1)),
        "current_page": listing.current_page,
    }


@router.get("/wiki/{name}/history")
async def get_history(name: str, store: WikiStore = Depends(get_store)):
    """Commit history of a page; attachments redirect to their own view"""
    page = store.page(name)

    if not page.exists():
        file = store.file(name)
        if file.exists():
            return RedirectResponse(file.url_for_show())
        raise _not_found(f"Page '{name}' not found")

    await page.fetch()
    if page.error:
        raise _not_found(page.error)

    history = await page.fetch_history()
    if page.error:
        raise _not_found(page.error)

    return {
        "title": f"History of {page.title}",
        "page": _page_summary(page),
        "items": [entry.to_dict() for entry in history],
    }


@router.get("/wiki/{name}/compare/{revisions}", response_model=CompareOut)
async def get_compare(name: str, revisions: str, store: WikiStore = Depends(get_store)):
    """Side-by-side comparison of two revisions ("old..new") of a page"""
    page = store.page(name)

    await page.fetch()
    if page.error:
        raise _not_found(page.error)

    lines = await page.fetch_revisions_diff(revisions)
    if page.error:
        raise _not_found(page.error)

    return CompareOut(
        name=page.wikiname,
        title="Revisions compare",
        revisions=RevisionRange.parse(revisions).as_list(),
        lines=[DiffLineOut(**line.to_dict()) for line in lines],
    )


@router.get("/wiki/{name}/{version}")
async def get_page_version(name: str, version: str, store: WikiStore = Depends(get_store)):
    """A page at a revision, or an attachment one directory deep"""
    page = store.page(name, version)
    if page.exists():
        return await _show_page(page)
    return await _show_file(store, f"{name}/{version}")


@router.get("/wiki/{name:path}")
async def get_wiki_object(name: str, store: WikiStore = Depends(get_store)):
    """A page, or an attachment when no page has that name"""
    page = store.page(name)
    if page.exists():
        return await _show_page(page)
    if page.is_index() and not store.file(name).exists():
        # Empty wiki: nothing at the index page yet
        raise _not_found({"error": f"'{name}' not found", "welcome": True})
    return await _show_file(store, name)


async def _show_page(page: Page) -> Dict[str, Any]:
    await page.fetch()

    if page.error:
        detail: Dict[str, Any] = {"error": page.error}
        if page.error_kind is ErrorKind.NOT_FOUND:
            detail["new_url"] = page.url_for("new")
        if page.is_index():
            detail["welcome"] = True
        raise _not_found(detail)

    warning = None
    if not page.is_latest():
        warning = f"You're not reading the latest revision of this page, which is here: {page.url_for_show()}"

    metadata = page.metadata
    return {
        "type": "page",
        **_page_summary(page),
        "content": page.content,
        "metadata": metadata.to_dict() if metadata else None,
        "can_edit": page.is_latest(),
        "warning": warning,
    }


async def _show_file(store: WikiStore, name: str) -> Dict[str, Any]:
    file = store.file(name)
    if not file.exists():
        raise _not_found(f"'{name}' not found")

    await file.fetch()
    if file.error:
        raise _not_found(file.error)

    return _file_view(file)
