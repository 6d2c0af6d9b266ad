import os
import shutil
import subprocess
import sys
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional, Union

import pytest

# Add the parent directory to Python path so we can import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from storage import WikiStore  # noqa: E402
from storage.exceptions import NotFoundException  # noqa: E402
from storage.git_backend import GitBackend, VersionControlBackend  # noqa: E402
from storage.models import HEAD, HistoryEntry, RevisionRange  # noqa: E402


def git(repo_dir, *args) -> str:
    """Run git in the test repository and return its stdout."""
    result = subprocess.run(
        ['git', *args], cwd=repo_dir, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


def commit_files(repo_dir, files: Dict[str, Union[str, bytes]], message: str) -> str:
    """Write files, commit them and return the abbreviated commit hash."""
    for relative, content in files.items():
        path = Path(repo_dir) / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding='utf-8')
    git(repo_dir, 'add', '-A')
    git(repo_dir, 'commit', '-q', '-m', message)
    return git(repo_dir, 'log', '-1', '--pretty=format:%h')


@pytest.fixture
def repo_dir():
    """Create an empty git repository for testing."""
    temp_dir = tempfile.mkdtemp()

    git(temp_dir, 'init', '-q')
    git(temp_dir, 'config', 'user.name', 'Test')
    git(temp_dir, 'config', 'user.email', 'test@test.com')
    git(temp_dir, 'config', 'commit.gpgsign', 'false')

    yield Path(temp_dir)

    shutil.rmtree(temp_dir)


@pytest.fixture
def wiki_repo(repo_dir):
    """
    Repository with a small history:

    - Home.md: two commits
    - Guide.md: one commit
    - files/docs/report.pdf and files/logo.png: one commit
    """
    first = commit_files(repo_dir, {
        'Home.md': "Welcome\nto the wiki\n",
        'Guide.md': "A guide\n",
    }, "Create Home and Guide")
    second = commit_files(repo_dir, {
        'Home.md': "Welcome\nto the new wiki\nwith more\n",
    }, "Update Home")
    attachments = commit_files(repo_dir, {
        'files/docs/report.pdf': "%PDF-report",
        'files/logo.png': "png-bytes",
    }, "Add attachments")
    return SimpleNamespace(path=repo_dir, first=first, second=second, attachments=attachments)


@pytest.fixture
def backend(wiki_repo):
    return GitBackend(str(wiki_repo.path), timeout=10)


@pytest.fixture
def store(backend):
    return WikiStore(backend, index_page="Home", proxy_path="", per_page=25, timeout=10)


class FakeBackend(VersionControlBackend):
    """
    In-memory backend for failure injection.

    `revisions` maps a repository path to its (hash, content) pairs, newest
    first. `errors` maps a path to the exception every call for it raises.
    """

    def __init__(self, root, revisions: Optional[Dict[str, List[tuple]]] = None,
                 errors: Optional[Dict[str, Exception]] = None, delay: float = 0.0):
        self._root = Path(root)
        self.revisions = revisions or {}
        self.errors = errors or {}
        self.delay = delay
        self.calls: List[tuple] = []

    @property
    def root(self) -> Path:
        return self._root

    def _lookup(self, path, operation):
        path = str(path)
        self.calls.append((operation, path))
        if self.delay:
            time.sleep(self.delay)
        if path in self.errors:
            raise self.errors[path]
        return self.revisions.get(path, [])

    def show(self, path, revision=HEAD, binary=False, timeout=None):
        revisions = self._lookup(path, 'show')
        if not revisions:
            raise NotFoundException(f"path '{path}' does not exist in '{revision}'")
        content = revisions[0][1]
        return content.encode() if binary else content

    def hashes(self, path, revision=HEAD, count=2, timeout=None):
        return [h for h, _ in self._lookup(path, 'hashes')][:count]

    def log(self, path, revision=HEAD, limit=None, timeout=None):
        entries = [
            HistoryEntry(
                hash=h, full_hash=h * 5, author="Test", email="test@test.com",
                date=datetime(2024, 1, 1, tzinfo=timezone.utc), relative_date="1 year ago",
                timestamp=1704067200, subject=f"Commit {h}",
            )
            for h, _ in self._lookup(path, 'log')
        ]
        return entries[:limit] if limit else entries

    def diff(self, path, revisions, timeout=None):
        self._lookup(path, 'diff')
        revisions = RevisionRange.parse(revisions)
        return (
            f"diff --git a/{path} b/{path}\n"
            f"index {revisions.old}..{revisions.new} 100644\n"
            f"--- a/{path}\n+++ b/{path}\n"
            "@@ -1,2 +1,2 @@\n first\n-old\n+new\n"
        )

    def list_documents(self, timeout=None):
        return sorted(p for p in self.revisions if '/' not in p and p.endswith('.md'))
