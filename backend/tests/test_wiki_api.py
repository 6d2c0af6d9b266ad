"""
Tests for the read-only wiki HTTP endpoints.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import commit_files
from main import create_app


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_redirects_to_index(client):
    response = client.get("/", follow_redirects=False)

    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/wiki/Home"


def test_show_page(client, wiki_repo):
    response = client.get("/wiki/Home")

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "page"
    assert data["content"].startswith("Welcome")
    assert data["hashes"] == [wiki_repo.second, wiki_repo.first]
    assert data["can_edit"] is True
    assert data["warning"] is None
    assert data["metadata"]["subject"] == "Update Home"


def test_show_old_revision(client, wiki_repo):
    response = client.get(f"/wiki/Guide/{wiki_repo.second}")

    assert response.status_code == 200
    data = response.json()
    assert data["can_edit"] is False
    assert "latest revision" in data["warning"]


def test_show_missing(client):
    response = client.get("/wiki/Missing")

    assert response.status_code == 404


def test_show_file(client):
    response = client.get("/wiki/logo.png")

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "file"
    assert data["path"] == "files/logo.png"
    assert data["size_label"] == "9 B"


def test_show_nested_file(client):
    response = client.get("/wiki/docs/report.pdf")

    assert response.status_code == 200
    assert response.json()["path"] == "files/docs/report.pdf"


def test_history(client, wiki_repo):
    response = client.get("/wiki/Home/history")

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "History of Home"
    assert [item["hash"] for item in data["items"]] == [wiki_repo.second, wiki_repo.first]


def test_history_of_file_redirects(client):
    response = client.get("/wiki/logo.png/history", follow_redirects=False)

    assert response.status_code in (302, 307)
    assert response.headers["location"] == "/wiki/logo.png"


def test_history_missing(client):
    assert client.get("/wiki/Missing/history").status_code == 404


def test_compare(client, wiki_repo):
    response = client.get(f"/wiki/Home/compare/{wiki_repo.first}..{wiki_repo.second}")

    assert response.status_code == 200
    data = response.json()
    assert data["revisions"] == [wiki_repo.first, wiki_repo.second]
    assert data["lines"][0]["left"] == "..."
    assert data["lines"][0]["css_class"] == "gc"
    assert {"text": "-to the wiki", "left": "2", "right": "", "kind": "removed",
            "css_class": "gd"} in data["lines"]


def test_compare_bad_range(client):
    assert client.get("/wiki/Home/compare/HEAD").status_code == 404


def test_listing(client, wiki_repo):
    response = client.get("/wiki")

    assert response.status_code == 200
    data = response.json()
    assert [item["name"] for item in data["items"]] == ["Guide", "Home"]
    home = data["items"][1]
    assert home["compare"] == f"{wiki_repo.first}..{wiki_repo.second}"
    assert data["page_numbers"] == [1]
    assert data["current_page"] == 1


def test_create_app_requires_repo_path(monkeypatch):
    import config

    monkeypatch.setattr(config, "WIKI_REPO_PATH", None)
    with pytest.raises(ValueError):
        create_app()


def test_listing_includes_non_ascii_page(client, wiki_repo):
    commit_files(wiki_repo.path, {"Café.md": "Coffee\n"}, "Add Café")

    response = client.get("/wiki")

    assert [item["name"] for item in response.json()["items"]] == ["Café", "Guide", "Home"]


def test_show_page_with_undecodable_bytes(client, wiki_repo):
    commit_files(wiki_repo.path, {"Latin.md": b"caf\xe9\n"}, "Add Latin-1 page")

    response = client.get("/wiki/Latin")

    assert response.status_code == 200
    assert response.json()["content"] == "caf\ufffd\n"


def test_compare_page_with_undecodable_bytes(client, wiki_repo):
    first = commit_files(wiki_repo.path, {"Latin.md": b"caf\xe9\n"}, "Add Latin-1 page")
    second = commit_files(wiki_repo.path, {"Latin.md": b"th\xe9\n"}, "Edit Latin-1 page")

    response = client.get(f"/wiki/Latin/compare/{first}..{second}")

    assert response.status_code == 200
    texts = [line["text"] for line in response.json()["lines"]]
    assert "-caf\ufffd" in texts
    assert "+th\ufffd" in texts
