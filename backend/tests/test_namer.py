"""
Tests for page name conversions.
"""
from storage.namer import capitalize_first, page_filename, unwikify, wikify


def test_wikify():
    assert wikify("Getting Started") == "Getting-Started"
    assert wikify("  spaced   out  ") == "spaced-out"
    assert wikify('what? "quoted" <tag>') == "what-quoted-tag"
    assert wikify("a/b\\c") == "abc"
    assert wikify("") == ""


def test_wikify_is_idempotent():
    for title in ["Getting Started", "Already-Wikified", "odd: name*", "x  y"]:
        assert wikify(wikify(title)) == wikify(title)


def test_unwikify():
    assert unwikify("Getting-Started") == "Getting Started"
    assert unwikify("Getting-Started.md") == "Getting Started"
    assert unwikify("") == ""


def test_page_filename():
    assert page_filename("Getting Started") == "Getting-Started.md"


def test_capitalize_first():
    assert capitalize_first("home") == "Home"
    assert capitalize_first("Home") == "Home"
    assert capitalize_first("") == ""
