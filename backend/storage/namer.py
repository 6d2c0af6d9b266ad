"""
Conversions between page titles and storage names.
"""
import re

# Characters that cannot appear in a page file name
_FORBIDDEN = re.compile(r'[\\/?%*:|"<>#]')
_WHITESPACE = re.compile(r'\s+')

PAGE_EXTENSION = ".md"


def wikify(title: str) -> str:
    """
    Convert a page title to its storage name.

    Whitespace runs become a single hyphen and characters that are unsafe in a
    file name are removed. Applying it twice gives the same result.

    Args:
        title: Title or name as typed by the user

    Returns:
        Storage name without extension
    """
    if not title:
        return ""
    name = _WHITESPACE.sub('-', title.strip())
    return _FORBIDDEN.sub('', name)


def unwikify(name: str) -> str:
    """Convert a storage name back to a readable title."""
    if not name:
        return ""
    if name.endswith(PAGE_EXTENSION):
        name = name[:-len(PAGE_EXTENSION)]
    return name.replace('-', ' ')


def page_filename(name: str) -> str:
    """Storage file name for a page name."""
    return f"{wikify(name)}{PAGE_EXTENSION}"


def capitalize_first(name: str) -> str:
    """Upper-case only the first character (used for the case retry)."""
    return name[:1].upper() + name[1:]
