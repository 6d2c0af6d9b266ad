"""
Unified diff parser.

Turns the raw output of `git diff` for a single document into a flat list of
numbered rows that can be shown side by side: old line numbers on the left,
new line numbers on the right.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import DiffParseError

HUNK_PLACEHOLDER = "..."

_HUNK_RE = re.compile(r'^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@')


class DiffLineKind(Enum):
    """Classification of a diff row."""
    HUNK = "hunk"
    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"


# CSS classes the compare view has always used
_CSS_CLASSES = {
    DiffLineKind.HUNK: "gc",
    DiffLineKind.REMOVED: "gd",
    DiffLineKind.ADDED: "gi",
    DiffLineKind.CONTEXT: "",
}


@dataclass(frozen=True)
class DiffLine:
    """One row of a comparison."""
    text: str
    left: Optional[int]
    right: Optional[int]
    kind: DiffLineKind

    @property
    def left_label(self) -> str:
        return self._label(self.left)

    @property
    def right_label(self) -> str:
        return self._label(self.right)

    @property
    def css_class(self) -> str:
        return _CSS_CLASSES[self.kind]

    def _label(self, number: Optional[int]) -> str:
        if self.kind is DiffLineKind.HUNK:
            return HUNK_PLACEHOLDER
        return "" if number is None else str(number)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "left": self.left_label,
            "right": self.right_label,
            "kind": self.kind.value,
            "css_class": self.css_class,
        }


def parse_hunk_header(line: str) -> tuple:
    """
    Read the starting line numbers from a hunk header.

    Args:
        line: Header like "@@ -12,7 +12,9 @@ optional section"

    Returns:
        Tuple of (left_start: int, right_start: int)

    Raises:
        DiffParseError: If the header does not follow the unified format
    """
    match = _HUNK_RE.match(line)
    if not match:
        raise DiffParseError(f"Malformed hunk header: {line!r}")
    return int(match.group(1)), int(match.group(2))


def parse(raw_diff: str) -> List[DiffLine]:
    """
    Parse unified diff text into numbered rows.

    File headers before the first hunk are skipped, "\\ No newline at end of
    file" markers are dropped and all hunks end up in one flat list.

    Args:
        raw_diff: Output of `git diff` for one path

    Returns:
        List of DiffLine in diff order
    """
    lines: List[DiffLine] = []
    left = right = 0
    in_hunk = False

    rows = (raw_diff or "").split('\n')
    if rows and rows[-1] == '':
        rows.pop()

    # Only "\n" ends a line; "\r" and other separators belong to the content
    for text in rows:
        if text.startswith('@@'):
            left, right = parse_hunk_header(text)
            in_hunk = True
            lines.append(DiffLine(text, None, None, DiffLineKind.HUNK))
            continue

        # Next file header in multi-file output
        if text.startswith('diff --git '):
            in_hunk = False
            continue

        if not in_hunk or text.startswith('\\'):
            continue

        marker = text[:1]
        if marker == '-':
            lines.append(DiffLine(text, left, None, DiffLineKind.REMOVED))
            left += 1
        elif marker == '+':
            lines.append(DiffLine(text, None, right, DiffLineKind.ADDED))
            right += 1
        else:
            lines.append(DiffLine(text, left, right, DiffLineKind.CONTEXT))
            left += 1
            right += 1

    return lines
