"""
Shared utility functions.
"""

_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size: int, decimals: int = 2) -> str:
    """Human readable size, e.g. 1536 -> "1.5 KB"."""
    if not size:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, decimals):g} {_UNITS[unit]}"
