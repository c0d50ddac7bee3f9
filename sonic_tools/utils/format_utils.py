"""
This module contains helper functions for formatting data into strings.
They are used in log messages and when naming entries of a response bundle.
"""

from typing import Iterable, List, Set


def formatted_size(size_bytes: int) -> str:
    """
    Converts a size in bytes to a human-readable string (e.g., B, KB, MB, GB, TB).

    Args:
        size_bytes: The size in bytes.

    Returns:
        A formatted string with the appropriate unit.
        For example, 1536 becomes "1.50 KB", and 2097152 becomes "2 MB".
    """
    if size_bytes < 0:
        size_bytes = 0

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0

    if size_bytes == 0:
        return "0 B"

    for unit in units:
        if size_bytes < factor:
            if unit == "B":
                return f"{size_bytes} {unit}"
            else:
                return f"{size_bytes:.2f} {unit}".replace(".00", "")
        size_bytes /= factor

    return f"{size_bytes:.2f} {units[-1]}".replace(".00", "")


def sanitize_entry_name(name: str) -> str:
    """Flattens a filename for use as an archive entry: path separators become '_'."""
    return name.replace("\\", "_").replace("/", "_")


def unique_archive_names(names: Iterable[str]) -> List[str]:
    """
    De-duplicates archive entry names while keeping their order.

    The first occurrence of a name is kept as is. Later ones get `_(n)` before
    the extension, counting from 1 ("a.mp3", "a_(1).mp3", "a_(2).mp3"). A
    generated name that is already taken moves on to the next number.
    """
    used: Set[str] = set()
    counters = {}
    result = []
    for raw_name in names:
        clean = sanitize_entry_name(raw_name)
        candidate = clean
        if candidate in used:
            base, dot, ext = clean.rpartition(".")
            if not dot or not base:
                base, ext_part = clean, ""
            else:
                ext_part = f".{ext}"
            n = counters.get(clean, 0)
            while candidate in used:
                n += 1
                candidate = f"{base}_({n}){ext_part}"
            counters[clean] = n
        used.add(candidate)
        result.append(candidate)
    return result
