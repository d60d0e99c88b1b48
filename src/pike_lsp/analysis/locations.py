"""
Parser for the analyzer's compound ``<path>[:<line>]`` location strings.
"""

from src.pike_lsp.models import LocationRef


def parse_location(raw: str) -> LocationRef:
    """
    Split a compound location into a path and a zero-based line.

    Only a trailing, all-digit suffix after the last colon is a line marker,
    so paths containing colons (drive letters, URIs) are kept whole.

    Examples:
        "a/b/c.pike:43"          -> ("a/b/c.pike", 42)
        "a/b/c.pike"             -> ("a/b/c.pike", 0)
        "c:/windows/file.pike:7" -> ("c:/windows/file.pike", 6)
    """
    path, separator, suffix = raw.rpartition(":")
    if separator and suffix and suffix.isascii() and suffix.isdigit():
        return LocationRef(file_path=path, line=max(0, int(suffix) - 1))
    return LocationRef(file_path=raw, line=0)
