import re
from typing import Tuple

# Regex for valid coordinates A1–T20
COORD_RE = re.compile(r"^[A-T](20|1[0-9]|[1-9])$")

Coord = Tuple[int, int]


def coord_to_rowcol(coord: str) -> Coord:
    """
    Convert a coordinate like 'A1' through 'T20' to zero-based (row, col) tuple.
    """
    coord = coord.strip().upper()
    if not COORD_RE.match(coord):
        raise ValueError(f"Invalid coordinate: {coord!r}")
    row = ord(coord[0]) - ord('A')
    col = int(coord[1:]) - 1
    return row, col


def format_coord(row: int, col: int) -> str:
    """
    Convert zero-based (row, col) to coordinate string like 'A1'.
    """
    return f"{chr(ord('A') + row)}{col + 1}"


def in_bounds(row: int, col: int, size: int) -> bool:
    return 0 <= row < size and 0 <= col < size
