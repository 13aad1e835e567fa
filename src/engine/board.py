"""
Can't Stop - Board Geometry

Column heights are the number of ways two six-sided dice can roll the
column's number.
"""

from types import MappingProxyType

COLUMN_HEIGHTS = MappingProxyType({
    2: 3,
    3: 5,
    4: 7,
    5: 9,
    6: 11,
    7: 13,
    8: 11,
    9: 9,
    10: 7,
    11: 5,
    12: 3,
})

COLUMNS: tuple[int, ...] = tuple(COLUMN_HEIGHTS)


def is_valid_column(column: int) -> bool:
    """Return True for column numbers 2-12."""
    return column in COLUMN_HEIGHTS


def height(column: int) -> int:
    """Number of steps needed to complete a column."""
    try:
        return COLUMN_HEIGHTS[column]
    except KeyError:
        raise ValueError(f"Column must be 2-12, got {column}") from None
