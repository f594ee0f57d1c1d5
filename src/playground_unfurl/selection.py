from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qs

CURSOR_LINE_PARAM = "pln"
CURSOR_COLUMN_PARAM = "pc"
ANCHOR_LINE_PARAM = "ssl"
ANCHOR_COLUMN_PARAM = "ssc"


@dataclass(frozen=True)
class Point:
    line: int | None = None
    column: int | None = None


@dataclass(frozen=True)
class Selection:
    """Zero-indexed line/column range; ``None`` means use the default."""

    start_line: int | None = None
    start_column: int | None = None
    end_line: int | None = None
    end_column: int | None = None


def get_selection_from_query(query: str) -> Selection:
    params = parse_qs(query.removeprefix("?"), keep_blank_values=True)
    cursor = Point(
        line=_position_param(params, CURSOR_LINE_PARAM),
        column=_position_param(params, CURSOR_COLUMN_PARAM),
    )
    anchor = Point(
        line=_position_param(params, ANCHOR_LINE_PARAM),
        column=_position_param(params, ANCHOR_COLUMN_PARAM),
    )

    # The cursor can sit at either end of the selection, so order by line.
    # Ties fall back to the column so the result is independent of which
    # point was the cursor.
    start, end = sorted((cursor, anchor), key=_point_sort_key)
    return Selection(
        start_line=start.line,
        start_column=start.column,
        end_line=end.line,
        end_column=end.column,
    )


def _point_sort_key(point: Point) -> tuple[int, bool, int, bool]:
    # unset sorts as 0, ahead of an explicit 0
    return (
        point.line if point.line is not None else 0,
        point.line is not None,
        point.column if point.column is not None else 0,
        point.column is not None,
    )


def _position_param(params: dict[str, list[str]], name: str) -> int | None:
    values = params.get(name)
    if not values:
        return None

    raw = values[0].strip()
    if not raw.isascii() or not raw.isdigit():
        return None

    position = int(raw)
    if position < 1:
        return None
    # positions are 1-indexed on the wire
    return position - 1
