"""Column schemas, grouped headers and global filtering for HTML tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from markupsafe import Markup, escape

Row = Mapping[str, object]
CellRenderer = Callable[[Row], Markup]


@dataclass(frozen=True)
class Column:
    """A leaf column reading ``accessor`` out of each row."""

    header: str
    accessor: str
    cell: Optional[CellRenderer] = None


@dataclass(frozen=True)
class ColumnGroup:
    """A labelled group of leaf columns, rendered as the upper header row."""

    header: str
    columns: Tuple[Column, ...]


@dataclass(frozen=True)
class HeaderCell:
    label: str
    colspan: int = 1


@dataclass(frozen=True)
class Cell:
    column: Column
    value: object
    content: Markup


@dataclass(frozen=True)
class BodyRow:
    original: Row
    cells: Tuple[Cell, ...]


@dataclass(frozen=True)
class Table:
    """A rendered grid: header rows, visible body rows and filter details."""

    header_rows: Tuple[Tuple[HeaderCell, ...], ...]
    rows: Tuple[BodyRow, ...]
    searchable: bool
    filter_text: str
    total_rows: int

    @property
    def column_count(self) -> int:
        return len(self.header_rows[-1]) if self.header_rows else 0


def leaf_columns(schema: Sequence[ColumnGroup]) -> List[Column]:
    return [column for group in schema for column in group.columns]


def header_rows(schema: Sequence[ColumnGroup]) -> Tuple[Tuple[HeaderCell, ...], ...]:
    """Build the group row (spanning its leaves) followed by the leaf row."""

    groups = tuple(
        HeaderCell(label=group.header, colspan=len(group.columns))
        for group in schema
        if group.columns
    )
    leaves = tuple(HeaderCell(label=column.header) for column in leaf_columns(schema))
    return (groups, leaves)


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def matches_filter(row: Row, columns: Iterable[Column], needle: str) -> bool:
    """Case-insensitive substring match of ``needle`` against any column value."""

    if not needle:
        return True
    folded = needle.casefold()
    for column in columns:
        if folded in cell_text(row.get(column.accessor)).casefold():
            return True
    return False


def global_filter(rows: Sequence[Row], columns: Sequence[Column], needle: Optional[str]) -> List[Row]:
    if not needle:
        return list(rows)
    return [row for row in rows if matches_filter(row, columns, needle)]


def _render_cell(column: Column, row: Row) -> Cell:
    value = row.get(column.accessor)
    if column.cell is not None:
        content = Markup(column.cell(row))
    else:
        content = escape(cell_text(value))
    return Cell(column=column, value=value, content=content)


def build_table(
    schema: Sequence[ColumnGroup],
    rows: Sequence[Row],
    *,
    searchable: bool = False,
    filter_text: Optional[str] = None,
) -> Table:
    """Lay out ``rows`` under ``schema``; when searchable, apply ``filter_text``.

    Filtering runs over the rows handed in, it never triggers a fetch.
    """

    columns = leaf_columns(schema)
    needle = (filter_text or "") if searchable else ""
    visible = global_filter(rows, columns, needle)
    body = tuple(
        BodyRow(original=row, cells=tuple(_render_cell(column, row) for column in columns))
        for row in visible
    )
    return Table(
        header_rows=header_rows(schema),
        rows=body,
        searchable=searchable,
        filter_text=needle,
        total_rows=len(rows),
    )


def render_text(table: Table) -> str:
    """Plain-text rendition of a table for terminal output."""

    leaves = [cell.label for cell in table.header_rows[-1]] if table.header_rows else []
    body = [[cell_text(cell.value) for cell in row.cells] for row in table.rows]
    widths = [len(label) for label in leaves]
    for values in body:
        for index, value in enumerate(values):
            widths[index] = max(widths[index], len(value))

    def _line(values: Sequence[str]) -> str:
        return "  ".join(value.ljust(width) for value, width in zip(values, widths)).rstrip()

    lines = [_line(leaves), "-" * max(len(_line(leaves)), 1)]
    lines.extend(_line(values) for values in body)
    return "\n".join(lines)


__all__ = [
    "BodyRow",
    "Cell",
    "Column",
    "ColumnGroup",
    "HeaderCell",
    "Table",
    "build_table",
    "cell_text",
    "global_filter",
    "header_rows",
    "leaf_columns",
    "matches_filter",
    "render_text",
]
