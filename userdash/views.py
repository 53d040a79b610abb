"""Column layouts for the two dashboard tables."""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from markupsafe import Markup, escape

from .models import BackendVersion
from .table import CellRenderer, Column, ColumnGroup, Row


def _average(row_key: str) -> CellRenderer:
    def render(row: Row) -> Markup:
        value = row.get(row_key)
        if value is None:
            return Markup("")
        return escape(f"{float(value):.1f}")  # type: ignore[arg-type]

    return render


def delete_button(action_for: Callable[[str], str]) -> CellRenderer:
    """Render a delete form posting to the URL ``action_for`` builds for the row id."""

    def render(row: Row) -> Markup:
        return Markup(
            '<form method="post" action="{action}" class="inline-form">'
            '<button type="submit" data-user-id="{uuid}">Delete</button>'
            "</form>"
        ).format(action=action_for(str(row["id"])), uuid=row["id"])

    return render


DAILY_RECORD_COLUMNS: Tuple[ColumnGroup, ...] = (
    ColumnGroup(
        "Daily Record",
        (
            Column("Date", "formatted_date"),
            Column("Total User", "total_user"),
        ),
    ),
    ColumnGroup(
        "Male",
        (
            Column("Count", "male_count"),
            Column("Avg Age", "male_avg_age", cell=_average("male_avg_age")),
        ),
    ),
    ColumnGroup(
        "Female",
        (
            Column("Count", "female_count"),
            Column("Avg Age", "female_avg_age", cell=_average("female_avg_age")),
        ),
    ),
)


def user_columns(
    version: Optional[BackendVersion],
    *,
    delete_action: Optional[Callable[[str], str]] = None,
) -> Tuple[ColumnGroup, ...]:
    """Columns for the users table; name columns follow the backend's name shape."""

    if version is BackendVersion.FLAT:
        name_columns: Tuple[Column, ...] = (
            Column("No", "sequence_number"),
            Column("Name", "name"),
        )
    else:
        name_columns = (
            Column("No", "sequence_number"),
            Column("First Name", "first_name"),
            Column("Last Name", "last_name"),
        )

    info_columns = [
        Column("Age", "age"),
        Column("Gender", "gender"),
        Column("Location", "location"),
    ]
    if delete_action is not None:
        info_columns.append(Column("Action", "delete", cell=delete_button(delete_action)))

    return (
        ColumnGroup("Name", name_columns),
        ColumnGroup("Info", tuple(info_columns)),
    )


__all__ = ["DAILY_RECORD_COLUMNS", "delete_button", "user_columns"]
