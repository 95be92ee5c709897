"""Evaluate a schedule definition against records.

Produces the schedule body the host would show: filtered, sorted rows
(itemized) or one row per sort/group combination (non-itemized), with grand
totals over every Totals field.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import pandas as pd

from bimsched.models import DisplayType, Record, ScheduleDefinition, SortOrder


@dataclass
class ScheduleTable:
    """Evaluated schedule body."""

    name: str
    columns: list[str]
    rows: pd.DataFrame
    grand_totals: dict[str, float] | None = None
    grand_total_count: int | None = None

    def __len__(self) -> int:
        return len(self.rows)


def records_frame(definition: ScheduleDefinition, records: Iterable[Record]) -> pd.DataFrame:
    """One row per record of the schedule's category, one column per field."""
    names = [f.name for f in definition.fields]
    data = [
        {name: record.value(name) for name in names}
        for record in records
        if record.category == definition.category
    ]
    frame = pd.DataFrame(data, columns=names, dtype=object)

    for schedule_field in definition.fields:
        if schedule_field.display_type == DisplayType.TOTALS:
            frame[schedule_field.name] = pd.to_numeric(
                frame[schedule_field.name], errors="coerce"
            )
    return frame


def _uniform(series: pd.Series):
    """Value shared by every row of a group, else None (shown blank)."""
    return series.iloc[0] if series.nunique(dropna=False) == 1 else None


def evaluate_schedule(
    definition: ScheduleDefinition, records: Iterable[Record]
) -> ScheduleTable:
    """Compute the body and totals of a schedule.

    Args:
        definition: Schedule to evaluate
        records: Candidate records (other categories are ignored)

    Returns:
        ScheduleTable with visible columns only; hidden fields still take
        part in filtering, sorting and grouping
    """
    frame = records_frame(definition, records)

    if definition.filter is not None:
        column = definition.get_field(definition.filter.field_id).name
        value = definition.filter.value
        # Exact match: no case folding, no trimming; a null literal matches nulls
        mask = frame[column].isna() if value is None else frame[column].eq(value)
        frame = frame[mask]

    sort_columns = [definition.get_field(r.field_id).name for r in definition.sort_group_rules]
    if sort_columns and not frame.empty:
        frame = frame.sort_values(
            by=sort_columns,
            ascending=[r.order == SortOrder.ASCENDING for r in definition.sort_group_rules],
            kind="mergesort",
            na_position="last",
        )

    visible = [f.name for f in definition.visible_fields]
    totals = [f.name for f in definition.fields if f.display_type == DisplayType.TOTALS]

    if definition.is_itemized:
        rows = frame[visible].reset_index(drop=True)
    elif sort_columns:
        aggregations = {
            column: ("sum" if column in totals else _uniform)
            for column in visible
            if column not in sort_columns
        }
        if aggregations:
            grouped = (
                frame.groupby(sort_columns, sort=False, dropna=False)
                .agg(aggregations)
                .reset_index()
            )
        else:
            grouped = frame[sort_columns].drop_duplicates()
        rows = grouped[[c for c in visible if c in grouped.columns]].reset_index(drop=True)
    else:
        rows = pd.DataFrame(
            [{column: frame[column].sum() for column in visible if column in totals}]
        )

    grand_totals = None
    if definition.show_grand_total:
        grand_totals = {column: float(frame[column].sum()) for column in totals}

    grand_total_count = len(frame) if definition.show_grand_total_count else None

    return ScheduleTable(
        name=definition.name,
        columns=visible,
        rows=rows,
        grand_totals=grand_totals,
        grand_total_count=grand_total_count,
    )
