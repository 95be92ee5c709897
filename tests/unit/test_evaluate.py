"""Tests for schedule evaluation: filtering, sorting, grouping and totals."""

from __future__ import annotations

import pytest

from bimsched.models import (
    AttributeRef,
    DisplayType,
    FieldKind,
    ScheduleDefinition,
    ScheduleField,
    ScheduleFilter,
    SortGroupRule,
    SortOrder,
)
from bimsched.reporting.evaluate import evaluate_schedule, records_frame
from bimsched.schedules.builder import ScheduleBuilder


@pytest.fixture
def built(document, sample_rooms):
    """Schedules produced by a full builder run over the sample rooms."""
    ScheduleBuilder(document).run()
    return {s.name: s for s in document.load_schedules()}


class TestDepartmentSchedules:
    def test_row_counts(self, built, sample_rooms):
        assert len(evaluate_schedule(built["Department - Sales"], sample_rooms)) == 2
        assert len(evaluate_schedule(built["Department - Eng"], sample_rooms)) == 3

    def test_visible_columns(self, built, sample_rooms):
        table = evaluate_schedule(built["Department - Eng"], sample_rooms)
        assert table.columns == ["Number", "Name", "Department", "Comments", "Area"]
        assert list(table.rows.columns) == table.columns

    def test_only_matching_department(self, built, sample_rooms):
        for name in ("Department - Sales", "Department - Eng"):
            table = evaluate_schedule(built[name], sample_rooms)
            assert set(table.rows["Department"]) == {name.removeprefix("Department - ")}

    def test_sorted_by_level_then_name(self, built, sample_rooms):
        table = evaluate_schedule(built["Department - Eng"], sample_rooms)
        # Level 1: Workshop; Level 2: Archive, Lab
        assert list(table.rows["Name"]) == ["Workshop", "Archive", "Lab"]

    def test_grand_total_and_count(self, built, sample_rooms):
        table = evaluate_schedule(built["Department - Eng"], sample_rooms)
        assert table.grand_totals == {"Area": pytest.approx(87.25)}
        assert table.grand_total_count == 3

    def test_filter_is_exact(self, seed, empty_document, room_factory):
        rooms = [
            room_factory("1", "A", "Sales"),
            room_factory("2", "B", "sales"),
            room_factory("3", "C", " Sales"),
        ]
        seed(rooms)
        ScheduleBuilder(empty_document).run()
        schedules = {s.name: s for s in empty_document.load_schedules()}

        table = evaluate_schedule(schedules["Department - Sales"], rooms)
        assert list(table.rows["Number"]) == ["1"]

    def test_null_department_schedule(self, seed, empty_document, room_factory):
        rooms = [
            room_factory("1", "A", None),
            room_factory("2", "B", ""),
            room_factory("3", "C", "Sales"),
        ]
        seed(rooms)
        ScheduleBuilder(empty_document).run()
        definitions = [s for s in empty_document.load_schedules() if s.name == "Department - "]

        by_key = {d.filter.value: evaluate_schedule(d, rooms) for d in definitions}
        assert list(by_key[None].rows["Number"]) == ["1"]
        assert list(by_key[""].rows["Number"]) == ["2"]


class TestAggregateSchedule:
    def test_one_row_per_department(self, built, sample_rooms):
        table = evaluate_schedule(built["All Departments"], sample_rooms)

        assert table.columns == ["Department", "Area"]
        assert list(table.rows["Department"]) == ["Eng", "Sales"]
        assert list(table.rows["Area"]) == pytest.approx([87.25, 35.5])

    def test_total_equals_sum_of_all_rooms(self, built, sample_rooms):
        table = evaluate_schedule(built["All Departments"], sample_rooms)

        expected = sum(r.value("Area") for r in sample_rooms)
        assert table.grand_totals["Area"] == pytest.approx(expected)
        assert table.rows["Area"].sum() == pytest.approx(expected)
        assert table.grand_total_count is None


def _field(field_id, name, **kwargs):
    return ScheduleField(
        field_id=field_id,
        attribute=AttributeRef(name=name, parameter_id=name),
        **kwargs,
    )


class TestEvaluateDefinition:
    """Hand-built definitions, independent of the builder."""

    def test_descending_sort(self, sample_rooms):
        definition = ScheduleDefinition(
            name="By area",
            category="Rooms",
            fields=[_field(0, "Number"), _field(1, "Area", kind=FieldKind.VIEW_BASED)],
            sort_group_rules=[SortGroupRule(field_id=1, order=SortOrder.DESCENDING)],
        )
        table = evaluate_schedule(definition, sample_rooms)
        assert list(table.rows["Number"]) == ["201", "103", "101", "102", "202"]
        assert table.grand_totals is None

    def test_other_categories_ignored(self, sample_rooms, room_factory):
        other = room_factory("X", "Area plan", "Sales")
        other.category = "Areas"
        definition = ScheduleDefinition(
            name="All rooms", category="Rooms", fields=[_field(0, "Number")]
        )
        assert len(evaluate_schedule(definition, sample_rooms + [other])) == 5

    def test_non_itemized_without_sort_is_single_total_row(self, sample_rooms):
        definition = ScheduleDefinition(
            name="Total",
            category="Rooms",
            fields=[_field(0, "Area", display_type=DisplayType.TOTALS)],
            is_itemized=False,
        )
        table = evaluate_schedule(definition, sample_rooms)
        assert len(table) == 1
        assert table.rows["Area"].iloc[0] == pytest.approx(122.75)

    def test_empty_records(self):
        definition = ScheduleDefinition(
            name="Empty",
            category="Rooms",
            fields=[_field(0, "Name"), _field(1, "Area", display_type=DisplayType.TOTALS)],
            filter=ScheduleFilter(field_id=0, value="Office"),
            show_grand_total=True,
            show_grand_total_count=True,
        )
        table = evaluate_schedule(definition, [])
        assert len(table) == 0
        assert table.grand_totals == {"Area": 0.0}
        assert table.grand_total_count == 0

    def test_records_frame_missing_attribute_is_null(self, room_factory):
        room = room_factory("1", "A", "Sales")
        del room.attributes["Comments"]
        definition = ScheduleDefinition(
            name="x", category="Rooms", fields=[_field(0, "Comments")]
        )
        frame = records_frame(definition, [room])
        assert frame["Comments"].isna().all()
