"""Host document adapter for a live Revit model.

The Revit API namespace (``Autodesk.Revit.DB``) is passed in as ``api`` so
the adapter can be driven from pyRevit, Dynamo or RevitPythonShell alike.
Records are snapshots of room parameters; schedules, fields and rules are
created as native ViewSchedule objects inside one Revit Transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from bimsched.config import ScheduleConfig
from bimsched.exceptions import MissingAttributeError
from bimsched.host.base import HostDocument
from bimsched.models import (
    AttributeRef,
    AttributeValue,
    BuildResult,
    BuiltInAttribute,
    Record,
    ScheduleDefinition,
    ScheduleField,
    ScheduleFilter,
    SortGroupRule,
)
from bimsched.schedules.builder import ScheduleBuilder

logger = logging.getLogger(__name__)


def element_id_value(element_id: Any) -> int:
    """Integer value of an ElementId (``Value`` from Revit 2024, ``IntegerValue`` before)."""
    value = getattr(element_id, "Value", None)
    if value is None:
        value = element_id.IntegerValue
    return int(value)


class RevitDocument(HostDocument):
    """HostDocument over a Revit ``Document``."""

    def __init__(self, doc: Any, api: Any):
        super().__init__()
        self.doc = doc
        self.api = api
        self._transaction: Any = None
        self._elements: dict[str, Any] = {}
        self._parameter_ids: dict[str, Any] = {}
        self._schedules: dict[str, Any] = {}
        self._fields: dict[tuple[str, int], Any] = {}

    def _category_id(self, category: str) -> Any:
        bic = getattr(self.api.BuiltInCategory, f"OST_{category}")
        return self.api.ElementId(bic)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _parameter_value(self, parameter: Any) -> AttributeValue:
        storage = parameter.StorageType
        if storage == self.api.StorageType.String:
            return parameter.AsString()
        if storage == self.api.StorageType.Double:
            return parameter.AsDouble()
        if storage == self.api.StorageType.Integer:
            return parameter.AsInteger()
        # ElementId parameters (e.g. Level) read as their display name
        return parameter.AsValueString()

    def fetch_records(self, category: str) -> list[Record]:
        bic = getattr(self.api.BuiltInCategory, f"OST_{category}")
        collector = self.api.FilteredElementCollector(self.doc).OfCategory(bic)

        records = []
        for element in collector:
            record_id = str(element_id_value(element.Id))
            self._elements[record_id] = element
            attributes = {
                parameter.Definition.Name: self._parameter_value(parameter)
                for parameter in element.Parameters
            }
            records.append(Record(id=record_id, category=category, attributes=attributes))
        return records

    def lookup_attribute(
        self, record: Record, attribute: str | BuiltInAttribute
    ) -> AttributeRef:
        element = self._elements[record.id]
        if isinstance(attribute, BuiltInAttribute):
            name = attribute.attribute_name
            parameter = element.get_Parameter(getattr(self.api.BuiltInParameter, attribute.value))
        else:
            name = attribute
            parameter = element.LookupParameter(attribute)

        if parameter is None:
            raise MissingAttributeError(
                name, f"Parameter '{name}' not found on element {record.id}"
            )

        parameter_id = str(element_id_value(parameter.Id))
        self._parameter_ids[parameter_id] = parameter.Id
        return AttributeRef(
            name=name,
            parameter_id=parameter_id,
            builtin=attribute if isinstance(attribute, BuiltInAttribute) else None,
        )

    def report_names(self, category: str | None = None) -> set[str]:
        schedules = self.api.FilteredElementCollector(self.doc).OfClass(self.api.ViewSchedule)
        if category is None:
            return {schedule.Name for schedule in schedules}
        category_value = element_id_value(self._category_id(category))
        return {
            schedule.Name
            for schedule in schedules
            if element_id_value(schedule.Definition.CategoryId) == category_value
        }

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def _begin(self, label: str) -> None:
        self._transaction = self.api.Transaction(self.doc, label)
        self._transaction.Start()

    def _commit(self) -> None:
        transaction, self._transaction = self._transaction, None
        transaction.Commit()

    def _rollback(self) -> None:
        transaction, self._transaction = self._transaction, None
        if transaction is not None:
            transaction.RollBack()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _apply_create(self, report: ScheduleDefinition) -> None:
        schedule = self.api.ViewSchedule.CreateSchedule(
            self.doc, self._category_id(report.category)
        )
        schedule.Name = report.name
        self._schedules[report.id] = schedule

    def _apply_field(self, report: ScheduleDefinition, schedule_field: ScheduleField) -> None:
        definition = self._schedules[report.id].Definition
        native = definition.AddField(
            getattr(self.api.ScheduleFieldType, schedule_field.kind.value),
            self._parameter_ids[schedule_field.attribute.parameter_id],
        )
        native.IsHidden = schedule_field.hidden
        self._fields[(report.id, schedule_field.field_id)] = native

    def _apply_field_display(
        self, report: ScheduleDefinition, schedule_field: ScheduleField
    ) -> None:
        native = self._fields[(report.id, schedule_field.field_id)]
        native.DisplayType = getattr(
            self.api.ScheduleFieldDisplayType, schedule_field.display_type.value
        )

    def _apply_filter(self, report: ScheduleDefinition, schedule_filter: ScheduleFilter) -> None:
        native_field = self._fields[(report.id, schedule_filter.field_id)]
        if schedule_filter.value is None:
            # Revit has no null literal: equality with null is "has no value"
            native_filter = self.api.ScheduleFilter(
                native_field.FieldId, self.api.ScheduleFilterType.HasNoValue
            )
        else:
            native_filter = self.api.ScheduleFilter(
                native_field.FieldId,
                getattr(self.api.ScheduleFilterType, schedule_filter.operator.value),
                schedule_filter.value,
            )
        self._schedules[report.id].Definition.AddFilter(native_filter)

    def _apply_sort_group_rule(self, report: ScheduleDefinition, rule: SortGroupRule) -> None:
        native_field = self._fields[(report.id, rule.field_id)]
        native_rule = self.api.ScheduleSortGroupField(
            native_field.FieldId, getattr(self.api.ScheduleSortOrder, rule.order.value)
        )
        native_rule.ShowHeader = rule.show_header
        native_rule.ShowFooter = rule.show_footer
        native_rule.ShowBlankLine = rule.show_blank_line
        self._schedules[report.id].Definition.AddSortGroupField(native_rule)

    def _apply_flags(self, report: ScheduleDefinition) -> None:
        definition = self._schedules[report.id].Definition
        definition.IsItemized = report.is_itemized
        definition.ShowGrandTotal = report.show_grand_total
        definition.ShowGrandTotalTitle = report.show_grand_total_title
        definition.ShowGrandTotalCount = report.show_grand_total_count


def create_department_schedules(
    doc: Any, api: Any = None, config: ScheduleConfig | None = None
) -> BuildResult:
    """Command entry point inside Revit: build every department schedule.

    Usage from a pyRevit pushbutton script::

        from bimsched.host.revit import create_department_schedules
        result = create_department_schedules(__revit__.ActiveUIDocument.Document)
        forms.alert(result.message, title="Complete")
    """
    if api is None:
        from Autodesk.Revit import DB as api

    host = RevitDocument(doc, api)
    result = ScheduleBuilder(host, config or ScheduleConfig.from_env()).run()
    logger.info(result.message)
    return result
