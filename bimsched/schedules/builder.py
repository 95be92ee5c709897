"""Department schedule builder.

Builds one filtered, level-grouped room schedule per distinct department
plus a single "All Departments" rollup, all inside one mutation scope:

    fetch records -> distinct departments -> per-department schedules
                  -> aggregate schedule -> commit

Either every schedule of a run is committed or none is.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from bimsched.config import ScheduleConfig
from bimsched.core.logging import run_context
from bimsched.exceptions import EmptyRecordSetError, MissingAttributeError
from bimsched.host.base import HostDocument
from bimsched.models import (
    AttributeRef,
    AttributeValue,
    BuildResult,
    BuiltInAttribute,
    DisplayType,
    FieldKind,
    FilterOperator,
    Record,
    ScheduleDefinition,
    ScheduleField,
    SortOrder,
)

logger = structlog.get_logger(__name__)

NUMBER = "Number"
NAME = "Name"
COMMENTS = "Comments"
LEVEL = "Level"
AREA = BuiltInAttribute.ROOM_AREA


def fetch_records(host: HostDocument, category: str) -> list[Record]:
    """Return every record of the category. Host errors propagate."""
    records = list(host.fetch_records(category))
    logger.info("records_fetched", category=category, count=len(records))
    return records


def distinct_departments(
    records: Iterable[Record], attribute: str = "Department"
) -> set[AttributeValue]:
    """Distinct values of the grouping attribute.

    No validation: None and "" are both kept, as separate keys.
    """
    return {record.value(attribute) for record in records}


def create_schedule(host: HostDocument, category: str, name: str) -> ScheduleDefinition:
    return host.create_report(category, name)


class AttributeResolver:
    """Resolves attribute references once per build against a representative record.

    All records are assumed to share one attribute schema; the first record
    stands in for the set.
    """

    def __init__(self, host: HostDocument, records: Sequence[Record], category: str | None = None):
        self.host = host
        self.records = records
        self.category = category
        self._cache: dict[str | BuiltInAttribute, AttributeRef] = {}

    @property
    def representative(self) -> Record | None:
        return self.records[0] if self.records else None

    def resolve(self, attribute: str | BuiltInAttribute) -> AttributeRef:
        if attribute in self._cache:
            return self._cache[attribute]

        name = attribute.attribute_name if isinstance(attribute, BuiltInAttribute) else attribute
        record = self.representative
        if record is None:
            raise EmptyRecordSetError(name, self.category)

        try:
            ref = self.host.lookup_attribute(record, attribute)
        except MissingAttributeError as exc:
            carriers = sum(1 for r in self.records if r.has(name))
            if carriers:
                raise MissingAttributeError(
                    name,
                    f"{exc} ({carriers} of {len(self.records)} records carry "
                    f"'{name}'; record attribute schemas differ)",
                ) from exc
            raise

        self._cache[attribute] = ref
        return ref


def add_field(
    host: HostDocument,
    report: ScheduleDefinition,
    kind: FieldKind,
    attribute: AttributeRef,
    hidden: bool = False,
    display_type: DisplayType | None = None,
) -> ScheduleField:
    """Append a field to the schedule and return it for use by filters and sorts."""
    schedule_field = host.add_field(report, kind, attribute, hidden)
    if display_type is not None:
        host.set_field_display_type(report, schedule_field, display_type)
    return schedule_field


def build_department_schedule(
    host: HostDocument,
    resolver: AttributeResolver,
    department: AttributeValue,
    config: ScheduleConfig,
) -> ScheduleDefinition:
    """Itemized schedule of one department's rooms, grouped by level."""
    report = create_schedule(
        host, config.record_category, config.schedule_name(department)
    )

    add_field(host, report, FieldKind.INSTANCE, resolver.resolve(NUMBER))
    name_field = add_field(host, report, FieldKind.INSTANCE, resolver.resolve(NAME))
    group_field = add_field(
        host, report, FieldKind.INSTANCE, resolver.resolve(config.group_attribute)
    )
    add_field(host, report, FieldKind.INSTANCE, resolver.resolve(COMMENTS))
    add_field(
        host,
        report,
        FieldKind.VIEW_BASED,
        resolver.resolve(AREA),
        display_type=DisplayType.TOTALS,
    )
    # Level drives grouping only, it is not a displayed column
    level_field = add_field(host, report, FieldKind.INSTANCE, resolver.resolve(LEVEL), hidden=True)

    host.add_filter(report, group_field, FilterOperator.EQUAL, department)

    host.add_sort_group_rule(
        report,
        level_field,
        SortOrder.ASCENDING,
        show_header=True,
        show_footer=True,
        show_blank_line=True,
    )
    host.add_sort_group_rule(report, name_field, SortOrder.ASCENDING)

    host.set_report_flags(
        report,
        itemized=True,
        show_grand_total=True,
        show_grand_total_title=True,
        show_grand_total_count=True,
    )
    return report


def build_aggregate_schedule(
    host: HostDocument,
    resolver: AttributeResolver,
    config: ScheduleConfig,
) -> ScheduleDefinition:
    """Non-itemized rollup: one area total per department."""
    report = create_schedule(host, config.record_category, config.aggregate_name)

    group_field = add_field(
        host, report, FieldKind.INSTANCE, resolver.resolve(config.group_attribute)
    )
    add_field(
        host,
        report,
        FieldKind.VIEW_BASED,
        resolver.resolve(AREA),
        display_type=DisplayType.TOTALS,
    )

    host.add_sort_group_rule(report, group_field, SortOrder.ASCENDING)

    # Grand total count is left unset: raw room counts mean nothing in a rollup
    host.set_report_flags(
        report,
        itemized=False,
        show_grand_total=True,
        show_grand_total_title=True,
    )
    return report


def _key_order(key: AttributeValue) -> tuple[bool, str]:
    return (key is None, str(key) if key is not None else "")


class ScheduleBuilder:
    """Creates the per-department and aggregate schedules in one mutation scope."""

    def __init__(self, host: HostDocument, config: ScheduleConfig | None = None):
        self.host = host
        self.config = config or ScheduleConfig()

    def run(self) -> BuildResult:
        """Build all schedules and commit them together.

        Returns:
            BuildResult with the number of per-department schedules created

        Raises:
            MissingAttributeError: If a field attribute cannot be resolved
                (including EmptyRecordSetError when there are no records);
                nothing is committed in that case
        """
        config = self.config
        with run_context(config.record_category, config.group_attribute):
            return self._build(config)

    def _build(self, config: ScheduleConfig) -> BuildResult:
        records = fetch_records(self.host, config.record_category)
        departments = sorted(
            distinct_departments(records, config.group_attribute), key=_key_order
        )
        logger.info("departments_extracted", count=len(departments))

        resolver = AttributeResolver(self.host, records, config.record_category)
        result = BuildResult()
        seen = self.host.report_names(config.record_category)

        try:
            with self.host.begin_mutation_scope(config.mutation_label):
                for department in departments:
                    report = build_department_schedule(self.host, resolver, department, config)
                    self._check_name(report, seen, result)
                    result.schedule_names.append(report.name)
                    result.created += 1
                    logger.debug("schedule_created", schedule=report.name, department=department)

                aggregate = build_aggregate_schedule(self.host, resolver, config)
                self._check_name(aggregate, seen, result)
                result.aggregate_name = aggregate.name
                logger.debug("schedule_created", schedule=aggregate.name)
        except Exception as exc:
            logger.error("schedule_build_failed", error=str(exc), built=result.created)
            raise

        logger.info("schedules_committed", created=result.created, aggregate=result.aggregate_name)
        return result

    def _check_name(
        self, report: ScheduleDefinition, seen: set[str], result: BuildResult
    ) -> None:
        if report.name in seen:
            warning = f"Schedule name '{report.name}' already exists in the document"
            logger.warning("duplicate_schedule_name", schedule=report.name)
            result.warnings.append(warning)
        seen.add(report.name)
