"""Department schedule construction."""

from bimsched.schedules.builder import (
    AttributeResolver,
    ScheduleBuilder,
    add_field,
    build_aggregate_schedule,
    build_department_schedule,
    create_schedule,
    distinct_departments,
    fetch_records,
)

__all__ = [
    "AttributeResolver",
    "ScheduleBuilder",
    "add_field",
    "build_aggregate_schedule",
    "build_department_schedule",
    "create_schedule",
    "distinct_departments",
    "fetch_records",
]
