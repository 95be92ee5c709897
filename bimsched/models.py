"""BIMSched Pydantic models for schedule definitions and host records.

These are host-independent value types: every host adapter translates its
native objects (Revit elements, database rows) to and from these models.
"""

from __future__ import annotations

from enum import Enum
from typing import Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

AttributeValue = Union[str, float, int, None]


class FieldKind(str, Enum):
    """How a schedule field obtains its value."""

    INSTANCE = "Instance"  # Per-record attribute value
    VIEW_BASED = "ViewBased"  # Computed in the schedule's own view context (e.g. Area)


class DisplayType(str, Enum):
    """Display aggregation mode of a schedule field."""

    STANDARD = "Standard"
    TOTALS = "Totals"


class SortOrder(str, Enum):
    ASCENDING = "Ascending"
    DESCENDING = "Descending"


class FilterOperator(str, Enum):
    EQUAL = "Equal"


class BuiltInAttribute(str, Enum):
    """Well-known attributes addressed by identifier rather than by name."""

    ROOM_AREA = "ROOM_AREA"
    ROOM_NUMBER = "ROOM_NUMBER"
    ROOM_NAME = "ROOM_NAME"
    ROOM_DEPARTMENT = "ROOM_DEPARTMENT"
    ROOM_LEVEL_ID = "ROOM_LEVEL_ID"
    ALL_MODEL_INSTANCE_COMMENTS = "ALL_MODEL_INSTANCE_COMMENTS"

    @property
    def attribute_name(self) -> str:
        """Display name the attribute carries on a room record."""
        return _BUILTIN_NAMES[self]


_BUILTIN_NAMES = {
    BuiltInAttribute.ROOM_AREA: "Area",
    BuiltInAttribute.ROOM_NUMBER: "Number",
    BuiltInAttribute.ROOM_NAME: "Name",
    BuiltInAttribute.ROOM_DEPARTMENT: "Department",
    BuiltInAttribute.ROOM_LEVEL_ID: "Level",
    BuiltInAttribute.ALL_MODEL_INSTANCE_COMMENTS: "Comments",
}


class Record(BaseModel):
    """A spatial element (room) read from the host document.

    Records are read-only snapshots; the builder never mutates them.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    category: str = "Rooms"
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)

    def has(self, name: str) -> bool:
        return name in self.attributes

    def value(self, name: str) -> AttributeValue:
        """Return the attribute value, or None when the record lacks it."""
        return self.attributes.get(name)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "category": "Rooms",
                "attributes": {
                    "Number": "101",
                    "Name": "Office",
                    "Department": "Sales",
                    "Comments": "",
                    "Level": "Level 1",
                    "Area": 18.5,
                },
            }
        }
    )


class AttributeRef(BaseModel):
    """Host identifier of a record attribute, resolved once per build."""

    name: str
    parameter_id: str
    builtin: BuiltInAttribute | None = None


class ScheduleField(BaseModel):
    """A column bound to one record attribute."""

    field_id: int
    attribute: AttributeRef
    kind: FieldKind = FieldKind.INSTANCE
    hidden: bool = False
    display_type: DisplayType = DisplayType.STANDARD

    @property
    def name(self) -> str:
        return self.attribute.name


class SortGroupRule(BaseModel):
    """Orders (and optionally groups) a schedule by one field."""

    field_id: int
    order: SortOrder = SortOrder.ASCENDING
    show_header: bool = False
    show_footer: bool = False
    show_blank_line: bool = False


class ScheduleFilter(BaseModel):
    """Restricts a schedule to records whose field value matches a literal."""

    field_id: int
    operator: FilterOperator = FilterOperator.EQUAL
    value: AttributeValue = None


class ScheduleDefinition(BaseModel):
    """A named schedule (report) scoped to one record category.

    Flag defaults mirror a freshly created host schedule: itemized, with no
    grand total rows.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    category: str
    fields: list[ScheduleField] = Field(default_factory=list)
    sort_group_rules: list[SortGroupRule] = Field(default_factory=list)
    filter: ScheduleFilter | None = None

    is_itemized: bool = True
    show_grand_total: bool = False
    show_grand_total_title: bool = False
    show_grand_total_count: bool = False

    def get_field(self, field_id: int) -> ScheduleField:
        for schedule_field in self.fields:
            if schedule_field.field_id == field_id:
                return schedule_field
        raise KeyError(f"Schedule '{self.name}' has no field {field_id}")

    @property
    def visible_fields(self) -> list[ScheduleField]:
        return [f for f in self.fields if not f.hidden]


class BuildResult(BaseModel):
    """Outcome of one schedule builder run."""

    created: int = 0  # Per-department schedules only
    schedule_names: list[str] = Field(default_factory=list)
    aggregate_name: str | None = None
    warnings: list[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Created {self.created} schedules."
