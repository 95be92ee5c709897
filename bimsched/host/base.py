"""Core-to-host interface for schedule construction.

HostDocument is the narrow boundary between the schedule builder and the
application that owns the document (a Revit model, or the standalone SQL
store). Public methods keep the host-independent ScheduleDefinition up to
date and enforce the mutation scope; subclasses mirror each change into
their native document through the ``_apply_*`` hooks.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from bimsched.exceptions import MutationScopeError
from bimsched.models import (
    AttributeRef,
    AttributeValue,
    BuiltInAttribute,
    DisplayType,
    FieldKind,
    FilterOperator,
    Record,
    ScheduleDefinition,
    ScheduleField,
    ScheduleFilter,
    SortGroupRule,
    SortOrder,
)

logger = logging.getLogger(__name__)


class MutationScope:
    """One atomic unit of document change.

    Usable directly (``commit()`` / ``rollback()``) or as a context manager
    that commits on normal exit and rolls back when an exception escapes.
    A scope is single-use.
    """

    def __init__(self, host: HostDocument, label: str):
        self.host = host
        self.label = label
        self.state = "open"

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def commit(self) -> None:
        self._close("committed")
        try:
            self.host._commit_scope(self)
        except Exception:
            # Host rejected the commit: nothing of this scope may persist
            self.state = "rolled_back"
            self.host._rollback_scope(self)
            raise

    def rollback(self) -> None:
        self._close("rolled_back")
        self.host._rollback_scope(self)

    def _close(self, new_state: str) -> None:
        if not self.is_open:
            raise MutationScopeError(
                f"Mutation scope '{self.label}' is already {self.state}"
            )
        self.state = new_state

    def __enter__(self) -> MutationScope:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self.is_open:
            return False
        if exc_type is None:
            self.commit()
        else:
            logger.warning("Rolling back mutation scope '%s': %s", self.label, exc)
            self.rollback()
        return False


class HostDocument(ABC):
    """Abstract host document.

    Reads (records, attribute lookup, existing schedule names) are allowed at
    any time. Every mutation requires an open MutationScope; only one scope
    can be open at a time.
    """

    def __init__(self) -> None:
        self._scope: MutationScope | None = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @abstractmethod
    def fetch_records(self, category: str) -> Sequence[Record]:
        """Return every record of the category, in host order."""

    @abstractmethod
    def lookup_attribute(
        self, record: Record, attribute: str | BuiltInAttribute
    ) -> AttributeRef:
        """Resolve a named or well-known attribute on a record.

        Raises:
            MissingAttributeError: If the record does not carry the attribute
        """

    @abstractmethod
    def report_names(self, category: str | None = None) -> set[str]:
        """Names of the schedules already present in the document."""

    # ------------------------------------------------------------------
    # Mutation scope
    # ------------------------------------------------------------------

    @property
    def in_scope(self) -> bool:
        return self._scope is not None and self._scope.is_open

    def begin_mutation_scope(self, label: str) -> MutationScope:
        if self.in_scope:
            raise MutationScopeError(
                f"Mutation scope '{self._scope.label}' is already open"
            )
        self._begin(label)
        self._scope = MutationScope(self, label)
        return self._scope

    def _commit_scope(self, scope: MutationScope) -> None:
        self._scope = None
        self._commit()

    def _rollback_scope(self, scope: MutationScope) -> None:
        self._scope = None
        self._rollback()

    def _require_scope(self, operation: str) -> None:
        if not self.in_scope:
            raise MutationScopeError(f"{operation} requires an open mutation scope")

    @abstractmethod
    def _begin(self, label: str) -> None: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_report(self, category: str, name: str) -> ScheduleDefinition:
        self._require_scope("create_report")
        report = ScheduleDefinition(name=name, category=category)
        self._apply_create(report)
        return report

    def add_field(
        self,
        report: ScheduleDefinition,
        kind: FieldKind,
        attribute: AttributeRef,
        hidden: bool = False,
    ) -> ScheduleField:
        self._require_scope("add_field")
        schedule_field = ScheduleField(
            field_id=len(report.fields), attribute=attribute, kind=kind, hidden=hidden
        )
        report.fields.append(schedule_field)
        self._apply_field(report, schedule_field)
        return schedule_field

    def set_field_display_type(
        self,
        report: ScheduleDefinition,
        schedule_field: ScheduleField,
        display_type: DisplayType,
    ) -> None:
        self._require_scope("set_field_display_type")
        report.get_field(schedule_field.field_id)
        schedule_field.display_type = display_type
        self._apply_field_display(report, schedule_field)

    def add_filter(
        self,
        report: ScheduleDefinition,
        schedule_field: ScheduleField,
        operator: FilterOperator,
        value: AttributeValue,
    ) -> ScheduleFilter:
        self._require_scope("add_filter")
        if report.filter is not None:
            raise ValueError(f"Schedule '{report.name}' already has a filter")
        report.get_field(schedule_field.field_id)
        schedule_filter = ScheduleFilter(
            field_id=schedule_field.field_id, operator=operator, value=value
        )
        report.filter = schedule_filter
        self._apply_filter(report, schedule_filter)
        return schedule_filter

    def add_sort_group_rule(
        self,
        report: ScheduleDefinition,
        schedule_field: ScheduleField,
        order: SortOrder = SortOrder.ASCENDING,
        show_header: bool = False,
        show_footer: bool = False,
        show_blank_line: bool = False,
    ) -> SortGroupRule:
        self._require_scope("add_sort_group_rule")
        report.get_field(schedule_field.field_id)
        rule = SortGroupRule(
            field_id=schedule_field.field_id,
            order=order,
            show_header=show_header,
            show_footer=show_footer,
            show_blank_line=show_blank_line,
        )
        report.sort_group_rules.append(rule)
        self._apply_sort_group_rule(report, rule)
        return rule

    def set_report_flags(
        self,
        report: ScheduleDefinition,
        itemized: bool,
        show_grand_total: bool,
        show_grand_total_title: bool,
        show_grand_total_count: bool | None = None,
    ) -> None:
        """Set the itemization and grand-total flags.

        ``show_grand_total_count=None`` leaves the count flag at its current value.
        """
        self._require_scope("set_report_flags")
        report.is_itemized = itemized
        report.show_grand_total = show_grand_total
        report.show_grand_total_title = show_grand_total_title
        if show_grand_total_count is not None:
            report.show_grand_total_count = show_grand_total_count
        self._apply_flags(report)

    @abstractmethod
    def _apply_create(self, report: ScheduleDefinition) -> None: ...

    @abstractmethod
    def _apply_field(self, report: ScheduleDefinition, schedule_field: ScheduleField) -> None: ...

    @abstractmethod
    def _apply_field_display(
        self, report: ScheduleDefinition, schedule_field: ScheduleField
    ) -> None: ...

    @abstractmethod
    def _apply_filter(self, report: ScheduleDefinition, schedule_filter: ScheduleFilter) -> None: ...

    @abstractmethod
    def _apply_sort_group_rule(self, report: ScheduleDefinition, rule: SortGroupRule) -> None: ...

    @abstractmethod
    def _apply_flags(self, report: ScheduleDefinition) -> None: ...
