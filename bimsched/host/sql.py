"""Host document backed by the standalone SQL store.

Records come from the ``records`` table; each schedule is persisted as a
JSON definition in the ``schedules`` table. The mutation scope maps onto
the session transaction, so a rollback discards every schedule created in
the scope.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from bimsched.db.models import RecordModel, ScheduleModel
from bimsched.exceptions import MissingAttributeError
from bimsched.host.base import HostDocument
from bimsched.models import (
    AttributeRef,
    BuiltInAttribute,
    Record,
    ScheduleDefinition,
    ScheduleField,
    ScheduleFilter,
    SortGroupRule,
)

logger = logging.getLogger(__name__)


class SqlDocument(HostDocument):
    """HostDocument over a SQLAlchemy session."""

    def __init__(self, session: Session):
        super().__init__()
        self.session = session
        self._rows: dict[str, ScheduleModel] = {}

    def fetch_records(self, category: str) -> list[Record]:
        rows = self.session.scalars(
            select(RecordModel).where(RecordModel.category == category)
        ).all()
        return [
            Record(id=row.id, category=row.category, attributes=dict(row.attributes))
            for row in rows
        ]

    def lookup_attribute(
        self, record: Record, attribute: str | BuiltInAttribute
    ) -> AttributeRef:
        if isinstance(attribute, BuiltInAttribute):
            name = attribute.attribute_name
            if not record.has(name):
                raise MissingAttributeError(
                    name, f"Built-in attribute {attribute.value} not found on record {record.id}"
                )
            return AttributeRef(name=name, parameter_id=attribute.value, builtin=attribute)

        if not record.has(attribute):
            raise MissingAttributeError(
                attribute, f"Attribute '{attribute}' not found on record {record.id}"
            )
        return AttributeRef(name=attribute, parameter_id=attribute)

    def report_names(self, category: str | None = None) -> set[str]:
        stmt = select(ScheduleModel.name)
        if category is not None:
            stmt = stmt.where(ScheduleModel.category == category)
        return set(self.session.scalars(stmt).all())

    def load_schedules(self, category: str | None = None) -> list[ScheduleDefinition]:
        """Return the schedules persisted in the document, oldest first."""
        stmt = select(ScheduleModel).order_by(ScheduleModel.created_at, ScheduleModel.name)
        if category is not None:
            stmt = stmt.where(ScheduleModel.category == category)
        return [
            ScheduleDefinition.model_validate(row.definition)
            for row in self.session.scalars(stmt).all()
        ]

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def _begin(self, label: str) -> None:
        logger.debug("Beginning mutation scope '%s'", label)
        self._rows.clear()

    def _commit(self) -> None:
        try:
            self.session.commit()
        finally:
            self._rows.clear()

    def _rollback(self) -> None:
        self.session.rollback()
        self._rows.clear()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _save(self, report: ScheduleDefinition) -> None:
        row = self._rows[report.id]
        # JSON columns only detect reassignment
        row.definition = report.model_dump(mode="json")
        self.session.flush()

    def _apply_create(self, report: ScheduleDefinition) -> None:
        row = ScheduleModel(id=report.id, name=report.name, category=report.category)
        self._rows[report.id] = row
        self.session.add(row)
        self._save(report)

    def _apply_field(self, report: ScheduleDefinition, schedule_field: ScheduleField) -> None:
        self._save(report)

    def _apply_field_display(
        self, report: ScheduleDefinition, schedule_field: ScheduleField
    ) -> None:
        self._save(report)

    def _apply_filter(self, report: ScheduleDefinition, schedule_filter: ScheduleFilter) -> None:
        self._save(report)

    def _apply_sort_group_rule(self, report: ScheduleDefinition, rule: SortGroupRule) -> None:
        self._save(report)

    def _apply_flags(self, report: ScheduleDefinition) -> None:
        self._save(report)
