"""Exceptions raised while building schedules."""

from __future__ import annotations


class ScheduleBuildError(Exception):
    """Base class for schedule construction failures."""
    pass


class MissingAttributeError(ScheduleBuildError):
    """Raised when a record attribute cannot be resolved for a schedule field."""

    def __init__(self, attribute: str, message: str | None = None):
        self.attribute = attribute
        super().__init__(message or f"Attribute '{attribute}' not found on record")


class EmptyRecordSetError(MissingAttributeError):
    """Raised when there is no record to resolve attributes against."""

    def __init__(self, attribute: str, category: str | None = None):
        self.category = category
        where = f" of category '{category}'" if category else ""
        super().__init__(
            attribute,
            f"Cannot resolve attribute '{attribute}': no records{where} in document",
        )


class MutationScopeError(ScheduleBuildError):
    """Raised when the host document is mutated outside an active scope."""
    pass
