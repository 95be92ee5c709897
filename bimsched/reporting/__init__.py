"""Schedule evaluation for BIMSched.

Computes the rows and totals a schedule definition yields over a record set.
"""

from bimsched.reporting.evaluate import ScheduleTable, evaluate_schedule, records_frame

__all__ = ["ScheduleTable", "evaluate_schedule", "records_frame"]
