"""Pay period and payroll calculations."""

from timeclock_engine.calculators.pay_period import (
    current_period,
    list_schedule_types,
    resolve_period,
)
from timeclock_engine.calculators.payroll import (
    compute_payroll,
    elapsed_hours,
    overtime_threshold_for,
)
from timeclock_engine.calculators.types import PayPeriod, PayrollSummary, PayScheduleType

__all__ = [
    "PayPeriod",
    "PayrollSummary",
    "PayScheduleType",
    "compute_payroll",
    "current_period",
    "elapsed_hours",
    "list_schedule_types",
    "overtime_threshold_for",
    "resolve_period",
]
