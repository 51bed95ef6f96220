"""Time clock engine: clock in/out, manual entries with admin review, payroll estimates."""

__version__ = "1.0.0"
