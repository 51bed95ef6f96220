"""HTTP API for the time clock engine."""
