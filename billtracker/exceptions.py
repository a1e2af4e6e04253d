"""Exceptions raised by the bill tracker."""


class BillTrackerError(Exception):
    """Base exception for all bill tracker errors."""


class InvalidDateError(BillTrackerError, ValueError):
    """Raised when a date value cannot be parsed."""


class BillValidationError(BillTrackerError, ValueError):
    """Raised for invalid bill data."""


class InvalidRecurrenceError(BillValidationError):
    """Raised in strict mode for an unknown recurrence."""


class InvalidBillTypeError(BillValidationError):
    """Raised in strict mode for an unknown bill type."""
