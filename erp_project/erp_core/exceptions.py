from django.core.exceptions import ValidationError


class UnbalancedJournalError(ValidationError):
    """Raised when a journal's debits and credits differ."""
    pass


class ClosedPeriodError(ValidationError):
    """Raised when posting into a period that is closed or locked."""
    pass


class NoActivePeriodError(ValidationError):
    """Raised when a tenant has no active accounting period."""
    pass
