"""Scheduling errors raised by the service layer.

Routes never catch these; ``main.py`` maps each one to an HTTP status.
"""


class SchedulingError(Exception):
    """Base class for every error the scheduling engine raises."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SchedulingError):
    """Malformed rule, exception or time window."""

    status_code = 422


class SlotUnavailable(SchedulingError):
    """The requested timestamp is not free at commit time. Re-query slots."""

    status_code = 409


class InvalidTransition(SchedulingError):
    """Appointment status change not allowed by the lifecycle table."""

    status_code = 409


class NotFound(SchedulingError):
    """Unknown doctor, patient, appointment, rule or exception id."""

    status_code = 404


class StoreUnavailable(SchedulingError):
    """Backing store unreachable. Transient; the caller may retry."""

    status_code = 503
