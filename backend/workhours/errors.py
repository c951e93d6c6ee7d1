class WorkHoursError(Exception):
    """Base class for errors raised by the work-hours engine."""


class InvalidInputError(WorkHoursError, ValueError):
    """Caller supplied a value the engine cannot interpret (bad date, unknown period)."""


class InvariantViolation(WorkHoursError):
    """A computed value broke an engine invariant; fails the single computation."""


class UpstreamUnavailable(WorkHoursError):
    """A collaborator (swipe feed, period totals, attendance status) could not answer."""

    def __init__(self, source: str, message: str = "") -> None:
        self.source = source
        self.message = message or f"{source} unavailable"
        super().__init__(self.message)
