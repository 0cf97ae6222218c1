class InterviewError(Exception):
    """Base class for failures surfaced by the session controller."""


class ValidationError(InterviewError):
    """The backend returned a malformed question set."""


class ServiceUnavailable(InterviewError):
    """A backend call failed: network error, timeout, non-success status or
    an unreadable response body."""


class PersistenceError(InterviewError):
    """The key-value store could not be read or written."""


class SessionBusy(InterviewError):
    """Questions are still being generated for another open request."""


class CandidateNotFound(ValueError):
    pass
