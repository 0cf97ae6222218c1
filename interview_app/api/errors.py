from fastapi import HTTPException

from interview_app.core.exceptions import (
    CandidateNotFound,
    PersistenceError,
    ServiceUnavailable,
    SessionBusy,
    ValidationError,
)

_STATUS_CODES = [
    (CandidateNotFound, 404),
    (SessionBusy, 409),
    (ValidationError, 502),
    (ServiceUnavailable, 503),
    (PersistenceError, 500),
    (ValueError, 400),
]


def to_http_error(exc: Exception) -> HTTPException:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
