"""Translate domain errors into HTTP responses."""

from fastapi import HTTPException

from models.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    TrainingError,
    UnknownProviderError,
    ValidationError,
)


def to_http_exception(exc: TrainingError) -> HTTPException:
    """Map a TrainingError onto the status code the API reports for it."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail={"message": str(exc), "fields": exc.fields})
    if isinstance(exc, UnknownProviderError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidStateTransitionError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
