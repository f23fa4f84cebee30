"""
errors.py
---------
Error taxonomy for itinerary generation.

Every exception carries a stable ``ERROR_*`` code which is also the prefix of
its message, so log lines and HTTP error details stay grep-able:

  InvalidRequestError     request rejected before any planning starts
  ExternalServiceError    relevance scorer / distance oracle / route oracle failed
  ItineraryGenerationError  aggregated failure: which day, which dependency
  CandidateScoreError     relevance score assigned twice to one candidate

Infeasible days (no candidate survives) are NOT errors; they yield an empty
DayPlan with a note.
"""

from __future__ import annotations


class TriplineError(RuntimeError):
    """Base class; ``code`` is the ERROR_* identifier."""

    code: str = "ERROR_TRIPLINE"

    def __init__(self, message: str, code: str | None = None) -> None:
        if code:
            self.code = code
        super().__init__(f"{self.code}: {message}")


class InvalidRequestError(TriplineError, ValueError):
    """Malformed trip request. ``errors`` lists every individual failure."""

    code = "ERROR_INVALID_REQUEST"

    def __init__(self, errors: list[str] | str, code: str | None = None) -> None:
        self.errors = [errors] if isinstance(errors, str) else list(errors)
        super().__init__("; ".join(self.errors), code=code)


class ExternalServiceError(TriplineError):
    """A call to an external collaborator failed or timed out."""

    code = "ERROR_EXTERNAL_SERVICE"

    def __init__(self, service: str, message: str) -> None:
        self.service = service
        super().__init__(f"[{service}] {message}")


class ItineraryGenerationError(TriplineError):
    """
    Single aggregated error returned to the caller when generation aborts.

    ``day_number`` is None when the failure happened outside the per-day loop
    (route stitching).
    """

    code = "ERROR_ITINERARY_GENERATION"

    def __init__(
        self,
        service: str,
        cause: Exception,
        day_number: int | None = None,
    ) -> None:
        self.service = service
        self.day_number = day_number
        self.cause = cause
        where = f"day {day_number}" if day_number is not None else "route stitching"
        super().__init__(f"{where} failed in {service}: {cause}")


class CandidateScoreError(TriplineError):
    code = "ERROR_CANDIDATE_SCORE"
