"""Error taxonomy for the ingest and ask flows.

Validation errors are raised before any side effect. Gateway errors come from
the generation backend after retrieval has finished. Storage faults are the
plain ``sqlite3.Error`` raised by the database after the ingest transaction
has been rolled back; they are not wrapped here.
"""

from __future__ import annotations


class RagboxError(Exception):
    """Base class for errors that map to a structured error description."""

    status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(RagboxError, ValueError):
    """A required field is missing or blank."""

    status = 400


class GatewayError(RagboxError):
    """The generation service failed, timed out, or answered garbage."""

    status = 502
