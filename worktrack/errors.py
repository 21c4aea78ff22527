"""Exceptions raised by the store and the request layer.

The API blueprint maps these onto JSON error responses: validation problems
become 400, missing records 404.  Anything not derived from
``WorkTrackError`` is treated as an internal error.
"""


class WorkTrackError(Exception):
    """Base class for domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class NotFoundError(WorkTrackError):
    """A referenced id or key does not exist."""

    status_code = 404

    def __init__(self, kind: str):
        super().__init__(f"{kind} not found")
        self.kind = kind


class ValidationError(WorkTrackError):
    """Input was malformed or out of range.

    ``errors`` holds one entry per offending field in pydantic's error shape
    (``loc``, ``msg``, ``type``) so clients get the same structure whether the
    problem was caught by a schema or by the store.
    """

    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class DuplicateKeyError(ValidationError):
    """A unique business key (employeeId, cardId, qrCode) is already taken."""

    def __init__(self, field: str, value):
        super().__init__(
            f"{field} already exists",
            [{"loc": [field], "msg": f"{value!r} is already in use", "type": "unique"}],
        )
        self.field = field
        self.value = value


class ReportNotReadyError(WorkTrackError):
    status_code = 400

    def __init__(self):
        super().__init__("Report not ready for download")
