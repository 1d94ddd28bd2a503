from __future__ import annotations


class RepositoryError(Exception):
    """A bill repository call failed.

    ``message`` is meant for the person at the counter; it is ``None`` when the
    failure has nothing useful to say and callers fall back to their own text.
    """

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or "")
        self.message = message


class AccessDeniedError(RepositoryError):
    pass


class BillValidationError(RepositoryError):
    pass


class PatientNotFoundError(RepositoryError):
    pass
