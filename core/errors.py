"""Exceptions raised by the record core."""


class LicitProError(Exception):
    """Base class for record core errors."""


class RecordNotFoundError(LicitProError):
    """Raised when no record in the store carries the requested id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record '{record_id}' not found.")
        self.record_id = record_id


class UnknownFieldError(LicitProError):
    """Raised when a field name is unknown or not user-editable."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Field '{field}' cannot be edited.")
        self.field = field
