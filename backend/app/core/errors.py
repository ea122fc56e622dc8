from __future__ import annotations


class StoreError(Exception):
    """Base class for errors raised by the persistence layer."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(StoreError):
    status_code = 404


class ValidationError(StoreError):
    status_code = 422


class InvalidTransitionError(ValidationError):
    pass


class ForeignKeyViolationError(StoreError):
    status_code = 409


class DuplicateKeyError(StoreError):
    status_code = 409


class AuditLogImmutableError(StoreError):
    status_code = 409
