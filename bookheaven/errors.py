"""Domain failures raised by the cart ledger, the order service and the catalog.

Routes never build error responses themselves: they let these propagate and
the handlers registered in ``bookheaven.main`` turn them into envelopes.
"""
from typing import Any


class BookstoreError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BookstoreError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, id: Any, message: str | None = None):
        self.entity = entity
        self.id = id
        super().__init__(message or f"{entity.capitalize()} not found")


class InvalidArgument(BookstoreError):
    status_code = 400
    code = "invalid_argument"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(reason)


class StorageFailure(BookstoreError):
    status_code = 500
    code = "storage_failure"

    def __init__(self, cause: BaseException | None = None):
        self.cause = cause
        super().__init__("Internal server error")
