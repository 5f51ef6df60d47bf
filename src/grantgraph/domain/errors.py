"""Error kinds raised by the permission engine.

Request-facing kinds map onto the status codes existing clients expect:

- :class:`NotFoundError` (404): the actor cannot see the node or edge at
  all. "Does not exist" and "exists but invisible" get the
  same answer.
- :class:`ValidationError` (422): a write references a node the actor
  cannot see, so the reference itself does not resolve.
- :class:`ForbiddenError` (403): the actor can read the object but lacks
  the level the operation needs.

:class:`GraphConsistencyError` (500) is internal: an ownership cycle or a
dangling reference. It aborts the operation and is never downgraded.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ForbiddenError",
    "GrantGraphError",
    "GraphConsistencyError",
    "NotFoundError",
    "ValidationError",
]


class GrantGraphError(Exception):
    """Base for all errors the permission engine raises.

    Attributes:
        code: Stable error code used in ServiceError payloads.
        status: Status code the serving layer responds with.
        message: Human-readable description.
        detail: Extra context (ids involved, required level, ...).
    """

    code: str = "INTERNAL_ERROR"
    status: int = 500
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, **detail: Any) -> None:
        self.message = message or self.message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(GrantGraphError):
    code = "NOT_FOUND"
    status = 404
    message = "Not found"


class ValidationError(GrantGraphError):
    code = "VALIDATION_ERROR"
    status = 422
    message = "Invalid reference"


class ForbiddenError(GrantGraphError):
    code = "FORBIDDEN"
    status = 403
    message = "Forbidden"


class GraphConsistencyError(GrantGraphError):
    code = "GRAPH_CONSISTENCY"
    status = 500
    message = "Permission graph invariant violated"
