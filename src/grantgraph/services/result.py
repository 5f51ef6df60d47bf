"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All caller-facing service methods return ServiceResult.
The CLI and any serving layer consume this type; the status a serving
layer should answer with is available as :attr:`ServiceResult.status`.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"create_grant"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (status override, telemetry, cache stats).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @property
    def status(self) -> int:
        """Status code for a serving layer: 200/201 on success, error status otherwise."""
        if self.error is not None:
            return int(self.error.detail.get("status", 500))
        return int((self.meta or {}).get("status", 200))
