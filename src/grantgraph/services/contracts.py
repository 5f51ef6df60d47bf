"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions (for example ``items`` vs ``links``)
fail fast in tests and during development.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class EdgeItem(BaseModel):
    """One explicit permission edge."""

    id: str
    subject_id: str
    target_id: str
    level: Literal["read", "write", "manage"]
    link_name: str
    is_trashed: bool
    expires_at: str | None = None
    created: str


class EdgeListResultData(BaseModel):
    """Payload contract for ``GrantService.list_grants`` and ``list_links``."""

    target_id: str | None = None
    count: int
    items: list[EdgeItem]


class NodeItem(BaseModel):
    """One node row."""

    model_config = ConfigDict(extra="allow")

    id: str
    kind: str
    name: str
    owner_id: str | None = None
    is_admin: bool
    is_trashed: bool
    trash_at: str | None = None
    created: str
    modified: str


class NodeListResultData(BaseModel):
    """Payload contract for ``AccessService.list_readable``."""

    kind: str | None = None
    level: Literal["read", "write", "manage"]
    count: int
    items: list[NodeItem]


class AccessDecisionData(BaseModel):
    """Payload contract for ``AccessService.authorize`` and ``require``."""

    actor_id: str
    target_id: str
    level: Literal["read", "write", "manage"]
    allowed: bool


class EffectiveLevelData(BaseModel):
    """Payload contract for ``AccessService.effective_level``."""

    actor_id: str
    target_id: str
    level: Literal["read", "write", "manage"] | None = None


class CheckIssue(BaseModel):
    """One integrity finding returned by ``CheckService.check``."""

    model_config = ConfigDict(extra="allow")

    category: str
    severity: Literal["warning", "error"]
    node_id: str | None = None
    edge_id: str | None = None
    message: str


class CheckResultData(BaseModel):
    """Payload contract for ``CheckService.check``."""

    issues: list[CheckIssue]
    count: int
    error_count: int
    warning_count: int
    healthy: bool
