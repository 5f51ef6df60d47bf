"""Node and explicit-edge records as read from the graph store."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, field_serializer, field_validator

from grantgraph.domain.ids import NodeKind
from grantgraph.domain.levels import Level


class NodeRecord(BaseModel):
    """A user, group, or resource row."""

    model_config = {"frozen": True}

    id: str
    kind: NodeKind
    name: str = ""
    owner_id: str | None = None
    is_admin: bool = False
    is_trashed: bool = False
    trash_at: datetime | None = None
    created: str
    modified: str

    def is_hidden(self, now: datetime) -> bool:
        """True once the node is trashed or its scheduled trash time has passed."""
        return self.is_trashed or (self.trash_at is not None and self.trash_at <= now)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ExplicitEdge(BaseModel):
    """A persisted permission grant ``(subject, target, level)``.

    The level is fixed at creation; changing it means delete + recreate.
    """

    model_config = {"frozen": True}

    id: str
    subject_id: str
    target_id: str
    level: Level
    is_trashed: bool = False
    expires_at: datetime | None = None
    created: str

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Level:
        return Level.parse(value)

    @field_serializer("level")
    def _serialize_level(self, level: Level) -> str:
        return level.label

    @property
    def link_name(self) -> str:
        return self.level.link_name

    def is_active(self, now: datetime) -> bool:
        """False once the edge is trashed or past its expiry."""
        if self.is_trashed:
            return False
        return self.expires_at is None or self.expires_at > now

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["link_name"] = self.link_name
        return data
