"""The acting identity attached to every authorization call.

Authentication happens upstream; by the time a request reaches the
permission engine it has been resolved to an :class:`Actor`. The admin
capability rides on the actor value itself rather than on any global
flag, so the resolver short-circuits on ``actor.is_admin`` alone.
"""

from __future__ import annotations

from pydantic import BaseModel

from grantgraph.domain.ids import SYSTEM_ROOT_ID


class Actor(BaseModel):
    """A resolved request identity."""

    model_config = {"frozen": True}

    node_id: str
    is_admin: bool = False

    @classmethod
    def system(cls) -> Actor:
        """The seeded root user, which holds the admin capability."""
        return cls(node_id=SYSTEM_ROOT_ID, is_admin=True)

    def __str__(self) -> str:
        return f"{self.node_id} (admin)" if self.is_admin else self.node_id
