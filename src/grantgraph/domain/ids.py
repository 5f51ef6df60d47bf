"""Kind-tagged node identifiers and link identifiers.

Every node id carries its kind in a three-letter prefix so the graph
and resolver can stay kind-agnostic while higher layers still know
whether they are looking at a user, a group, or a resource:

- ``usr_`` users, ``grp_`` groups, ``col_`` collections, ``spc_`` specimens
- ``lnk_`` explicit permission edges

The suffix is 15 lowercase alphanumerics. IDs are permanent.
"""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass
from enum import StrEnum


class NodeKind(StrEnum):
    """Kinds of node participating in the access-control graph."""

    USER = "user"
    GROUP = "group"
    COLLECTION = "collection"
    SPECIMEN = "specimen"


KIND_PREFIXES: dict[NodeKind, str] = {
    NodeKind.USER: "usr_",
    NodeKind.GROUP: "grp_",
    NodeKind.COLLECTION: "col_",
    NodeKind.SPECIMEN: "spc_",
}

_PREFIX_KINDS: dict[str, NodeKind] = {prefix: kind for kind, prefix in KIND_PREFIXES.items()}

EDGE_PREFIX = "lnk_"
SUFFIX_LENGTH = 15

NODE_ID_PATTERN = re.compile(r"^(usr|grp|col|spc)_[0-9a-z]{15}$")
EDGE_ID_PATTERN = re.compile(r"^lnk_[0-9a-z]{15}$")

# Owner of everything created without an explicit owner. Seeded as an admin.
SYSTEM_ROOT_ID = "usr_000000000000000"

_ALPHABET = string.digits + string.ascii_lowercase


def _random_suffix() -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(SUFFIX_LENGTH))


def generate_node_id(kind: NodeKind | str) -> str:
    """Generate a fresh node id for *kind* (e.g. ``col_4k2m...``)."""
    return f"{KIND_PREFIXES[NodeKind(kind)]}{_random_suffix()}"


def generate_edge_id() -> str:
    """Generate a fresh permission-link id."""
    return f"{EDGE_PREFIX}{_random_suffix()}"


def validate_node_id(node_id: str) -> bool:
    """Check whether *node_id* is a well-formed kind-tagged node id."""
    return NODE_ID_PATTERN.match(node_id) is not None


def validate_edge_id(edge_id: str) -> bool:
    """Check whether *edge_id* is a well-formed link id."""
    return EDGE_ID_PATTERN.match(edge_id) is not None


def kind_of(node_id: str) -> NodeKind | None:
    """Return the kind encoded in *node_id*, or None if it is malformed."""
    if not validate_node_id(node_id):
        return None
    return _PREFIX_KINDS[node_id[:4]]


@dataclass(frozen=True)
class NodeRef:
    """A node id together with its decoded kind."""

    kind: NodeKind
    id: str

    @classmethod
    def parse(cls, raw: str) -> NodeRef:
        """Decode *raw* into a NodeRef.

        Raises:
            ValueError: If *raw* is not a well-formed node id.
        """
        kind = kind_of(raw)
        if kind is None:
            msg = f"Malformed node id: {raw!r}"
            raise ValueError(msg)
        return cls(kind=kind, id=raw)

    def __str__(self) -> str:
        return self.id
