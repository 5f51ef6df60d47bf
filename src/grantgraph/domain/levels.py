"""Permission levels and their total order.

Three levels, ``read < write < manage``. A higher level implies every
lower one, so a check for ``write`` succeeds wherever ``manage`` does.
Links are stored and shown by their lowercase label; the legacy
``can_*`` link names are accepted on input.
"""

from __future__ import annotations

from enum import IntEnum


class Level(IntEnum):
    """Access level carried by a permission edge."""

    READ = 1
    WRITE = 2
    MANAGE = 3

    @property
    def label(self) -> str:
        """Lowercase storage/display name (``"read"``, ``"write"``, ``"manage"``)."""
        return self.name.lower()

    @property
    def link_name(self) -> str:
        """Permission link name (``"can_read"``, ``"can_write"``, ``"can_manage"``)."""
        return f"can_{self.label}"

    @classmethod
    def parse(cls, value: str | int | Level) -> Level:
        """Coerce a label, link name, or integer into a :class:`Level`.

        Raises:
            ValueError: If *value* does not name a level.
        """
        if isinstance(value, Level):
            return value
        if isinstance(value, int):
            return cls(value)

        text = value.strip().lower()
        text = text.removeprefix("can_")
        try:
            return cls[text.upper()]
        except KeyError:
            msg = f"Unknown permission level: {value!r}. Expected one of {LEVEL_LABELS}"
            raise ValueError(msg) from None


LEVEL_LABELS: tuple[str, ...] = ("read", "write", "manage")

# Strongest first; effective-level resolution stops at the first match.
LEVELS_DESCENDING: tuple[Level, ...] = (Level.MANAGE, Level.WRITE, Level.READ)
