"""
User roles and the single capability check used by every guard.

A user holds exactly one ``Role`` at a time.  Guards never compare role
strings themselves; they ask ``has_capability`` whether a role is in the
set an operation requires.
"""

from enum import Enum
from typing import Iterable, Optional, Union


class Role(str, Enum):
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Return the matching role or ``None`` for unknown/empty values."""
        try:
            return cls(value)
        except ValueError:
            return None


def has_capability(role: Union[Role, str, None], required: Iterable[Role]) -> bool:
    """Return True if ``role`` is one of the ``required`` roles.

    Stored values are plain strings, so ``role`` may be either a
    ``Role`` or its value; anything unrecognised has no capabilities.
    """
    parsed = role if isinstance(role, Role) else Role.parse(role)
    if parsed is None:
        return False
    return parsed in set(required)


ADMIN_ONLY = frozenset({Role.ADMIN})
CREATOR_OR_ADMIN = frozenset({Role.CREATOR, Role.ADMIN})
