from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

# Two days, matching the temporary invites handed out to new members.
DEFAULT_INVITE_MAX_AGE_SECONDS = 2 * 24 * 60 * 60


@dataclass(frozen=True, slots=True)
class InviteSettings:
    """Parameters for the temporary invites created by the channel directory."""

    channel_name: str = "general"
    max_age_seconds: int = DEFAULT_INVITE_MAX_AGE_SECONDS
    max_uses: int = 3
    temporary: bool = True
    unique: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "InviteSettings":
        """Build settings from the ``invites`` config section, falling back to defaults per key."""
        if not isinstance(data, Mapping):
            return cls()
        defaults = cls()
        return cls(
            channel_name=str(data.get("channel_name") or defaults.channel_name),
            max_age_seconds=int(data.get("max_age_seconds", defaults.max_age_seconds)),
            max_uses=int(data.get("max_uses", defaults.max_uses)),
            temporary=bool(data.get("temporary", defaults.temporary)),
            unique=bool(data.get("unique", defaults.unique)),
        )
