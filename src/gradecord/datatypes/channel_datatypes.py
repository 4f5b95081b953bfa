"""
Channel data model shared by the remote adapter, the projector and the directory.

Raw platform objects are decoded into :class:`RawChannel` records tagged with a
:class:`ChannelKind`, so nothing downstream needs to inspect platform classes.
:class:`ChannelRecord` is the derived, cache-resident view of one logical
voice/text channel pairing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from gradecord.datatypes.discord_datatypes import ChannelID, UserID


def normalize_channel_name(name: str) -> str:
    """Return the lowercase, space-to-hyphen form used as a channel's identity."""
    return name.lower().replace(" ", "-")


class ChannelKind(Enum):
    """Capability tag for a raw guild channel."""

    TEXT = "text"
    VOICE = "voice"
    CATEGORY = "category"
    OTHER = "other"


class PrincipalKind(Enum):
    """Whether a permission overwrite targets a role or an individual user."""

    ROLE = 0
    USER = 1


class PermissionState(Enum):
    """Tri-state value of a single capability inside an overwrite."""

    ALLOW = "allow"
    DENY = "deny"
    INHERIT = "inherit"


@dataclass(frozen=True, slots=True)
class OverwritePermissions:
    """The view/connect capabilities an overwrite allows or denies."""

    view_channel: PermissionState = PermissionState.INHERIT
    connect: PermissionState = PermissionState.INHERIT


# Canonical overwrites applied by the directory.
TEXT_DENY = OverwritePermissions(view_channel=PermissionState.DENY)
TEXT_ALLOW = OverwritePermissions(view_channel=PermissionState.ALLOW)
VOICE_DENY = OverwritePermissions(view_channel=PermissionState.DENY, connect=PermissionState.DENY)
VOICE_ALLOW = OverwritePermissions(view_channel=PermissionState.ALLOW, connect=PermissionState.ALLOW)


@dataclass(frozen=True, slots=True)
class PermissionOverwrite:
    """A per-channel, per-principal permission rule."""

    target_id: int
    target_kind: PrincipalKind
    permissions: OverwritePermissions = field(default_factory=OverwritePermissions)


@dataclass(frozen=True, slots=True)
class RawChannel:
    """
    A guild channel or category as reported by the remote directory.

    Attributes:
        id (ChannelID): Platform identifier of the channel.
        name (str): Display name.
        kind (ChannelKind): Capability tag.
        category_id (Optional[ChannelID]): Parent category, if nested.
        position (int): Sort position reported by the platform.
        overwrites (Tuple[PermissionOverwrite, ...]): Permission overwrites on the channel.
    """

    id: ChannelID
    name: str
    kind: ChannelKind
    category_id: Optional[ChannelID] = None
    position: int = 0
    overwrites: Tuple[PermissionOverwrite, ...] = ()

    @property
    def is_voice(self) -> bool:
        return self.kind is ChannelKind.VOICE

    @property
    def is_text(self) -> bool:
        return self.kind is ChannelKind.TEXT

    @property
    def is_category(self) -> bool:
        return self.kind is ChannelKind.CATEGORY

    def overwrite_for(self, target_id: int) -> Optional[PermissionOverwrite]:
        """Return the overwrite targeting ``target_id``, or ``None`` when absent."""
        for overwrite in self.overwrites:
            if int(overwrite.target_id) == int(target_id):
                return overwrite
        return None


@dataclass(frozen=True, slots=True)
class RemoteUser:
    """A guild member resolved from a user identifier."""

    id: UserID
    name: str = ""


@dataclass(frozen=True, slots=True)
class InviteDetails:
    """Descriptor of an invite created on a channel."""

    code: str
    channel_id: ChannelID
    max_age: int
    max_uses: int
    temporary: bool
    unique: bool = True

    @property
    def url(self) -> str:
        return f"https://discord.gg/{self.code}"


@dataclass(frozen=True, slots=True)
class ChannelRecord:
    """
    Derived view of one logical channel pairing.

    A record may carry a voice sub-channel, a text sub-channel, or both. As an
    input to create/modify operations the ids may be absent and ``is_voice`` /
    ``is_text`` express which sub-channels are requested.

    Attributes:
        name (str): Canonical display name.
        category_level (str): Single-character tier tag ("A".."D").
        voice_id (Optional[ChannelID]): Voice sub-channel id.
        text_id (Optional[ChannelID]): Text sub-channel id.
        is_voice (bool): Whether a voice sub-channel exists / is requested.
        is_text (bool): Whether a text sub-channel exists / is requested.
        is_public (bool): False when the voice sub-channel denies connect to everyone.
        is_restricted_audience (bool): Whether the record lives in the restricted category group.
        members (Optional[FrozenSet[UserID]]): Users explicitly granted view access.
    """

    name: str
    category_level: str = ""
    voice_id: Optional[ChannelID] = None
    text_id: Optional[ChannelID] = None
    is_voice: bool = False
    is_text: bool = False
    is_public: bool = True
    is_restricted_audience: bool = False
    members: Optional[FrozenSet[UserID]] = frozenset()

    def __post_init__(self) -> None:
        if self.members is not None:
            object.__setattr__(self, "members", frozenset(UserID(member) for member in self.members))

    @property
    def normalized_name(self) -> str:
        return normalize_channel_name(self.name)
