"""In-memory stand-ins for the remote guild directory used across the test suite."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from gradecord.datatypes.channel_datatypes import (
    ChannelKind,
    InviteDetails,
    OverwritePermissions,
    PermissionOverwrite,
    PermissionState,
    PrincipalKind,
    RawChannel,
    RemoteUser,
)
from gradecord.datatypes.discord_datatypes import ChannelID, UserID
from gradecord.remote.remote_directory import RemoteDirectory

GUILD_ID = 1000
MEMBERS_ROLE_ID = 500

ALLOW = PermissionState.ALLOW
DENY = PermissionState.DENY


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def category(channel_id: int, name: str) -> RawChannel:
    return RawChannel(id=ChannelID(channel_id), name=name, kind=ChannelKind.CATEGORY)


def voice(channel_id: int, name: str, category_id: Optional[int], *overwrites: PermissionOverwrite) -> RawChannel:
    return RawChannel(
        id=ChannelID(channel_id),
        name=name,
        kind=ChannelKind.VOICE,
        category_id=ChannelID(category_id) if category_id is not None else None,
        overwrites=tuple(overwrites),
    )


def text(channel_id: int, name: str, category_id: Optional[int], *overwrites: PermissionOverwrite) -> RawChannel:
    return RawChannel(
        id=ChannelID(channel_id),
        name=name,
        kind=ChannelKind.TEXT,
        category_id=ChannelID(category_id) if category_id is not None else None,
        overwrites=tuple(overwrites),
    )


def member_allowed(user_id: int) -> PermissionOverwrite:
    return PermissionOverwrite(user_id, PrincipalKind.USER, OverwritePermissions(view_channel=ALLOW))


def everyone_denied(connect: bool = False) -> PermissionOverwrite:
    permissions = OverwritePermissions(view_channel=DENY, connect=DENY if connect else PermissionState.INHERIT)
    return PermissionOverwrite(GUILD_ID, PrincipalKind.ROLE, permissions)


def build_guild() -> List[RawChannel]:
    """
    A small guild:

    - "Study Hall": private voice (A-Grade Voice) + text "study-hall" (A-Grade Text), members 101, 102
    - "general-chat": text only in "B-Grade Hellcatz Text", member 104
    - "Open Mic": public voice only in "B-Grade Voice"
    - "general" in "Lobby" and an uncategorized "afk" voice channel, both outside the directory
    """
    return [
        category(10, "A-Grade Text"),
        category(11, "A-Grade Voice"),
        category(12, "A-Grade Hellcatz Text"),
        category(13, "A-Grade Hellcatz Voice"),
        category(20, "B-Grade Text"),
        category(21, "B-Grade Voice"),
        category(22, "B-Grade Hellcatz Text"),
        category(23, "B-Grade Hellcatz Voice"),
        category(30, "Lobby"),
        voice(200, "Study Hall", 11, everyone_denied(connect=True)),
        text(
            201,
            "study-hall",
            10,
            everyone_denied(),
            member_allowed(101),
            member_allowed(102),
            PermissionOverwrite(MEMBERS_ROLE_ID, PrincipalKind.ROLE, OverwritePermissions(view_channel=ALLOW)),
            PermissionOverwrite(103, PrincipalKind.USER, OverwritePermissions(view_channel=DENY)),
        ),
        text(202, "general-chat", 22, everyone_denied(), member_allowed(104)),
        voice(203, "Open Mic", 21),
        text(204, "general", 30),
        voice(205, "afk", None),
    ]


class FakeRemoteDirectory(RemoteDirectory):
    """Keeps the guild in memory and records every call it receives."""

    def __init__(self, channels: Iterable[RawChannel] = (), users: Iterable[int] = ()) -> None:
        self.channels: List[RawChannel] = list(channels)
        self.users = {UserID(user_id) for user_id in users}
        self.list_calls = 0
        self.connect_calls = 0
        self.closed = False
        self.created: List[RawChannel] = []
        self.overwrite_calls: List[Tuple[int, int, PrincipalKind, OverwritePermissions]] = []
        self.removed_overwrites: List[Tuple[int, int]] = []
        self.reorders: List[List[Tuple[int, int]]] = []
        self.invites: List[InviteDetails] = []
        self._next_id = 900

    # -- helpers for assertions ------------------------------------------------

    def channel(self, channel_id) -> RawChannel:
        return next(channel for channel in self.channels if channel.id == ChannelID(channel_id))

    def overwrites_on(self, channel_id) -> Dict[int, OverwritePermissions]:
        return {
            int(overwrite.target_id): overwrite.permissions
            for overwrite in self.channel(channel_id).overwrites
        }

    def _replace(self, updated: RawChannel) -> None:
        self.channels = [updated if channel.id == updated.id else channel for channel in self.channels]

    # -- RemoteDirectory -------------------------------------------------------

    async def connect(self) -> None:
        self.connect_calls += 1

    async def close(self) -> None:
        self.closed = True

    async def default_principal_id(self) -> int:
        return GUILD_ID

    async def list_all_channels(self) -> List[RawChannel]:
        self.list_calls += 1
        return list(self.channels)

    async def _create(self, kind: ChannelKind, name: str, category_id: ChannelID) -> RawChannel:
        self._next_id += 1
        channel = RawChannel(id=ChannelID(self._next_id), name=name, kind=kind, category_id=category_id)
        self.channels.append(channel)
        self.created.append(channel)
        return channel

    async def create_voice_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        return await self._create(ChannelKind.VOICE, name, category_id)

    async def create_text_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        return await self._create(ChannelKind.TEXT, name, category_id)

    async def add_permission_overwrite(self, channel_id, principal_id, principal_kind, permissions) -> None:
        self.overwrite_calls.append((int(channel_id), int(principal_id), principal_kind, permissions))
        channel = self.channel(channel_id)
        kept = tuple(overwrite for overwrite in channel.overwrites if int(overwrite.target_id) != int(principal_id))
        new = PermissionOverwrite(int(principal_id), principal_kind, permissions)
        self._replace(RawChannel(channel.id, channel.name, channel.kind, channel.category_id, channel.position, kept + (new,)))

    async def remove_permission_overwrite(self, channel_id, principal_id) -> None:
        self.removed_overwrites.append((int(channel_id), int(principal_id)))
        channel = self.channel(channel_id)
        kept = tuple(overwrite for overwrite in channel.overwrites if int(overwrite.target_id) != int(principal_id))
        self._replace(RawChannel(channel.id, channel.name, channel.kind, channel.category_id, channel.position, kept))

    async def reorder_channels(self, positions: Sequence[Tuple[ChannelID, int]]) -> None:
        self.reorders.append([(int(channel_id), position) for channel_id, position in positions])
        for channel_id, position in positions:
            channel = self.channel(channel_id)
            self._replace(RawChannel(channel.id, channel.name, channel.kind, channel.category_id, position, channel.overwrites))

    async def get_user(self, user_id: UserID) -> Optional[RemoteUser]:
        if UserID(user_id) in self.users:
            return RemoteUser(id=UserID(user_id), name=f"user{user_id}")
        return None

    async def create_invite(self, channel_id, *, max_age, max_uses, temporary, unique) -> InviteDetails:
        invite = InviteDetails(
            code=f"inv{len(self.invites) + 1}",
            channel_id=ChannelID(channel_id),
            max_age=max_age,
            max_uses=max_uses,
            temporary=temporary,
            unique=unique,
        )
        self.invites.append(invite)
        return invite
