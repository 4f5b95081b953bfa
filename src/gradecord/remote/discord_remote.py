"""
Py-Cord backed implementation of :class:`RemoteDirectory`.

Talks to Discord through the client's HTTP route layer only; no gateway
connection is needed for the directory's reads and writes. The login happens
lazily on first use, serialized by a lock so concurrent first calls share a
single login sequence.

Raw JSON payloads are decoded into :class:`RawChannel` records here, so the
rest of the package never touches Discord objects. ``discord.NotFound`` from a
member lookup means "no such user"; every other ``discord.HTTPException``
propagates unchanged.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import discord

from gradecord.configuration.credentials import DiscordCredentials
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
from gradecord.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from gradecord.remote.remote_directory import RemoteDirectory
from gradecord.util.logger import get_logger

logger = get_logger("discord_remote")

TEXT_CHANNEL_TYPES = frozenset({discord.ChannelType.text, discord.ChannelType.news})
VOICE_CHANNEL_TYPES = frozenset({discord.ChannelType.voice, discord.ChannelType.stage_voice})

# Legacy payloads spell the overwrite target type out instead of using 0/1.
_LEGACY_TARGET_TYPES = {"role": PrincipalKind.ROLE, "member": PrincipalKind.USER}


# ==========================================
# Payload decoding / encoding
# ==========================================

def decode_channel_kind(raw_type: Any) -> ChannelKind:
    """Map a Discord channel type value onto a :class:`ChannelKind`."""
    try:
        channel_type = discord.ChannelType(int(raw_type))
    except (TypeError, ValueError):
        return ChannelKind.OTHER

    if channel_type is discord.ChannelType.category:
        return ChannelKind.CATEGORY
    if channel_type in TEXT_CHANNEL_TYPES:
        return ChannelKind.TEXT
    if channel_type in VOICE_CHANNEL_TYPES:
        return ChannelKind.VOICE
    return ChannelKind.OTHER


def _state_of(flag: str, allow: discord.Permissions, deny: discord.Permissions) -> PermissionState:
    if getattr(allow, flag):
        return PermissionState.ALLOW
    if getattr(deny, flag):
        return PermissionState.DENY
    return PermissionState.INHERIT


def decode_overwrite(payload: Mapping[str, Any]) -> PermissionOverwrite:
    """Decode one ``permission_overwrites`` entry."""
    raw_kind = payload.get("type", 0)
    if isinstance(raw_kind, str) and raw_kind in _LEGACY_TARGET_TYPES:
        target_kind = _LEGACY_TARGET_TYPES[raw_kind]
    else:
        target_kind = PrincipalKind(int(raw_kind))

    allow = discord.Permissions(int(payload.get("allow", 0) or 0))
    deny = discord.Permissions(int(payload.get("deny", 0) or 0))
    return PermissionOverwrite(
        target_id=int(payload["id"]),
        target_kind=target_kind,
        permissions=OverwritePermissions(
            view_channel=_state_of("view_channel", allow, deny),
            connect=_state_of("connect", allow, deny),
        ),
    )


def decode_channel(payload: Mapping[str, Any]) -> RawChannel:
    """Decode a guild channel payload into a :class:`RawChannel`."""
    parent_id = payload.get("parent_id")
    return RawChannel(
        id=ChannelID(payload["id"]),
        name=str(payload.get("name") or ""),
        kind=decode_channel_kind(payload.get("type")),
        category_id=ChannelID(parent_id) if parent_id else None,
        position=int(payload.get("position") or 0),
        overwrites=tuple(decode_overwrite(entry) for entry in payload.get("permission_overwrites") or ()),
    )


def encode_overwrite(permissions: OverwritePermissions) -> Tuple[discord.Permissions, discord.Permissions]:
    """Return the ``(allow, deny)`` bitfields for an overwrite."""
    allow = discord.Permissions.none()
    deny = discord.Permissions.none()
    for flag in ("view_channel", "connect"):
        state = getattr(permissions, flag)
        if state is PermissionState.ALLOW:
            setattr(allow, flag, True)
        elif state is PermissionState.DENY:
            setattr(deny, flag, True)
    return allow, deny


# ==========================================
# Remote directory
# ==========================================

class DiscordRemoteDirectory(RemoteDirectory):
    """
    Remote directory for one Discord guild.

    Attributes:
        credentials (DiscordCredentials): Bot token and guild id.
    """

    def __init__(self, credentials: DiscordCredentials, client: Optional[discord.Client] = None) -> None:
        """
        Args:
            credentials: Bot token and guild id, validated on connect.
            client: Optional pre-built client; one is created on first connect otherwise.
        """
        self.credentials = credentials
        self._client = client
        self._guild_id: Optional[GuildID] = None
        self._connect_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._guild_id is not None

    async def connect(self) -> None:
        """
        Log in and resolve the guild.

        Idempotent and safe under concurrency: callers racing on the first
        connect wait on one login sequence.

        Raises:
            ConfigurationError: If the token or guild id is missing or unparseable.
            discord.LoginFailure: If Discord rejects the token.
        """
        if self.is_connected:
            return

        async with self._connect_lock:
            if self.is_connected:
                return

            token = self.credentials.bot_token
            guild_id = self.credentials.guild_id

            if self._client is None:
                self._client = discord.Client(intents=discord.Intents.default())

            logger.info("[DISCORD REMOTE] Logging in to Discord…")
            await self._client.login(token)

            guild = await self._client.http.get_guild(guild_id.to_int())
            self._guild_id = GuildID(guild["id"])
            logger.info("[DISCORD REMOTE] Connected to guild %s (%s)", guild.get("name", "?"), self._guild_id)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._guild_id = None
        logger.info("[DISCORD REMOTE] Connection closed")

    async def _http(self) -> Tuple[Any, int]:
        """Return the HTTP route layer and guild id, connecting first if needed."""
        await self.connect()
        assert self._client is not None and self._guild_id is not None
        return self._client.http, self._guild_id.to_int()

    async def default_principal_id(self) -> int:
        # The @everyone role shares the guild's id.
        _, guild_id = await self._http()
        return guild_id

    async def list_all_channels(self) -> List[RawChannel]:
        http, guild_id = await self._http()
        payloads = await http.get_all_guild_channels(guild_id)
        logger.debug("[DISCORD REMOTE] Fetched %d guild channels", len(payloads))
        return [decode_channel(payload) for payload in payloads]

    async def _create_channel(self, channel_type: discord.ChannelType, name: str, category_id: ChannelID) -> RawChannel:
        http, guild_id = await self._http()
        payload = await http.create_channel(
            guild_id,
            channel_type.value,
            name=name,
            parent_id=str(category_id),
        )
        channel = decode_channel(payload)
        logger.info("[DISCORD REMOTE] Created %s channel %s (%s)", channel_type.name, channel.name, channel.id)
        return channel

    async def create_voice_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        return await self._create_channel(discord.ChannelType.voice, name, category_id)

    async def create_text_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        return await self._create_channel(discord.ChannelType.text, name, category_id)

    async def add_permission_overwrite(
        self,
        channel_id: ChannelID,
        principal_id: int,
        principal_kind: PrincipalKind,
        permissions: OverwritePermissions,
    ) -> None:
        http, _ = await self._http()
        allow, deny = encode_overwrite(permissions)
        await http.edit_channel_permissions(
            int(channel_id),
            int(principal_id),
            str(allow.value),
            str(deny.value),
            principal_kind.value,
        )

    async def remove_permission_overwrite(self, channel_id: ChannelID, principal_id: int) -> None:
        http, _ = await self._http()
        await http.delete_channel_permissions(int(channel_id), int(principal_id))

    async def reorder_channels(self, positions: Sequence[Tuple[ChannelID, int]]) -> None:
        if not positions:
            return
        http, guild_id = await self._http()
        payload: List[Dict[str, Any]] = [
            {"id": str(channel_id), "position": position} for channel_id, position in positions
        ]
        await http.bulk_channel_update(guild_id, payload)

    async def get_user(self, user_id: UserID) -> Optional[RemoteUser]:
        http, guild_id = await self._http()
        try:
            member = await http.get_member(guild_id, int(user_id))
        except discord.NotFound:
            logger.debug("[DISCORD REMOTE] User %s is not a member of the guild", user_id)
            return None

        user = member.get("user") or {}
        return RemoteUser(id=UserID(user.get("id", int(user_id))), name=str(user.get("username") or ""))

    async def create_invite(
        self,
        channel_id: ChannelID,
        *,
        max_age: int,
        max_uses: int,
        temporary: bool,
        unique: bool,
    ) -> InviteDetails:
        http, _ = await self._http()
        payload = await http.create_invite(
            int(channel_id),
            max_age=max_age,
            max_uses=max_uses,
            temporary=temporary,
            unique=unique,
        )
        return InviteDetails(
            code=str(payload["code"]),
            channel_id=channel_id,
            max_age=int(payload.get("max_age", max_age)),
            max_uses=int(payload.get("max_uses", max_uses)),
            temporary=bool(payload.get("temporary", temporary)),
            unique=unique,
        )
