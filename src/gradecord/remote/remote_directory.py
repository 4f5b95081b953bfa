"""
Contract for the remote guild directory consumed by :class:`ChannelDirectory`.

Implementations talk to the chat platform. Every method may suspend on network
I/O and may raise the platform's transport errors; callers do not retry.
Implementations establish their connection lazily and idempotently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from gradecord.datatypes.channel_datatypes import (
    InviteDetails,
    OverwritePermissions,
    PrincipalKind,
    RawChannel,
    RemoteUser,
)
from gradecord.datatypes.discord_datatypes import ChannelID, UserID


class RemoteDirectory(ABC):
    """Read/write access to a single guild's channels, users, overwrites and invites."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish the connection; a no-op when already connected."""

    @abstractmethod
    async def close(self) -> None:
        """Release the connection."""

    @abstractmethod
    async def default_principal_id(self) -> int:
        """Return the id of the guild's @everyone role."""

    @abstractmethod
    async def list_all_channels(self) -> List[RawChannel]:
        """Return every channel and category in the guild."""

    async def list_categories(self) -> List[RawChannel]:
        """Return the guild's categories."""
        return [channel for channel in await self.list_all_channels() if channel.is_category]

    async def list_text_channels(self) -> List[RawChannel]:
        """Return the guild's text-capable channels."""
        return [channel for channel in await self.list_all_channels() if channel.is_text]

    @abstractmethod
    async def create_voice_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        """Create a voice channel under ``category_id`` and return it."""

    @abstractmethod
    async def create_text_channel(self, name: str, category_id: ChannelID) -> RawChannel:
        """Create a text channel under ``category_id`` and return it."""

    @abstractmethod
    async def add_permission_overwrite(
        self,
        channel_id: ChannelID,
        principal_id: int,
        principal_kind: PrincipalKind,
        permissions: OverwritePermissions,
    ) -> None:
        """Set (create or replace) the overwrite for a principal on a channel."""

    @abstractmethod
    async def remove_permission_overwrite(self, channel_id: ChannelID, principal_id: int) -> None:
        """Delete the overwrite for a principal on a channel."""

    @abstractmethod
    async def reorder_channels(self, positions: Sequence[Tuple[ChannelID, int]]) -> None:
        """Assign positions to channels in one bulk update."""

    @abstractmethod
    async def get_user(self, user_id: UserID) -> Optional[RemoteUser]:
        """Resolve a user id to a guild member, or ``None`` when there is no such member."""

    @abstractmethod
    async def create_invite(
        self,
        channel_id: ChannelID,
        *,
        max_age: int,
        max_uses: int,
        temporary: bool,
        unique: bool,
    ) -> InviteDetails:
        """Create an invite on a channel."""
