"""
ChannelDirectory: cache-coherent reads and writes of the guild's grade channels.

Responsibilities:
- Cache the raw guild channel listing and the records derived from it
- Look channels up by name without hitting Discord on every call
- Create voice/text channel pairs with their permission overwrites
- Apply membership changes as permission overwrite diffs
- Keep cached entries coherent with every mutation it performs

Cache layout:
- ``_Channels``                 raw listing snapshot
- ``_Channel:<normalized-name>`` one :class:`ChannelRecord`

All entries expire after the configured TTL and are linked to one shared
:class:`ExpirationToken`, so :meth:`ChannelDirectory.invalidate` drops the
listing and every per-channel record in one step.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

from gradecord.cache.keyed_cache import ExpirationToken, KeyedCache
from gradecord.configuration.invite_settings import InviteSettings
from gradecord.datatypes.channel_datatypes import (
    TEXT_ALLOW,
    TEXT_DENY,
    VOICE_ALLOW,
    VOICE_DENY,
    ChannelRecord,
    InviteDetails,
    PrincipalKind,
    RawChannel,
    RemoteUser,
    normalize_channel_name,
)
from gradecord.datatypes.discord_datatypes import ChannelID, UserID
from gradecord.directory.categories import DEFAULT_CATEGORY_SCHEME, CategoryScheme
from gradecord.directory.channel_projector import ChannelProjector
from gradecord.errors import ChannelAlreadyExists, ChannelNotFound, InvalidChannelArgument
from gradecord.remote.remote_directory import RemoteDirectory
from gradecord.util.logger import get_logger

logger = get_logger("channel_directory")

ALL_CHANNELS_KEY = "_Channels"
DEFAULT_CACHE_TTL_SECONDS = 600.0


def channel_cache_key(name: str) -> str:
    """Cache key of the record for ``name``; names that normalize alike share a key."""
    return f"_Channel:{normalize_channel_name(name)}"


class ChannelDirectory:
    """
    Orchestrates the channel cache and every mutation sent to the remote directory.

    Attributes:
        remote (RemoteDirectory): Access to the guild on Discord.
        cache (KeyedCache): Shared cache for the raw listing and records.
        scheme (CategoryScheme): Category naming convention.
        cache_ttl_seconds (float): Lifetime of cached entries.
        invite_settings (InviteSettings): Parameters for temporary invites.
    """

    def __init__(
        self,
        remote: RemoteDirectory,
        cache: Optional[KeyedCache] = None,
        *,
        scheme: CategoryScheme = DEFAULT_CATEGORY_SCHEME,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        invite_settings: Optional[InviteSettings] = None,
    ) -> None:
        self.remote = remote
        self.cache = cache if cache is not None else KeyedCache()
        self.scheme = scheme
        self.cache_ttl_seconds = cache_ttl_seconds
        self.invite_settings = invite_settings or InviteSettings()
        self._projector = ChannelProjector(scheme)
        self._token = ExpirationToken("channels")

    # ------------------------------------------------------------------
    # Cache plumbing
    # ------------------------------------------------------------------

    def invalidate(self) -> None:
        """Expire the raw listing and every cached record at once."""
        self._token.expire()
        self._token = ExpirationToken("channels")
        logger.debug("[CHANNEL DIRECTORY] Channel cache invalidated")

    def _cache_record(self, record: ChannelRecord, token: Optional[ExpirationToken] = None) -> None:
        self.cache.set(
            channel_cache_key(record.name),
            record,
            ttl=self.cache_ttl_seconds,
            token=token or self._token,
        )

    async def _raw_listing(self, token: Optional[ExpirationToken] = None) -> Sequence[RawChannel]:
        listing, found = self.cache.try_get(ALL_CHANNELS_KEY)
        if found:
            return listing

        # Captured before the fetch: an invalidation while the request is in
        # flight leaves the fetched listing already expired.
        if token is None:
            token = self._token
        logger.info("[CHANNEL DIRECTORY] Unable to fetch all channels from cache")
        listing = tuple(await self.remote.list_all_channels())
        self.cache.set(ALL_CHANNELS_KEY, listing, ttl=self.cache_ttl_seconds, token=token)
        return listing

    async def _resolve_users(self, user_ids: Iterable[UserID]) -> Dict[UserID, Optional[RemoteUser]]:
        """Look up every id concurrently; unknown users map to ``None``."""
        ordered = sorted(set(user_ids))
        users = await asyncio.gather(*(self.remote.get_user(user_id) for user_id in ordered))
        resolved = dict(zip(ordered, users))
        missing = [str(user_id) for user_id, user in resolved.items() if user is None]
        if missing:
            logger.warning("[CHANNEL DIRECTORY] Could not resolve users: %s", ", ".join(missing))
        return resolved

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_channels(self) -> List[ChannelRecord]:
        """
        Return every directory channel.

        The raw listing comes from the cache when possible, but records are
        always re-projected and written back to their per-channel entries.

        Returns:
            List[ChannelRecord]: One record per logical channel, in listing order.
        """
        # One token for the listing and the records projected from it.
        token = self._token
        listing = await self._raw_listing(token)
        default_principal_id = await self.remote.default_principal_id()
        records = self._projector.project(listing, default_principal_id)

        for record in records.values():
            self._cache_record(record, token)

        return list(records.values())

    async def get_channel(self, name: str) -> Optional[ChannelRecord]:
        """
        Look a channel up by name.

        Args:
            name: Display or normalized channel name.

        Returns:
            Optional[ChannelRecord]: The record, or ``None`` when no such channel exists.
        """
        record, found = self.cache.try_get(channel_cache_key(name))
        if found:
            logger.info("[CHANNEL DIRECTORY] Retrieved channel %s from cache", name)
            return record

        normalized = normalize_channel_name(name)
        for record in await self.get_channels():
            if record.normalized_name == normalized:
                logger.info("[CHANNEL DIRECTORY] Retrieved channel %s", name)
                return record

        logger.info("[CHANNEL DIRECTORY] Unable to locate channel %s", name)
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _validate_members(self, record: ChannelRecord) -> FrozenSet[UserID]:
        if record.members is None:
            raise InvalidChannelArgument("members must not be None")
        return record.members

    async def _find_categories(self, record: ChannelRecord):
        text_name, voice_name = self.scheme.category_pair(record.category_level, record.is_restricted_audience)
        categories = await self.remote.list_categories()

        def single(name: str) -> RawChannel:
            matches = [category for category in categories if category.name == name]
            if len(matches) != 1:
                raise ChannelNotFound(name)
            return matches[0]

        text_category = single(text_name) if record.is_text else None
        voice_category = single(voice_name) if record.is_voice else None
        return text_category, voice_category

    async def create_channel(self, record: ChannelRecord) -> FrozenSet[UserID]:
        """
        Create the voice and/or text sub-channels for a new directory channel.

        A sub-channel whose name already exists in the target category is
        reused rather than duplicated, and only freshly created sub-channels
        receive permission overwrites. Every channel in the touched categories
        is re-sorted by name afterwards.

        Args:
            record: Requested channel; ``is_voice`` / ``is_text`` select the sub-channels.

        Returns:
            FrozenSet[UserID]: Requested members that are not users of the guild.

        Raises:
            InvalidChannelArgument: If ``members`` is None, no sub-channel is
                requested, or the category level is unknown.
            ChannelAlreadyExists: If the name is already cached.
            ChannelNotFound: If a target category does not exist exactly once.
        """
        members = self._validate_members(record)
        if not (record.is_voice or record.is_text):
            raise InvalidChannelArgument("at least one of is_voice / is_text must be requested")
        if record.category_level not in self.scheme.levels:
            raise InvalidChannelArgument(f"unknown category level {record.category_level!r}")

        if channel_cache_key(record.name) in self.cache:
            raise ChannelAlreadyExists(record.name)

        text_category, voice_category = await self._find_categories(record)
        touched = {category.id for category in (text_category, voice_category) if category is not None}

        # Always a fresh listing: a stale cached one could hide a sibling and cause a duplicate.
        listing = await self.remote.list_all_channels()
        siblings: List[RawChannel] = [
            channel for channel in listing
            if not channel.is_category and channel.category_id in touched
        ]

        users = await self._resolve_users(members)
        resolved = [user for user in users.values() if user is not None]
        default_principal_id = await self.remote.default_principal_id()

        voice_id: Optional[ChannelID] = None
        text_id: Optional[ChannelID] = None

        # Any mutation may have reached Discord, so the cached listing is stale
        # even when a later call fails.
        try:
            if voice_category is not None:
                existing = next(
                    (
                        channel for channel in siblings
                        if channel.category_id == voice_category.id and channel.name.lower() == record.name.lower()
                    ),
                    None,
                )
                if existing is not None:
                    logger.info("[CHANNEL DIRECTORY] Reusing existing voice channel %s (%s)", existing.name, existing.id)
                    voice_id = existing.id
                else:
                    voice_channel = await self.remote.create_voice_channel(record.name, voice_category.id)
                    voice_id = voice_channel.id

                    if not record.is_public:
                        await self.remote.add_permission_overwrite(
                            voice_id, default_principal_id, PrincipalKind.ROLE, VOICE_DENY
                        )
                    for user in resolved:
                        await self.remote.add_permission_overwrite(voice_id, int(user.id), PrincipalKind.USER, VOICE_ALLOW)

                    siblings.append(voice_channel)

            if text_category is not None:
                text_name = record.normalized_name
                existing = next(
                    (
                        channel for channel in siblings
                        if channel.category_id == text_category.id and channel.name.lower() == text_name
                    ),
                    None,
                )
                if existing is not None:
                    logger.info("[CHANNEL DIRECTORY] Reusing existing text channel %s (%s)", existing.name, existing.id)
                    text_id = existing.id
                else:
                    text_channel = await self.remote.create_text_channel(text_name, text_category.id)
                    text_id = text_channel.id

                    # Text channels are always member-gated.
                    await self.remote.add_permission_overwrite(text_id, default_principal_id, PrincipalKind.ROLE, TEXT_DENY)
                    for user in resolved:
                        await self.remote.add_permission_overwrite(text_id, int(user.id), PrincipalKind.USER, TEXT_ALLOW)

                    siblings.append(text_channel)

            ordered = sorted(siblings, key=lambda channel: (channel.name.lower(), channel.name))
            await self.remote.reorder_channels([(channel.id, index) for index, channel in enumerate(ordered)])
        finally:
            self.invalidate()

        created = replace(record, voice_id=voice_id, text_id=text_id, members=members)
        logger.info("[CHANNEL DIRECTORY] Created channel %s, invalidating all channels list as well", record.name)
        self._cache_record(created)

        return frozenset(user_id for user_id, user in users.items() if user is None)

    async def modify_channel_members(self, record: ChannelRecord) -> None:
        """
        Replace a channel's membership with ``record.members``.

        Added users get allow overwrites and removed users lose their overwrite
        on both sub-channels. Users that cannot be resolved are skipped.

        Args:
            record: Channel name plus the complete desired member set.

        Raises:
            InvalidChannelArgument: If ``members`` is None.
            ChannelNotFound: If the channel does not exist.
        """
        members = self._validate_members(record)

        existing = await self.get_channel(record.name)
        if existing is None:
            raise ChannelNotFound(record.name)

        current = existing.members or frozenset()
        added = members - current
        removed = current - members

        added_users, removed_users = await asyncio.gather(
            self._resolve_users(added),
            self._resolve_users(removed),
        )
        to_grant = [user for user in added_users.values() if user is not None]
        to_revoke = [user for user in removed_users.values() if user is not None]

        if existing.voice_id is not None:
            for user in to_grant:
                await self.remote.add_permission_overwrite(existing.voice_id, int(user.id), PrincipalKind.USER, VOICE_ALLOW)
            for user in to_revoke:
                await self.remote.remove_permission_overwrite(existing.voice_id, int(user.id))

        if existing.text_id is not None:
            default_principal_id = await self.remote.default_principal_id()
            await self.remote.add_permission_overwrite(
                existing.text_id, default_principal_id, PrincipalKind.ROLE, TEXT_DENY
            )
            for user in to_grant:
                await self.remote.add_permission_overwrite(existing.text_id, int(user.id), PrincipalKind.USER, TEXT_ALLOW)
            for user in to_revoke:
                await self.remote.remove_permission_overwrite(existing.text_id, int(user.id))

        logger.info(
            "[CHANNEL DIRECTORY] Updated channel membership for %s (+%d / -%d)",
            existing.name,
            len(added),
            len(removed),
        )
        self._cache_record(replace(existing, members=members))

    # ------------------------------------------------------------------
    # Invites and lifecycle
    # ------------------------------------------------------------------

    async def get_temporary_invite(self) -> InviteDetails:
        """
        Create a short-lived invite on the configured welcome channel.

        Returns:
            InviteDetails: The created invite.

        Raises:
            ChannelNotFound: If the welcome channel does not exist.
        """
        settings = self.invite_settings
        listing, found = self.cache.try_get(ALL_CHANNELS_KEY)
        if found:
            text_channels = [channel for channel in listing if channel.is_text]
        else:
            text_channels = await self.remote.list_text_channels()

        channel = next((channel for channel in text_channels if channel.name == settings.channel_name), None)
        if channel is None:
            raise ChannelNotFound(settings.channel_name)

        invite = await self.remote.create_invite(
            channel.id,
            max_age=settings.max_age_seconds,
            max_uses=settings.max_uses,
            temporary=settings.temporary,
            unique=settings.unique,
        )
        logger.info("[CHANNEL DIRECTORY] Created temporary invite %s on #%s", invite.code, channel.name)
        return invite

    async def close(self) -> None:
        """Close the remote connection."""
        await self.remote.close()
