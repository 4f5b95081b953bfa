"""
Projection of a raw guild channel listing into :class:`ChannelRecord` objects.

A logical directory channel is a voice channel in a ``... Voice`` category and/or
a text channel in the matching ``... Text`` category whose names normalize to the
same key. The projector merges both halves into one record. It is a pure
function of its input: no network access, no cache access, no mutation of the
listing.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from gradecord.datatypes.channel_datatypes import (
    ChannelRecord,
    PermissionState,
    PrincipalKind,
    RawChannel,
    normalize_channel_name,
)
from gradecord.datatypes.discord_datatypes import ChannelID, UserID
from gradecord.directory.categories import DEFAULT_CATEGORY_SCHEME, CategoryScheme
from gradecord.util.logger import get_logger

logger = get_logger("channel_projector")


@dataclass(slots=True)
class _RecordBuilder:
    """Mutable accumulator for one record; frozen once the whole listing is read."""

    name: str
    category_level: str
    voice_id: Optional[ChannelID] = None
    text_id: Optional[ChannelID] = None
    is_voice: bool = False
    is_text: bool = False
    is_public: bool = True
    is_restricted_audience: bool = False
    members: Set[UserID] = field(default_factory=set)

    def freeze(self) -> ChannelRecord:
        return ChannelRecord(
            name=self.name,
            category_level=self.category_level,
            voice_id=self.voice_id,
            text_id=self.text_id,
            is_voice=self.is_voice,
            is_text=self.is_text,
            is_public=self.is_public,
            is_restricted_audience=self.is_restricted_audience,
            members=frozenset(self.members),
        )


def _is_public(channel: RawChannel, default_principal_id: int) -> bool:
    """A voice channel is public unless everyone is explicitly denied connect."""
    overwrite = channel.overwrite_for(default_principal_id)
    return overwrite is None or overwrite.permissions.connect is not PermissionState.DENY


def _granted_members(channel: RawChannel) -> List[UserID]:
    """Users (not roles) explicitly allowed to view the channel."""
    return [
        UserID(overwrite.target_id)
        for overwrite in channel.overwrites
        if overwrite.target_kind is PrincipalKind.USER
        and overwrite.permissions.view_channel is PermissionState.ALLOW
    ]


class ChannelProjector:
    """Builds the normalized channel records from a raw listing."""

    def __init__(self, scheme: CategoryScheme = DEFAULT_CATEGORY_SCHEME) -> None:
        self.scheme = scheme

    def recognized_parents(self, listing: Iterable[RawChannel]) -> Dict[ChannelID, RawChannel]:
        """
        Return the recognised categories keyed by id.

        An id claimed by more than one recognised category is ambiguous and left
        out, so channels under it are excluded rather than guessed.
        """
        candidates = [
            channel for channel in listing
            if channel.is_category and self.scheme.is_recognized(channel.name)
        ]
        counts = Counter(channel.id for channel in candidates)
        return {channel.id: channel for channel in candidates if counts[channel.id] == 1}

    def project(self, listing: Iterable[RawChannel], default_principal_id: int) -> Dict[str, ChannelRecord]:
        """
        Derive the channel records for a guild.

        Args:
            listing: Every channel and category in the guild.
            default_principal_id: Id of the @everyone role.

        Returns:
            Dict[str, ChannelRecord]: Records keyed by normalized channel name.
        """
        channels = list(listing)
        parents = self.recognized_parents(channels)
        builders: Dict[str, _RecordBuilder] = {}

        for channel in channels:
            if channel.is_category or channel.category_id is None:
                continue
            parent = parents.get(channel.category_id)
            if parent is None:
                continue
            if not (channel.is_voice or channel.is_text):
                continue

            key = normalize_channel_name(channel.name)
            builder = builders.get(key)
            if builder is None:
                builder = _RecordBuilder(
                    name=channel.name,
                    category_level=self.scheme.level_of(parent.name) or "",
                )
                builders[key] = builder

            if channel.is_voice:
                # The voice channel keeps the display form of the name (spaces, case).
                builder.name = channel.name
                builder.is_voice = True
                builder.voice_id = channel.id
                builder.is_public = _is_public(channel, default_principal_id)

            if channel.is_text:
                builder.is_text = True
                builder.text_id = channel.id
                builder.members.update(_granted_members(channel))

            if self.scheme.is_restricted(parent.name):
                builder.is_restricted_audience = True

        logger.debug("[CHANNEL PROJECTOR] Projected %d records from %d raw channels", len(builders), len(channels))
        return {key: builder.freeze() for key, builder in builders.items()}


def project_channels(
    listing: Iterable[RawChannel],
    default_principal_id: int,
    scheme: CategoryScheme = DEFAULT_CATEGORY_SCHEME,
) -> Dict[str, ChannelRecord]:
    """Convenience wrapper around :meth:`ChannelProjector.project`."""
    return ChannelProjector(scheme).project(listing, default_principal_id)
