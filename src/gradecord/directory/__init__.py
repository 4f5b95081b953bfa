"""Channel directory: projection of raw guild channels, caching and mutations."""

from gradecord.directory.categories import CategoryScheme
from gradecord.directory.channel_directory import ChannelDirectory, channel_cache_key
from gradecord.directory.channel_projector import ChannelProjector, project_channels

__all__ = ["CategoryScheme", "ChannelDirectory", "ChannelProjector", "channel_cache_key", "project_channels"]
