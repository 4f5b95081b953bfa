"""Exception types raised by gradecord.

Failures reported by the Discord HTTP layer (``discord.HTTPException`` and its
subclasses) are not wrapped; they propagate to the caller unchanged.
"""

from __future__ import annotations


class GradecordError(Exception):
    """Base exception class for gradecord.

    Catch this to handle any error raised by the directory itself.
    """


class ConfigurationError(GradecordError):
    """Required configuration (bot token, guild id) is missing or unparseable.

    Raised when the remote connection is first established; retrying will not help.
    """


class InvalidChannelArgument(GradecordError, ValueError):
    """A mutation input is missing a required field, such as the member set."""


class ChannelAlreadyExists(GradecordError):
    """A channel with the same normalized name is already known to the directory.

    Attributes
    ----------
    name: :class:`str`
        The requested channel name.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Channel {name!r} already exists")


class ChannelNotFound(GradecordError, LookupError):
    """The channel could not be found in the cache or in a fresh listing.

    Attributes
    ----------
    name: :class:`str`
        The name that was looked up.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Channel {name!r} not found")
