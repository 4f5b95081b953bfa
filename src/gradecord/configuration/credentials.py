"""
Discord credentials read from the process environment.

The bot token and target guild id are secrets/deployment details, so they live
in the environment (optionally seeded from a ``.env`` file) rather than in the
YAML application config. Validation is deferred until the remote connection is
established so that importing and constructing objects never fails.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from gradecord.datatypes.discord_datatypes import GuildID
from gradecord.errors import ConfigurationError
from gradecord.util.logger import get_logger

logger = get_logger("credentials")

TOKEN_ENV = "DISCORD_BOT_TOKEN"
GUILD_ID_ENV = "DISCORD_GUILD_ID"


@dataclass(frozen=True, slots=True)
class DiscordCredentials:
    """Raw bot token and guild id as configured, validated on access."""

    raw_bot_token: Optional[str] = field(default=None, repr=False)
    raw_guild_id: Optional[str] = None

    @property
    def bot_token(self) -> str:
        """
        Return the bot token.

        Raises:
            ConfigurationError: If the token is not configured.
        """
        token = (self.raw_bot_token or "").strip()
        if not token:
            raise ConfigurationError(f"'{TOKEN_ENV}' is not set")
        return token

    @property
    def guild_id(self) -> GuildID:
        """
        Return the parsed guild id.

        Raises:
            ConfigurationError: If the guild id is absent or not a numeric snowflake.
        """
        if not self.raw_guild_id or not self.raw_guild_id.strip():
            raise ConfigurationError(f"'{GUILD_ID_ENV}' is not set")
        try:
            guild_id = GuildID(self.raw_guild_id)
        except ValueError as exc:
            raise ConfigurationError(f"'{GUILD_ID_ENV}' is not a valid guild id: {self.raw_guild_id!r}") from exc
        if int(guild_id) <= 0:
            raise ConfigurationError(f"'{GUILD_ID_ENV}' is not a valid guild id: {self.raw_guild_id!r}")
        return guild_id


def load_credentials(dotenv_path: Path | None = None) -> DiscordCredentials:
    """Load ``.env`` (when present) and read the Discord credentials from the environment.

    Parameters
    ----------
    dotenv_path:
        Optional path of the ``.env`` file; defaults to python-dotenv's lookup.

    Returns
    -------
    DiscordCredentials
        Unvalidated credentials; problems surface as :class:`ConfigurationError` on use.
    """
    load_dotenv(dotenv_path=dotenv_path)
    credentials = DiscordCredentials(
        raw_bot_token=os.getenv(TOKEN_ENV),
        raw_guild_id=os.getenv(GUILD_ID_ENV),
    )
    if not credentials.raw_bot_token:
        logger.warning("[CREDENTIALS] '%s' environment variable not set.", TOKEN_ENV)
    return credentials
