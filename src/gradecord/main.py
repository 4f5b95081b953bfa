"""
Gradecord Entry Point
=====================

Connects to the configured guild, warms the channel directory cache and logs
a summary of the grade channels it found.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. GRADECORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("GRADECORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from collections import Counter

import discord

from gradecord.configuration.app_configuration import AppConfig, app_config
from gradecord.configuration.credentials import DiscordCredentials, load_credentials
from gradecord.directory.categories import CategoryScheme
from gradecord.directory.channel_directory import ChannelDirectory
from gradecord.errors import ConfigurationError
from gradecord.remote.discord_remote import DiscordRemoteDirectory
from gradecord.util.logger import get_logger, handle_exception


logger = get_logger("main")


def build_directory(config: AppConfig, credentials: DiscordCredentials) -> ChannelDirectory:
    """Wire a :class:`ChannelDirectory` to Discord using the loaded configuration."""
    return ChannelDirectory(
        DiscordRemoteDirectory(credentials),
        scheme=CategoryScheme(levels=tuple(config.category_levels), restricted_marker=config.restricted_marker),
        cache_ttl_seconds=config.cache_ttl_seconds,
        invite_settings=config.invite_settings,
    )


async def async_main() -> int:
    """Warm the directory cache and report what it holds.

    Returns
    -------
    int
        Process exit code: 0 on success, 1 on configuration or Discord failures.
    """
    credentials = load_credentials(dotenv_path=BASE_DIR / ".env")
    directory = build_directory(app_config, credentials)

    try:
        channels = await directory.get_channels()
    except ConfigurationError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1
    except discord.LoginFailure as exc:
        logger.critical("Login failed: %s", exc)
        return 1
    except discord.HTTPException as exc:
        logger.critical("Discord request failed: %s", exc)
        return 1
    finally:
        await directory.close()

    per_level = Counter(channel.category_level for channel in channels)
    restricted = sum(1 for channel in channels if channel.is_restricted_audience)
    logger.info(
        "Loaded %d channels (%s); %d in restricted categories",
        len(channels),
        ", ".join(f"{level}: {count}" for level, count in sorted(per_level.items())) or "none",
        restricted,
    )
    return 0


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    logger.info("Starting gradecord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
