from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from gradecord.configuration.invite_settings import InviteSettings
from gradecord.directory.categories import is_valid_level
from gradecord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_CACHE_TTL_SECONDS = 600.0
DEFAULT_CATEGORY_LEVELS = ("A", "B", "C", "D")
DEFAULT_RESTRICTED_MARKER = "Hellcatz"


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes dictionary-like
    access helpers, and resolves the channel cache, category and invite settings.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def cache_ttl_seconds(self) -> float:
        """Lifetime of cached channel listings and records. Default is 600 seconds (10 minutes)."""
        value = self._section("channel_cache").get("ttl_seconds", DEFAULT_CACHE_TTL_SECONDS)
        try:
            ttl = float(value)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid channel_cache.ttl_seconds %r; using default.", value)
            return DEFAULT_CACHE_TTL_SECONDS
        return ttl if ttl > 0 else DEFAULT_CACHE_TTL_SECONDS

    @property
    def category_levels(self) -> List[str]:
        """Tier letters used in the ``{Level}-Grade ...`` category names."""
        levels = self._section("categories").get("levels")
        if not isinstance(levels, list) or not levels:
            return list(DEFAULT_CATEGORY_LEVELS)

        valid = [str(level) for level in levels if is_valid_level(str(level))]
        if len(valid) != len(levels):
            skipped = [level for level in levels if not is_valid_level(str(level))]
            logger.warning("[APP CONFIGURATION] Ignoring category levels that are not single characters: %r", skipped)
        return valid or list(DEFAULT_CATEGORY_LEVELS)

    @property
    def restricted_marker(self) -> str:
        """Word that marks a category as belonging to the restricted-audience group."""
        value = self._section("categories").get("restricted_marker")
        return str(value) if value else DEFAULT_RESTRICTED_MARKER

    @property
    def invite_settings(self) -> InviteSettings:
        """Return the temporary-invite parameters."""
        return InviteSettings.from_mapping(self._section("invites"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
