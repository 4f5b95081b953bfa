"""Naming convention for the tiered categories that hold directory channels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

TEXT_SUFFIX = "Text"
VOICE_SUFFIX = "Voice"


def is_valid_level(level) -> bool:
    """A level is the single character in front of ``-Grade``."""
    return isinstance(level, str) and len(level) == 1 and not level.isspace() and level != "-"


@dataclass(frozen=True, slots=True)
class CategoryScheme:
    """
    Category names recognised by the directory.

    For every level ``L`` the guild has four categories: ``"L-Grade Text"``,
    ``"L-Grade Voice"``, ``"L-Grade <marker> Text"`` and ``"L-Grade <marker> Voice"``.
    Channels outside these categories are invisible to the directory.

    Attributes:
        levels (Tuple[str, ...]): Tier tags, one character each.
        restricted_marker (str): Word identifying the restricted-audience group.
    """

    levels: Tuple[str, ...] = ("A", "B", "C", "D")
    restricted_marker: str = "Hellcatz"

    def __post_init__(self) -> None:
        levels = tuple(self.levels)
        invalid = [level for level in levels if not is_valid_level(level)]
        if invalid:
            raise ValueError(f"category levels must be single characters: {invalid!r}")
        object.__setattr__(self, "levels", levels)

    def prefix(self, level: str, restricted: bool) -> str:
        if restricted:
            return f"{level}-Grade {self.restricted_marker}"
        return f"{level}-Grade"

    def category_pair(self, level: str, restricted: bool) -> Tuple[str, str]:
        """Return the ``(text, voice)`` category names for a level and audience."""
        prefix = self.prefix(level, restricted)
        return f"{prefix} {TEXT_SUFFIX}", f"{prefix} {VOICE_SUFFIX}"

    @property
    def category_names(self) -> FrozenSet[str]:
        names = set()
        for level in self.levels:
            for restricted in (False, True):
                names.update(self.category_pair(level, restricted))
        return frozenset(names)

    def is_recognized(self, name: str) -> bool:
        return name in self.category_names

    def is_restricted(self, name: str) -> bool:
        return self.restricted_marker in name

    def level_of(self, name: str) -> Optional[str]:
        """Return the tier tag encoded by a recognised category name."""
        if not self.is_recognized(name):
            return None
        return name[0]


DEFAULT_CATEGORY_SCHEME = CategoryScheme()
