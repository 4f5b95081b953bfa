"""
Type-safe wrapper classes for Discord identifiers.

This module provides type-safe wrappers for Discord snowflake IDs so that user,
channel and guild identifiers cannot be mixed up when they travel through the
channel directory and its cache.
"""

from __future__ import annotations

from typing import Union


class Snowflake:
    """
    Base wrapper for Discord snowflake IDs.

    Discord snowflakes are 64-bit integers, but are often stored/transmitted as strings
    for JSON compatibility. Subclasses compare equal to the raw int/str form of the
    same id, but never to a wrapper of a different kind.

    Attributes:
        _value (str): The snowflake ID stored as a string for JSON parity.

    Example:
        >>> uid = UserID.from_int(123456789012345678)
        >>> int(uid)
        123456789012345678
        >>> str(uid)
        '123456789012345678'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize the wrapper from a string, int, or another wrapper of the same kind.

        Args:
            value: The snowflake ID as a string, int, or wrapper.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, type(self)):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            # Validate that it's a valid integer string
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        """Create a wrapper from an integer snowflake."""
        return cls(value)

    def to_int(self) -> int:
        """
        Convert to an integer for Discord API calls.

        Returns:
            int: The snowflake ID as an integer.
        """
        return int(self._value)

    def __int__(self) -> int:
        return int(self._value)

    def __str__(self) -> str:
        """Return the string representation for JSON serialization."""
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Snowflake):
            return type(self) is type(other) and self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int):
            return self._value == str(other)
        return NotImplemented

    def __lt__(self, other: "Snowflake") -> bool:
        if not isinstance(other, Snowflake):
            return NotImplemented
        return int(self) < int(other)

    def __hash__(self) -> int:
        return hash(self._value)


class UserID(Snowflake):
    """Type-safe wrapper for Discord user snowflake IDs."""

    __slots__ = ()


class ChannelID(Snowflake):
    """Type-safe wrapper for Discord channel (and category) snowflake IDs."""

    __slots__ = ()


class GuildID(Snowflake):
    """Type-safe wrapper for Discord guild snowflake IDs."""

    __slots__ = ()
