"""Access to the remote guild directory."""

from gradecord.remote.remote_directory import RemoteDirectory

__all__ = ["RemoteDirectory"]
