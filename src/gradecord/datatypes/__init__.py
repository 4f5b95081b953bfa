"""Identifier wrappers and the channel data model."""
