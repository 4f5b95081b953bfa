"""
Gradecord - cached access to a guild's tiered channel directory

Gradecord sits between callers and the Discord API and avoids redundant
upstream calls by caching the guild's channel topology.

Core Components:

- **Channel Projector**: Derives one record per logical channel (voice and/or
  text half) from the raw channel listing, using the ``{Level}-Grade ...``
  category naming convention
- **Keyed Cache**: TTL entries linked to a shared expiration token so a single
  trigger refreshes the whole directory
- **Channel Directory**: Lookups by name, idempotent creation of channel pairs
  with permission overwrites, membership diffs and temporary invites
- **Discord Remote**: Py-Cord HTTP adapter with lazy, single-flight login

Usage:
    from gradecord.main import main
    main()  # Warms the cache and logs the directory summary
"""
