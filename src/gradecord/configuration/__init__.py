"""
Configuration management for gradecord.

- **app_configuration.py**: YAML configuration loader for the channel cache
  lifetime, the category naming scheme and temporary-invite parameters. Falls
  back to defaults on missing or malformed config files.

- **credentials.py**: Bot token and guild id read from the environment
  (seeded from ``.env``), validated when the Discord connection is opened.
"""
