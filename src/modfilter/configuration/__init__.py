"""Configuration helpers: YAML file, AI settings section and environment defaults."""
