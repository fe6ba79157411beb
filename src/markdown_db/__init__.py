"""markdown-db: incremental full-text search over vaults of markdown documents."""

__version__ = "0.1.0"
