"""Configuration module for markdown-db.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

TRUE_VALUES = ("1", "true", "yes")
FALSE_VALUES = ("", "0", "false", "no")


def _xdg_dir(variable: str, fallback: str) -> Path:
    value = os.getenv(variable)
    if value:
        return Path(value).expanduser()
    return Path.home() / fallback


@dataclass
class Config:
    """Application configuration."""

    db_path: Path
    in_memory: bool
    obsidian_config: Path
    vaults: list[Path] = field(default_factory=list)

    @classmethod
    def from_env(cls, in_memory_override: bool | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            in_memory_override: If provided, overrides MARKDOWN_DB_IN_MEMORY.
        """
        default_db = _xdg_dir("XDG_CACHE_HOME", ".cache") / "markdown-db" / "index.sqlite"
        db_path = Path(os.getenv("MARKDOWN_DB_PATH", str(default_db))).expanduser()

        # CLI flag takes precedence over env var
        if in_memory_override is not None:
            in_memory = in_memory_override
        else:
            value = os.getenv("MARKDOWN_DB_IN_MEMORY", "").strip().lower()
            if value not in TRUE_VALUES + FALSE_VALUES:
                raise ValueError(f"Invalid MARKDOWN_DB_IN_MEMORY value '{value}'")
            in_memory = value in TRUE_VALUES

        default_obsidian = _xdg_dir("XDG_CONFIG_HOME", ".config") / "obsidian" / "obsidian.json"
        obsidian_config = Path(
            os.getenv("MARKDOWN_DB_OBSIDIAN_CONFIG", str(default_obsidian))
        ).expanduser()

        # Explicit vault directories replace the Obsidian vault list
        vaults_env = os.getenv("MARKDOWN_DB_VAULTS", "")
        vaults = [
            Path(entry).expanduser()
            for entry in vaults_env.split(os.pathsep)
            if entry.strip()
        ]

        return cls(
            db_path=db_path,
            in_memory=in_memory,
            obsidian_config=obsidian_config,
            vaults=vaults,
        )


# Global config instance (lazy loaded)
_config: Config | None = None
_in_memory_override: bool | None = None


def set_in_memory_override(in_memory: bool | None) -> None:
    """Set the in-memory override from CLI.

    Args:
        in_memory: If True, forces an in-memory index. If None, uses env var.
    """
    global _in_memory_override
    _in_memory_override = in_memory


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env(in_memory_override=_in_memory_override)
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config, _in_memory_override
    _config = None
    _in_memory_override = None
