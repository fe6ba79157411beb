"""Discovery of Obsidian vaults from Obsidian's own configuration file."""

import json
import logging
from pathlib import Path

from markdown_db.markdown import Dialect, Vault

logger = logging.getLogger(__name__)


class VaultConfigError(ValueError):
    """Raised when the Obsidian configuration cannot be understood."""


def read_vaults(config_path: Path, dialect: Dialect) -> list[Vault]:
    """
    Read the vaults registered in Obsidian's ``obsidian.json``.

    The file looks like::

        {"vaults": {"<id>": {"path": "/home/me/Notes", "ts": 0, "open": true}}}

    A missing file means no vaults.

    Raises:
        VaultConfigError: if the file is not valid JSON or has no usable
            ``vaults`` mapping.
    """
    if not config_path.exists():
        logger.warning("Obsidian configuration %s not found, no vaults", config_path)
        return []

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise VaultConfigError(f"Invalid JSON in {config_path}: {e}") from e

    vaults = data.get("vaults") if isinstance(data, dict) else None
    if not isinstance(vaults, dict):
        raise VaultConfigError(f"No 'vaults' object in {config_path}")

    result = []
    for vault_id, entry in vaults.items():
        path = entry.get("path") if isinstance(entry, dict) else None
        if not path:
            logger.warning("Vault %s in %s has no path, skipping", vault_id, config_path)
            continue
        vault = Vault(Path(path), dialect)
        logger.debug("Vault %s (%s) at %s", vault.name, vault_id, vault.path)
        result.append(vault)

    logger.debug("Found %d vaults in %s", len(result), config_path)
    return result
