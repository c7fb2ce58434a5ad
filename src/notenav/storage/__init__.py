"""Storage layer: reading vaults and sidebar files from disk."""

from notenav.storage.markdown_parser import MarkdownParser
from notenav.storage.vault_repository import VaultRepository, load_sidebars_file

__all__ = [
    "MarkdownParser",
    "VaultRepository",
    "load_sidebars_file",
]
