"""Configuration module for notenav."""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from notenav import __version__
from notenav.exceptions import ConfigurationError
from notenav.models.schema import DuplicateNoteBehavior, TreeViewItemLabelType

# Load environment variables from the project root .env file.
# Anchored to __file__ so it works regardless of the process CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config, shared by every workspace
_USER_ENV = Path.home() / ".notenav" / ".env"
load_dotenv(_USER_ENV)


def _split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated environment value, dropping blanks."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class NavConfig(BaseModel):
    """Configuration for sidebar and hierarchy resolution."""

    # Workspace root; relative paths below are resolved against it
    workspace_dir: Path = Field(
        default_factory=lambda: Path(os.getenv("NOTENAV_WORKSPACE_DIR", "."))
    )
    # Workspace YAML listing the vaults
    workspace_config: Path = Field(
        default_factory=lambda: Path(
            os.getenv("NOTENAV_WORKSPACE_CONFIG", "dendron.yml")
        )
    )
    # Optional sidebar definition (YAML or JSON). None means the default sidebars.
    sidebars_path: Optional[Path] = Field(
        default_factory=lambda: (
            Path(os.getenv("NOTENAV_SIDEBARS_PATH"))
            if os.getenv("NOTENAV_SIDEBARS_PATH")
            else None
        )
    )
    # Vault names in priority order for notes that exist in several vaults
    duplicate_vaults: List[str] = Field(
        default_factory=lambda: _split_csv(os.getenv("NOTENAV_DUPLICATE_VAULTS"))
    )
    label_type: str = Field(
        default_factory=lambda: os.getenv(
            "NOTENAV_LABEL_TYPE", TreeViewItemLabelType.TITLE.value
        ).lower()
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("NOTENAV_LOG_LEVEL", "WARNING").upper()
    )
    log_dir: Optional[Path] = Field(
        default_factory=lambda: (
            Path(os.getenv("NOTENAV_LOG_DIR")) if os.getenv("NOTENAV_LOG_DIR") else None
        )
    )
    version: str = Field(default=__version__)

    def get_absolute_path(self, path: Path) -> Path:
        """Convert a relative path to an absolute path based on workspace_dir."""
        if path.is_absolute():
            return path
        return self.workspace_dir / path

    def get_sidebars_path(self) -> Optional[Path]:
        """Get the absolute path of the sidebar definition, if one is configured."""
        if self.sidebars_path is None:
            return None
        return self.get_absolute_path(self.sidebars_path)

    def get_duplicate_note_behavior(self) -> Optional[DuplicateNoteBehavior]:
        """Build the duplicate-note policy from ``duplicate_vaults``.

        Returns None when no vault priority is configured, which makes the
        resolver fall back to the first matching note.
        """
        if not self.duplicate_vaults:
            return None
        return DuplicateNoteBehavior(payload=list(self.duplicate_vaults))

    def get_label_type(self) -> TreeViewItemLabelType:
        """Label used when ordering siblings.

        Raises:
            ConfigurationError: If ``label_type`` is not a known label type.
        """
        try:
            return TreeViewItemLabelType(self.label_type)
        except ValueError:
            allowed = sorted(t.value for t in TreeViewItemLabelType)
            raise ConfigurationError(
                f"label_type must be one of {allowed}, got '{self.label_type}'",
                config_key="label_type",
            )


# Create a global config instance
config = NavConfig()
