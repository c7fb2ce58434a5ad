"""Loading a workspace of vaults into a note graph snapshot.

The workspace YAML lists the vaults::

    workspace:
      vaults:
        - fsPath: notes
        - fsPath: ../shared
          name: shared

Every ``*.md`` file directly inside a vault directory is a note. Parent and
children pointers are derived from the dotted file names, per vault; any
missing ancestor is filled in with a stub note.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from notenav.exceptions import ConfigurationError, ErrorCode, StorageError
from notenav.models.schema import ROOT_FNAME, Note, NoteDict, Vault
from notenav.observability import traced
from notenav.storage.markdown_parser import MarkdownParser, title_from_fname

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".md"


def stub_id(vault: Vault, fname: str) -> str:
    """Deterministic id for a stub note."""
    return f"stub-{vault.key}-{fname}"


def _parent_fname(fname: str) -> str:
    return fname.rsplit(".", 1)[0] if "." in fname else ROOT_FNAME


def load_sidebars_file(path: Union[str, Path]) -> Any:
    """Read a raw sidebar configuration from a YAML or JSON file.

    The returned value is untrusted; pass it to ``get_sidebars``.

    Raises:
        ConfigurationError: If the file cannot be read or parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Sidebar file not found: {path.name}",
            config_key="sidebars_path",
            code=ErrorCode.CONFIG_MISSING,
        )
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read sidebar file {path.name}: {e}",
            config_key="sidebars_path",
        )


class VaultRepository:
    """Reads vaults listed in a workspace YAML into a NoteDict."""

    def __init__(
        self,
        workspace_dir: Union[str, Path],
        workspace_config: Union[str, Path] = "dendron.yml",
        parser: Optional[MarkdownParser] = None,
    ):
        """Initialize the repository.

        Args:
            workspace_dir: Root directory; vault paths are relative to it.
            workspace_config: Workspace YAML, relative to ``workspace_dir``
                unless absolute.
            parser: Note parser. Created with defaults if None.
        """
        self.workspace_dir = Path(workspace_dir)
        config_path = Path(workspace_config)
        self.workspace_config = (
            config_path if config_path.is_absolute() else self.workspace_dir / config_path
        )
        self.parser = parser or MarkdownParser()
        self._fnames_by_vault: Dict[str, List[str]] = {}
        self._root_by_vault: Dict[str, str] = {}

    def load_vaults(self) -> List[Vault]:
        """Read the vault list from the workspace YAML.

        Raises:
            ConfigurationError: If the file is missing or malformed.
        """
        try:
            data = yaml.safe_load(self.workspace_config.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise ConfigurationError(
                f"Workspace config not found: {self.workspace_config.name}",
                config_key="workspace_config",
                code=ErrorCode.CONFIG_MISSING,
            )
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Could not read workspace config: {e}", config_key="workspace_config"
            )

        workspace = data.get("workspace") if isinstance(data, dict) else None
        vaults_data = workspace.get("vaults") if isinstance(workspace, dict) else None
        if not isinstance(vaults_data, list) or not vaults_data:
            raise ConfigurationError(
                "Workspace config has no 'workspace.vaults' list",
                config_key="workspace.vaults",
            )
        try:
            return [Vault.model_validate(v) for v in vaults_data]
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid vault entry in workspace config: {e}",
                config_key="workspace.vaults",
            )

    @traced("load_notes")
    def load_notes(self) -> NoteDict:
        """Load every vault into one snapshot keyed by note id.

        Raises:
            ConfigurationError: If the workspace config is unusable.
            StorageError: If a vault directory is missing or two notes
                share an id.
        """
        notes: NoteDict = {}
        self._fnames_by_vault.clear()
        self._root_by_vault.clear()

        for vault in self.load_vaults():
            vault_notes = self._load_vault(vault)
            for note in vault_notes.values():
                if note.id in notes:
                    raise StorageError(
                        f"Duplicate note id '{note.id}'",
                        path=f"{note.fname}{NOTE_SUFFIX}",
                        code=ErrorCode.DUPLICATE_NOTE_ID,
                    )
                notes[note.id] = note

        logger.info(
            "Loaded %d notes from %d vault(s)", len(notes), len(self._fnames_by_vault)
        )
        return notes

    def get_fnames(self, vault_name: str) -> List[str]:
        """Names of the note files found in a vault by the last ``load_notes``."""
        return list(self._fnames_by_vault.get(vault_name, []))

    def get_root_id(self, vault_name: str) -> Optional[str]:
        """Id of a vault's root note after ``load_notes``."""
        return self._root_by_vault.get(vault_name)

    def vault_names(self) -> List[str]:
        return list(self._fnames_by_vault)

    def _load_vault(self, vault: Vault) -> Dict[str, Note]:
        """Parse one vault's files and wire the hierarchy. Returns notes by fname."""
        vault_dir = self.workspace_dir / vault.fs_path
        if not vault_dir.is_dir():
            raise StorageError(f"Vault directory not found: {vault.fs_path}", path=str(vault_dir))

        by_fname: Dict[str, Note] = {}
        for path in sorted(vault_dir.glob(f"*{NOTE_SUFFIX}")):
            fname = path.name[: -len(NOTE_SUFFIX)]
            try:
                note = self.parser.parse_note(path.read_text(encoding="utf-8"), fname, vault)
            except (OSError, ValueError, OverflowError, yaml.YAMLError) as e:
                logger.warning("Skipping unreadable note %s: %s", path.name, e)
                continue
            by_fname[fname] = note

        self._fnames_by_vault[vault.key] = list(by_fname)

        if ROOT_FNAME not in by_fname:
            by_fname[ROOT_FNAME] = self._make_stub(vault, ROOT_FNAME)

        # shallow names first so every parent exists before its children
        for fname in sorted(list(by_fname), key=lambda f: (f.count("."), f)):
            if fname == ROOT_FNAME:
                continue
            self._attach(by_fname, by_fname[fname], vault)

        self._root_by_vault[vault.key] = by_fname[ROOT_FNAME].id
        return by_fname

    def _attach(self, by_fname: Dict[str, Note], note: Note, vault: Vault) -> None:
        parent_fname = _parent_fname(note.fname)
        parent = by_fname.get(parent_fname)
        if parent is None:
            parent = self._make_stub(vault, parent_fname)
            by_fname[parent_fname] = parent
            self._attach(by_fname, parent, vault)
        note.parent = parent.id
        if note.id not in parent.children:
            parent.children.append(note.id)

    @staticmethod
    def _make_stub(vault: Vault, fname: str) -> Note:
        logger.debug("Creating stub note for '%s' in vault %s", fname, vault.key)
        return Note(
            id=stub_id(vault, fname),
            fname=fname,
            title=title_from_fname(fname),
            vault=vault,
            stub=True,
        )
