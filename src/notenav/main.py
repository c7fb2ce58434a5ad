#!/usr/bin/env python
"""Command line entry point for notenav."""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from notenav import __version__
from notenav.config import config
from notenav.exceptions import ConfigurationError, NoteNavError, NoteNotFoundError
from notenav.models.schema import ROOT_FNAME, NoteDict
from notenav.models.sidebar import DEFAULT_SIDEBARS, Sidebars, sidebars_to_dict
from notenav.observability import configure_logging, metrics
from notenav.services.hierarchy import (
    create_tree_from_fnames,
    create_tree_from_notes,
    sort_notes_at_level,
    validate_tree_nodes,
)
from notenav.services.sidebar_service import get_sidebars
from notenav.services.tree_menu import generate_tree_menu, get_all_parents
from notenav.storage.vault_repository import VaultRepository, load_sidebars_file

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="notenav", description="Resolve sidebars and hierarchies of a note workspace"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--workspace-dir",
        help="Workspace root containing the workspace config and vaults",
        type=str,
    )
    parser.add_argument(
        "--sidebars",
        help="Sidebar definition file (YAML or JSON), relative to the workspace",
        type=str,
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print operation timings as JSON to stderr after the command",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sidebar", help="Print the resolved sidebars as JSON")
    subparsers.add_parser("tree", help="Print the tree menu as JSON")
    parents = subparsers.add_parser("parents", help="Print the breadcrumb ids of a note")
    parents.add_argument("note_id")
    children = subparsers.add_parser("children", help="Print the ordered children of a note")
    children.add_argument("note_id")
    children.add_argument(
        "--reverse", action="store_true", help="Reverse the display order"
    )
    verify = subparsers.add_parser(
        "verify", help="Check note hierarchies against the vault file names"
    )
    verify.add_argument("vault", nargs="?", help="Vault name (default: all vaults)")
    return parser.parse_args(argv)


def update_config(args: argparse.Namespace) -> None:
    """Update the global config with command line arguments."""
    if args.workspace_dir:
        config.workspace_dir = Path(args.workspace_dir)
    if args.sidebars:
        config.sidebars_path = Path(args.sidebars)
    if args.log_level:
        config.log_level = args.log_level


def setup_logging() -> None:
    """Log to stderr, plus a rotating file when a log directory is configured."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)
    if config.log_dir is None:
        logging.basicConfig(level=level)
        return
    try:
        configure_logging(log_dir=config.log_dir, level=level, console=True)
    except OSError as e:
        logging.basicConfig(level=level)
        logger.warning("Failed to configure file logging: %s", e)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_metrics() -> None:
    print(
        json.dumps(
            {"summary": metrics.get_summary(), "operations": metrics.get_metrics()},
            indent=2,
        ),
        file=sys.stderr,
    )


def resolve_sidebars(notes: NoteDict) -> Sidebars:
    """Resolve the configured (or default) sidebars, raising on failure."""
    sidebars_path = config.get_sidebars_path()
    raw = load_sidebars_file(sidebars_path) if sidebars_path else DEFAULT_SIDEBARS
    return get_sidebars(
        raw, notes, duplicate_note_behavior=config.get_duplicate_note_behavior()
    ).unwrap()


def run_children(notes: NoteDict, note_id: str, reverse: bool) -> int:
    """Print a note's children in display order, with any ids that had to be dropped."""
    note = notes.get(note_id)
    if note is None:
        raise NoteNotFoundError(note_id)

    result = sort_notes_at_level(
        note.children,
        notes,
        reverse=reverse,
        label_type=config.get_label_type(),
    )
    _print_json(
        {
            "children": [
                {"id": child_id, "title": notes[child_id].title} for child_id in result.data
            ],
            "omitted": result.error.omitted if result.error else [],
        }
    )
    return 0


def run_verify(repository: VaultRepository, notes: NoteDict, vault: Optional[str]) -> int:
    names = [vault] if vault else repository.vault_names()
    if vault and vault not in repository.vault_names():
        raise ConfigurationError(f"Unknown vault '{vault}'", config_key="vault")

    reports = []
    for name in names:
        expected = create_tree_from_fnames(repository.get_fnames(name), ROOT_FNAME)
        actual = create_tree_from_notes(notes, repository.get_root_id(name))
        result = validate_tree_nodes(expected, actual)
        reports.append(
            {
                "vault": name,
                "ok": result.is_ok,
                "error": result.error.message if result.error else None,
            }
        )
    _print_json(reports)
    return 0 if all(r["ok"] for r in reports) else 1


def run(args: argparse.Namespace) -> int:
    """Execute the selected subcommand. Returns the process exit code."""
    repository = VaultRepository(config.workspace_dir, config.workspace_config)
    notes = repository.load_notes()

    if args.command == "children":
        return run_children(notes, args.note_id, args.reverse)
    if args.command == "verify":
        return run_verify(repository, notes, args.vault)

    sidebars = resolve_sidebars(notes)
    if args.command == "sidebar":
        _print_json(sidebars_to_dict(sidebars))
        return 0

    tree_menu = generate_tree_menu(notes, sidebars)
    if args.command == "tree":
        _print_json(tree_menu.model_dump(mode="json"))
        return 0

    # parents
    parents = get_all_parents(tree_menu.child2parent, args.note_id)
    _print_json(
        [
            {"id": note_id, "label": tree_menu.notes_label_by_id.get(note_id)}
            for note_id in parents
        ]
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Run the notenav command line."""
    args = parse_args(argv)
    update_config(args)
    setup_logging()

    try:
        return run(args)
    except NoteNavError as e:
        logger.debug("Command '%s' failed: %s", args.command, e)
        _print_json(e.to_dict())
        return 1
    finally:
        if args.metrics:
            _print_metrics()


if __name__ == "__main__":
    sys.exit(main())
