"""Resolution of sidebar configurations against a note graph.

Turns a raw (untrusted) sidebar configuration into ``Sidebars``: note
references are resolved by id or by dotted name, ``autogenerated``
directives are expanded by walking the notes' children, and generated
levels are ordered by ``nav_order`` then name.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from notenav.exceptions import NoteNavError, SidebarItemNotFoundError, SidebarProcessingError
from notenav.models.schema import (
    ROOT_FNAME,
    ROOT_KEYWORD,
    DuplicateNoteBehavior,
    Note,
    NoteDict,
    Result,
    get_publish_fm,
)
from notenav.models.sidebar import (
    SidebarConfig,
    SidebarItem,
    SidebarItemAutogeneratedConfig,
    SidebarItemCategory,
    SidebarItemCategoryConfig,
    SidebarItemCategoryLink,
    SidebarItemConfig,
    SidebarItemNote,
    SidebarItemNoteConfig,
    Sidebars,
    parse_sidebars_config,
)
from notenav.observability import traced

logger = logging.getLogger(__name__)


def get_priority_vaults(
    duplicate_note_behavior: Optional[DuplicateNoteBehavior],
) -> Optional[List[str]]:
    """Return vault names ordered by priority, or None when there is no preference.

    A list payload is deduplicated keeping its order. A single-vault payload
    counts only when that vault has a name.
    """
    if duplicate_note_behavior is None:
        return None
    payload = duplicate_note_behavior.payload
    if isinstance(payload, list):
        return list(dict.fromkeys(payload))
    if payload.vault is not None and payload.vault.name:
        return [payload.vault.name]
    return None


@dataclass
class _PositionedItem:
    """A generated item with the hints used to order it among its siblings."""

    item: SidebarItem
    position: Optional[float]
    fname: str


def _sort_items(items: List[_PositionedItem], reverse: bool = False) -> List[SidebarItem]:
    # explicit positions first, ascending; the rest by name
    ordered = sorted(
        items,
        key=lambda p: (p.position is None, p.position if p.position is not None else 0, p.fname),
    )
    if reverse:
        ordered.reverse()
    return [p.item for p in ordered]


class SidebarResolver:
    """Resolves validated sidebar configurations against one note snapshot."""

    def __init__(
        self,
        notes: NoteDict,
        duplicate_note_behavior: Optional[DuplicateNoteBehavior] = None,
    ):
        """Initialize the resolver.

        Args:
            notes: Note graph snapshot keyed by note id. Never modified.
            duplicate_note_behavior: How to choose among notes that share a
                name across vaults. None picks the first match.
        """
        self.notes = notes
        self.duplicate_note_behavior = duplicate_note_behavior

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    def find_candidates(self, reference: str) -> List[Note]:
        """Notes a reference may point at: the note with that id, else all notes with that name."""
        note = self.notes.get(reference)
        if note is not None:
            return [note]
        return [n for n in self.notes.values() if n.fname == reference]

    def resolve_item_id(self, reference: str) -> str:
        """Resolve a note id or dotted name to a note id.

        Raises:
            SidebarItemNotFoundError: If no note matches.
        """
        candidates = self.find_candidates(reference)
        selected: Optional[Note] = None

        if len(candidates) > 1:
            by_vault: Dict[str, Note] = {}
            for candidate in candidates:
                by_vault.setdefault(candidate.vault.key, candidate)
            for vault_name in get_priority_vaults(self.duplicate_note_behavior) or []:
                if vault_name in by_vault:
                    selected = by_vault[vault_name]
                    break
            if selected is None:
                logger.debug(
                    "'%s' matches %d notes and no preferred vault applies, using the first",
                    reference,
                    len(candidates),
                )

        if selected is None and candidates:
            selected = candidates[0]
        if selected is None:
            raise SidebarItemNotFoundError(reference)
        return selected.id

    # ------------------------------------------------------------------
    # Autogeneration
    # ------------------------------------------------------------------

    def find_hierarchy_sources(self, anchor_id: str) -> List[str]:
        """Ids an ``autogenerated`` item expands: top-level notes for ``*``, else the anchor's children."""
        if anchor_id == ROOT_KEYWORD:
            return [
                note.id
                for note in self.notes.values()
                if note.fname != ROOT_FNAME and len(note.fname.split(".")) == 1
            ]
        note = self.notes.get(anchor_id)
        if note is None:
            raise SidebarItemNotFoundError(anchor_id)
        return list(note.children)

    def generate_items(
        self, note_ids: Sequence[str], ancestors: frozenset = frozenset()
    ) -> List[_PositionedItem]:
        """Build items for ``note_ids``, recursing into children.

        Notes with children become categories linked to the note itself,
        leaves become note items. Ids missing from the graph are skipped.
        """
        generated: List[_PositionedItem] = []
        for note_id in note_ids:
            note = self.notes.get(note_id)
            if note is None:
                logger.debug("Skipping child '%s': not in the note graph", note_id)
                continue
            if note_id in ancestors:
                logger.warning("Skipping '%s': it is its own ancestor", note_id)
                continue

            fm = get_publish_fm(note)
            item: SidebarItem
            if note.children:
                children = self.generate_items(note.children, ancestors | {note_id})
                item = SidebarItemCategory(
                    label=note.title,
                    items=_sort_items(children, reverse=fm.reverse),
                    link=SidebarItemCategoryLink(type="note", id=note.id),
                )
            else:
                item = SidebarItemNote(id=note.id, label=note.title)
            generated.append(_PositionedItem(item=item, position=fm.nav_order, fname=note.fname))
        return generated

    def autogenerate(self, item: SidebarItemAutogeneratedConfig) -> List[SidebarItem]:
        """Expand an ``autogenerated`` item into ordered concrete items."""
        anchor_id = item.id if item.id == ROOT_KEYWORD else self.resolve_item_id(item.id)
        sources = self.find_hierarchy_sources(anchor_id)
        ancestors = frozenset() if anchor_id == ROOT_KEYWORD else frozenset({anchor_id})
        return _sort_items(self.generate_items(sources, ancestors))

    # ------------------------------------------------------------------
    # Items and sidebars
    # ------------------------------------------------------------------

    def process_item(self, item: SidebarItemConfig) -> List[SidebarItem]:
        """Resolve one configured item into zero or more resolved items."""
        if isinstance(item, SidebarItemNoteConfig):
            return [SidebarItemNote(id=self.resolve_item_id(item.id), label=item.label)]
        if isinstance(item, SidebarItemCategoryConfig):
            link = None
            if item.link is not None:
                link = SidebarItemCategoryLink(type="note", id=self.resolve_item_id(item.link.id))
            items: List[SidebarItem] = []
            for child in item.items:
                items.extend(self.process_item(child))
            return [SidebarItemCategory(label=item.label, items=items, link=link)]
        if isinstance(item, SidebarItemAutogeneratedConfig):
            return self.autogenerate(item)
        raise TypeError(f"Unsupported sidebar item: {item!r}")

    def process_sidebar(self, sidebar: SidebarConfig) -> Result[List[SidebarItem]]:
        """Resolve every item of one sidebar, stopping at the first error."""
        resolved: List[SidebarItem] = []
        for item in sidebar:
            try:
                resolved.extend(self.process_item(item))
            except NoteNavError as e:
                return Result.err(e)
            except Exception as e:
                logger.error("Unexpected error while processing sidebar item: %s", e)
                return Result.err(SidebarProcessingError(original_error=e))
        return Result.ok(resolved)

    def process_sidebars(self, sidebars: Dict[str, SidebarConfig]) -> Result[Sidebars]:
        """Resolve all sidebars; the first failing sidebar fails the whole call."""
        resolved: Sidebars = {}
        for name, sidebar in sidebars.items():
            result = self.process_sidebar(sidebar)
            if not result.is_ok:
                logger.info("Sidebar '%s' could not be resolved: %s", name, result.error)
                return Result.err(result.error)
            resolved[name] = result.data
        return Result.ok(resolved)


@traced("get_sidebars")
def get_sidebars(
    value: Any,
    notes: NoteDict,
    duplicate_note_behavior: Optional[DuplicateNoteBehavior] = None,
) -> Result[Sidebars]:
    """Validate a raw sidebar configuration and resolve it against ``notes``.

    Args:
        value: Raw configuration, e.g. ``DEFAULT_SIDEBARS`` or loaded YAML.
        notes: Note graph snapshot keyed by note id.
        duplicate_note_behavior: Vault preference for duplicate note names.

    Returns:
        Result with the resolved sidebars, or the first validation,
        reference or processing error. This function does not raise for
        bad input.
    """
    parsed = parse_sidebars_config(value)
    if not parsed.is_ok:
        return Result.err(parsed.error)
    resolver = SidebarResolver(notes, duplicate_note_behavior)
    return resolver.process_sidebars(parsed.data)
