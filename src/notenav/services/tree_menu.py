"""Tree menu generation from resolved sidebars."""

import logging
from typing import Dict, List, Mapping, Optional

from notenav.models.schema import (
    TAGS_HIERARCHY,
    TAGS_HIERARCHY_BASE,
    Note,
    NoteDict,
    TreeMenu,
    TreeMenuNode,
    TreeMenuNodeIcon,
    get_publish_fm,
)
from notenav.models.sidebar import SidebarItem, SidebarItemCategory, Sidebars
from notenav.observability import traced

logger = logging.getLogger(__name__)


def _item_note_id(item: SidebarItem) -> Optional[str]:
    if isinstance(item, SidebarItemCategory):
        return item.link.id if item.link is not None else None
    return item.id


def _select_icon(note: Note) -> Optional[TreeMenuNodeIcon]:
    if note.schema_id:
        return TreeMenuNodeIcon.BOOK_OUTLINED
    if note.fname.lower() == TAGS_HIERARCHY_BASE:
        return TreeMenuNodeIcon.NUMBER_OUTLINED
    if note.stub:
        return TreeMenuNodeIcon.PLUS_OUTLINED
    return None


class TreeMenuBuilder:
    """Builds a TreeMenu for one sidebar, accumulating the lookup maps."""

    def __init__(self, notes: NoteDict):
        self.notes = notes
        self.child2parent: Dict[str, Optional[str]] = {}
        self.notes_label_by_id: Dict[str, str] = {}

    def item_to_node(
        self, item: SidebarItem, parent: Optional[str]
    ) -> Optional[TreeMenuNode]:
        """Convert one sidebar item (and its subtree) into a menu node.

        Returns None when the item's note is not in the note graph; the
        whole branch is then left out.
        """
        note_id = _item_note_id(item)
        note = self.notes.get(note_id) if note_id is not None else None
        if note is None:
            logger.debug("Dropping sidebar branch for '%s': note not found", note_id)
            return None

        title = item.label if item.label is not None else note.title
        self.notes_label_by_id[note.id] = title

        node = TreeMenuNode(
            key=note.id,
            title=title,
            icon=_select_icon(note),
            has_title_number_outlined=note.fname.startswith(TAGS_HIERARCHY),
            vault_name=note.vault.get_name(),
            nav_exclude=get_publish_fm(note).nav_exclude,
        )

        # first parent seen wins
        if note.id not in self.child2parent:
            self.child2parent[note.id] = parent

        if isinstance(item, SidebarItemCategory):
            node.children = self.items_to_nodes(item.items, parent=note.id)
        return node

    def items_to_nodes(
        self, items: List[SidebarItem], parent: Optional[str]
    ) -> List[TreeMenuNode]:
        nodes = []
        for item in items:
            node = self.item_to_node(item, parent)
            if node is not None:
                nodes.append(node)
        return nodes

    def build(self, sidebar: List[SidebarItem]) -> TreeMenu:
        roots = self.items_to_nodes(sidebar, parent=None)
        return TreeMenu(
            roots=roots,
            child2parent=self.child2parent,
            notes_label_by_id=self.notes_label_by_id,
        )


@traced("generate_tree_menu")
def generate_tree_menu(notes: NoteDict, sidebars: Sidebars) -> TreeMenu:
    """Build the tree menu for the first sidebar in ``sidebars``.

    Only a single sidebar is rendered; an empty ``sidebars`` yields an
    empty menu.
    """
    for name, sidebar in sidebars.items():
        logger.debug("Building tree menu from sidebar '%s'", name)
        return TreeMenuBuilder(notes).build(sidebar)
    return TreeMenu()


def get_all_parents(child2parent: Mapping[str, Optional[str]], note_id: str) -> List[str]:
    """Return the ancestors of ``note_id``, root first.

    Walks ``child2parent`` upwards until a missing or null parent. A parent
    that was already visited ends the walk, so cyclic maps terminate.
    """
    parents: List[str] = []
    seen = {note_id}
    parent = child2parent.get(note_id)
    while parent:
        if parent in seen:
            logger.warning("Cycle in parent map at '%s'; stopping breadcrumb walk", parent)
            break
        seen.add(parent)
        parents.insert(0, parent)
        parent = child2parent.get(parent)
    return parents
