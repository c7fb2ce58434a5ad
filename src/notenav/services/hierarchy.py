"""Building, ordering and comparing plain note hierarchies.

Trees can be built from the note graph (following ``children`` pointers)
or from a list of dotted names (splitting on ``.``). Both produce
``TreeNode`` trees keyed by local name segments, so the two
representations of one vault can be checked against each other with
``validate_tree_nodes``.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from notenav.exceptions import NoteNotFoundError, NotesOmittedError, TreeMismatchError
from notenav.models.schema import (
    TAGS_HIERARCHY_BASE,
    Note,
    NoteDict,
    Result,
    TreeNode,
    TreeViewItemLabelType,
    get_publish_fm,
)

logger = logging.getLogger(__name__)


def _sort_label(note: Note, label_type: Optional[TreeViewItemLabelType]) -> str:
    if label_type == TreeViewItemLabelType.FILENAME:
        return note.basename.lower()
    return (note.title or "").lower()


def sort_notes_at_level(
    note_ids: Sequence[str],
    note_dict: NoteDict,
    reverse: bool = False,
    label_type: Optional[TreeViewItemLabelType] = None,
) -> Result[List[str]]:
    """Order sibling note ids for display.

    Ids are ordered by ``nav_order`` (unset last), then by label, then by
    last update. The tags hierarchy root goes last unless it has a
    ``nav_order``. ``reverse`` flips the final order, tags note included.

    Args:
        note_ids: Sibling ids to order.
        note_dict: Note graph snapshot keyed by note id.
        reverse: Return the order reversed.
        label_type: Compare file name segments instead of titles.

    Returns:
        Result whose ``data`` is always the ordered list of known ids. When
        some ids are missing from ``note_dict`` they are dropped and
        ``error`` is a NotesOmittedError listing them.
    """
    known: List[str] = []
    omitted: List[str] = []
    for note_id in note_ids:
        if note_id in note_dict:
            known.append(note_id)
        else:
            omitted.append(note_id)

    error = None
    if omitted:
        logger.warning("Omitted %d note id(s) missing from the note graph", len(omitted))
        error = NotesOmittedError(omitted)

    def sort_key(note_id: str):
        note = note_dict[note_id]
        nav_order = get_publish_fm(note).nav_order
        return (
            nav_order is None,
            nav_order if nav_order is not None else 0,
            _sort_label(note, label_type),
            note.updated,
        )

    out = sorted(known, key=sort_key)

    # tags hierarchy sinks to the bottom unless explicitly placed
    tags_id = next((i for i in out if note_dict[i].fname == TAGS_HIERARCHY_BASE), None)
    if tags_id is not None and get_publish_fm(note_dict[tags_id]).nav_order is None:
        out.remove(tags_id)
        out.append(tags_id)

    if reverse:
        out.reverse()
    return Result(data=out, error=error)


def create_tree_from_notes(notes: NoteDict, root_note_id: str) -> TreeNode:
    """Create a tree from ``root_note_id`` following the notes' children.

    Node names are the last segment of each note's fname. Self references
    are ignored and children are ordered by name.

    Raises:
        NoteNotFoundError: If the root, or any child id, is not in ``notes``.
    """
    note = notes.get(root_note_id)
    if note is None:
        raise NoteNotFoundError(root_note_id)

    children = [
        create_tree_from_notes(notes, child_id)
        for child_id in note.children
        if child_id != note.id
    ]
    children.sort(key=lambda child: child.fname)
    return TreeNode(fname=note.basename, children=children)


def create_tree_from_fnames(fnames: Iterable[str], root_name: str) -> TreeNode:
    """Create a tree from dotted names, one level per segment.

    Every name except ``root_name`` itself is placed below a root node
    called ``root_name``; intermediate levels are created as needed.
    Names already prefixed with ``root_name.`` are placed relative to it,
    so ``(["a.b", "a.c"], "a")`` gives ``a -> {b, c}``.
    """
    root = TreeNode(fname=root_name)
    prefix = f"{root_name}."
    for name in fnames:
        if name == root_name:
            continue
        if name.startswith(prefix):
            name = name[len(prefix):]
        node = root
        for segment in name.split("."):
            child = next((c for c in node.children if c.fname == segment), None)
            if child is None:
                child = TreeNode(fname=segment)
                node.children.append(child)
            node = child
    return root


def _compare_nodes(expected: TreeNode, actual: TreeNode) -> Optional[str]:
    """Return a description of the first difference, or None."""
    if expected.fname != actual.fname:
        return f'Fname differs. Expected: "{expected.fname}". Actual "{actual.fname}"'

    # sorted copies; the caller's trees keep their order
    expected_children = sorted(expected.children, key=lambda c: c.fname)
    actual_children = sorted(actual.children, key=lambda c: c.fname)

    if len(expected_children) != len(actual_children):
        expected_names = ",".join(c.fname for c in expected_children)
        actual_names = ",".join(c.fname for c in actual_children)
        return (
            f"Mismatch at {expected.fname}'s children. "
            f'Expected: "{expected_names}". Actual "{actual_names}"'
        )

    for expected_child, actual_child in zip(expected_children, actual_children):
        mismatch = _compare_nodes(expected_child, actual_child)
        if mismatch:
            return f"Mismatch at {expected.fname}'s children. {mismatch}."
    return None


def validate_tree_nodes(expected: TreeNode, actual: TreeNode) -> Result[None]:
    """Check that two trees have the same names at every level.

    Sibling order does not matter. Neither input is modified.

    Returns:
        An ok Result, or one carrying a TreeMismatchError that names the
        path to the first difference.
    """
    mismatch = _compare_nodes(expected, actual)
    if mismatch:
        return Result.err(TreeMismatchError(mismatch))
    return Result.ok(None)
