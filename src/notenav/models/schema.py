"""Data models for notes, trees and tree menus."""

import datetime
import posixpath
from dataclasses import dataclass, field
from datetime import timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field, field_validator

from notenav.exceptions import NoteNavError

# Sidebar id that stands for "every top-level note"
ROOT_KEYWORD = "*"
# fname of the root note of a vault
ROOT_FNAME = "root"
# Parent of all tag notes, and the prefix shared by its descendants
TAGS_HIERARCHY_BASE = "tags"
TAGS_HIERARCHY = f"{TAGS_HIERARCHY_BASE}."


def utc_now() -> datetime.datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.datetime.now(timezone.utc)


def ensure_timezone_aware(dt_value: datetime.datetime) -> datetime.datetime:
    """Ensure a datetime is timezone-aware, treating naive datetimes as UTC."""
    if dt_value is None:
        return utc_now()
    if dt_value.tzinfo is None:
        return dt_value.replace(tzinfo=timezone.utc)
    return dt_value


def fname_basename(fname: str) -> str:
    """Return the last dot-delimited segment of a note name ("a.b.c" -> "c")."""
    return fname.split(".")[-1]


class Vault(BaseModel):
    """A named partition of the note collection."""

    fs_path: str = Field(..., alias="fsPath", description="Vault path relative to the workspace")
    name: Optional[str] = Field(default=None, description="Optional display name")

    model_config = {"populate_by_name": True, "frozen": True, "extra": "ignore"}

    @property
    def key(self) -> str:
        """Identity used when choosing between duplicate notes: name, else path."""
        return self.name if self.name is not None else self.fs_path

    def get_name(self) -> str:
        """Human-readable vault name: the explicit name, else the path's basename."""
        if self.name:
            return self.name
        return posixpath.basename(self.fs_path.replace("\\", "/").rstrip("/"))


class Note(BaseModel):
    """A hierarchically named note as seen by the navigation layer.

    Notes are read-only input: nothing in notenav mutates them.
    """

    id: str = Field(..., description="Unique ID of the note")
    fname: str = Field(..., description="Dot-delimited hierarchy name, e.g. 'a.b.c'")
    title: str = Field(..., description="Title of the note")
    vault: Vault = Field(..., description="Vault the note lives in")
    children: List[str] = Field(default_factory=list, description="IDs of child notes")
    parent: Optional[str] = Field(default=None, description="ID of the parent note")
    stub: bool = Field(default=False, description="Placeholder without authored content")
    schema_id: Optional[str] = Field(
        default=None, alias="schema", description="Schema the note was created from"
    )
    custom: Dict[str, Any] = Field(
        default_factory=dict, description="Free-form front matter (nav_order, ...)"
    )
    created: datetime.datetime = Field(default_factory=utc_now)
    updated: datetime.datetime = Field(default_factory=utc_now)

    model_config = {"populate_by_name": True, "extra": "forbid"}

    @field_validator("id", "fname")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """IDs and names identify notes and cannot be blank."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("created", "updated")
    @classmethod
    def validate_timestamp(cls, v: datetime.datetime) -> datetime.datetime:
        return ensure_timezone_aware(v)

    @property
    def basename(self) -> str:
        return fname_basename(self.fname)


NoteDict = Dict[str, Note]


@dataclass(frozen=True)
class PublishFrontmatter:
    """Navigation flags a note carries in its front matter.

    Attributes:
        nav_order: Explicit position among siblings (lower comes first).
        nav_exclude: Hide the note from rendered navigation.
        sort_order: "reverse" flips the order of the note's children.
    """

    nav_order: Optional[float] = None
    nav_exclude: bool = False
    sort_order: str = "normal"

    @property
    def reverse(self) -> bool:
        return self.sort_order == "reverse"


def get_publish_fm(note: Note) -> PublishFrontmatter:
    """Read the navigation flags out of ``note.custom``, with defaults."""
    custom = note.custom or {}
    nav_order = custom.get("nav_order")
    if isinstance(nav_order, bool) or not isinstance(nav_order, (int, float)):
        nav_order = None
    sort_order = custom.get("sort_order")
    return PublishFrontmatter(
        nav_order=nav_order,
        nav_exclude=bool(custom.get("nav_exclude", False)),
        sort_order=sort_order if sort_order in ("normal", "reverse") else "normal",
    )


class DuplicateNotePayload(BaseModel):
    """Single preferred vault for notes that exist in several vaults."""

    vault: Optional[Vault] = None

    model_config = {"frozen": True}


class DuplicateNoteBehavior(BaseModel):
    """Policy for picking one note when a name matches notes in several vaults.

    ``payload`` is either an ordered list of vault names (first match wins)
    or a single preferred vault.
    """

    action: Literal["useVault"] = "useVault"
    payload: Union[List[str], DuplicateNotePayload] = Field(
        default_factory=DuplicateNotePayload
    )

    model_config = {"frozen": True}


class TreeViewItemLabelType(str, Enum):
    """Which label sibling sorting compares."""

    TITLE = "title"
    FILENAME = "filename"


T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of an operation that reports errors as values.

    An error does not always mean ``data`` is unusable: sibling sorting
    returns the surviving ids together with a non-fatal error.

    Attributes:
        data: The produced value (None on fatal errors).
        error: The error, if any.
    """

    data: Optional[T] = None
    error: Optional[NoteNavError] = None

    @classmethod
    def ok(cls, data: T) -> "Result[T]":
        return cls(data=data)

    @classmethod
    def err(cls, error: NoteNavError, data: Optional[T] = None) -> "Result[T]":
        return cls(data=data, error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return ``data``, raising the carried error if there is one."""
        if self.error is not None:
            raise self.error
        return self.data  # type: ignore[return-value]


@dataclass
class TreeNode:
    """A bare parent/child tree keyed by local name segments."""

    fname: str
    children: List["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fname": self.fname,
            "children": [child.to_dict() for child in self.children],
        }


class TreeMenuNodeIcon(str, Enum):
    """Icons shown next to tree menu entries."""

    BOOK_OUTLINED = "bookOutlined"
    NUMBER_OUTLINED = "numberOutlined"
    PLUS_OUTLINED = "plusOutlined"


class TreeMenuNode(BaseModel):
    """A renderable tree menu entry."""

    key: str = Field(..., description="ID of the note behind the entry")
    title: str
    icon: Optional[TreeMenuNodeIcon] = None
    has_title_number_outlined: bool = False
    vault_name: str
    nav_exclude: bool = False
    children: List["TreeMenuNode"] = Field(default_factory=list)


class TreeMenu(BaseModel):
    """Tree menu roots plus the lookups needed for breadcrumbs."""

    roots: List[TreeMenuNode] = Field(default_factory=list)
    child2parent: Dict[str, Optional[str]] = Field(default_factory=dict)
    notes_label_by_id: Dict[str, str] = Field(default_factory=dict)
