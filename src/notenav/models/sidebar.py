"""Sidebar configuration models and validation.

Two families of models live here:

* ``*Config`` models describe the untrusted input: a mapping of sidebar
  name to a list of items, each being a note reference, a category (with
  nested items and/or a link to a note) or an ``autogenerated`` directive.
* The resolved models (``SidebarItemNote``, ``SidebarItemCategory``) are
  what the resolver produces. Every id in them points at an existing note
  and autogenerated directives have been expanded away.

Validation is structural only. Whether referenced notes exist is checked
during resolution.
"""

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from notenav.exceptions import SidebarConfigError
from notenav.models.schema import ROOT_KEYWORD, Result

logger = logging.getLogger(__name__)


class SidebarItemCategoryLink(BaseModel):
    """The note a category entry opens when clicked."""

    type: Literal["note"]
    id: str

    model_config = {"extra": "forbid"}


class SidebarItemNoteConfig(BaseModel):
    """A single note entry. ``id`` is a note id or a dotted note name."""

    type: Literal["note"]
    id: str
    label: Optional[str] = None

    model_config = {"extra": "forbid"}


class SidebarItemAutogeneratedConfig(BaseModel):
    """Expand to the notes below ``id`` (or every top-level note for ``*``)."""

    type: Literal["autogenerated"]
    id: str

    model_config = {"extra": "forbid"}


class SidebarItemCategoryConfig(BaseModel):
    """A labelled group of items, optionally linked to a note."""

    type: Literal["category"]
    label: str
    items: List["SidebarItemConfig"] = Field(default_factory=list)
    link: Optional[SidebarItemCategoryLink] = None

    model_config = {"extra": "forbid"}

    @model_validator(mode="after")
    def _validate_reachable(self) -> "SidebarItemCategoryConfig":
        # a category with nothing below it and nowhere to go never shows up
        if not self.items and self.link is None:
            raise ValueError(
                f"Sidebar category '{self.label}' has neither any subitem nor a link. "
                "This makes this item not able to link to anything."
            )
        return self


SidebarItemConfig = Annotated[
    Union[
        SidebarItemCategoryConfig,
        SidebarItemNoteConfig,
        SidebarItemAutogeneratedConfig,
    ],
    Field(discriminator="type"),
]
SidebarItemCategoryConfig.model_rebuild()

SidebarConfig = List[SidebarItemConfig]
SidebarsConfig = Dict[str, SidebarConfig]


class SidebarItemNote(BaseModel):
    """Resolved note entry; ``id`` is a note id present in the note graph."""

    type: Literal["note"] = "note"
    id: str
    label: Optional[str] = None

    model_config = {"extra": "forbid"}


class SidebarItemCategory(BaseModel):
    """Resolved category entry."""

    type: Literal["category"] = "category"
    label: str
    items: List["SidebarItem"] = Field(default_factory=list)
    link: Optional[SidebarItemCategoryLink] = None

    model_config = {"extra": "forbid"}


SidebarItem = Annotated[
    Union[SidebarItemCategory, SidebarItemNote],
    Field(discriminator="type"),
]
SidebarItemCategory.model_rebuild()

Sidebar = List[SidebarItem]
Sidebars = Dict[str, Sidebar]

# Raw configurations shipped with notenav
DEFAULT_SIDEBARS: Dict[str, Any] = {
    "defaultSidebar": [
        {"type": "autogenerated", "id": ROOT_KEYWORD},
    ],
}
DISABLED_SIDEBARS: Dict[str, Any] = {}

_sidebars_config_adapter: TypeAdapter = TypeAdapter(SidebarsConfig)
_sidebars_adapter: TypeAdapter = TypeAdapter(Sidebars)


def _format_location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc)


def parse_sidebars_config(value: Any) -> Result[SidebarsConfig]:
    """Validate a raw sidebar configuration.

    Args:
        value: Anything, typically the result of loading YAML or JSON.

    Returns:
        A Result holding the typed configuration, or a SidebarConfigError
        describing the first structural problem found.
    """
    try:
        parsed = _sidebars_config_adapter.validate_python(value)
    except ValidationError as e:
        first = e.errors()[0]
        location = _format_location(first.get("loc", ()))
        message = first.get("msg", "Invalid sidebar configuration")
        logger.debug("Sidebar configuration rejected at %s: %s", location, message)
        return Result.err(
            SidebarConfigError(
                f"Invalid sidebar configuration at '{location}': {message}"
                if location
                else f"Invalid sidebar configuration: {message}",
                location=location or None,
            )
        )
    return Result.ok(parsed)


def sidebars_to_dict(sidebars: Sidebars) -> Dict[str, Any]:
    """Dump resolved sidebars to plain JSON-compatible data."""
    return _sidebars_adapter.dump_python(sidebars, mode="json", exclude_none=True)
