"""Markdown parsing for vault notes.

A note file is ``<fname>.md`` with YAML frontmatter. The file name carries
the hierarchy (``a.b.c.md``); the frontmatter carries the id, title,
timestamps and navigation flags.
"""
import datetime
import logging
from datetime import timezone
from typing import Any, Dict, Optional

import frontmatter

from notenav.models.schema import (
    Note,
    Vault,
    ensure_timezone_aware,
    fname_basename,
    utc_now,
)

logger = logging.getLogger(__name__)

_RESERVED_KEYS = {"id", "title", "desc", "created", "updated", "custom", "schema", "stub"}


def title_from_fname(fname: str) -> str:
    """Default title for a note: its last name segment with the first letter upper-cased."""
    basename = fname_basename(fname)
    return basename[:1].upper() + basename[1:]


def parse_timestamp(value: Any) -> Optional[datetime.datetime]:
    """Parse epoch milliseconds, ISO strings or YAML datetimes into aware datetimes."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, datetime.datetime):
        return ensure_timezone_aware(value)
    if isinstance(value, datetime.date):
        return datetime.datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return ensure_timezone_aware(datetime.datetime.fromisoformat(value))
    raise ValueError(f"Invalid timestamp: {value!r}")


class MarkdownParser:
    """Parses vault note files into Note objects."""

    def parse_note(self, content: str, fname: str, vault: Vault) -> Note:
        """Parse a note from markdown content with YAML frontmatter.

        Args:
            content: Raw markdown string with ``---`` frontmatter delimiters.
            fname: Dotted hierarchy name, i.e. the file name without ``.md``.
            vault: Vault the file was read from.

        Returns:
            A Note with no parent/children wiring yet.

        Raises:
            ValueError: If the id is missing or a field is malformed.
        """
        post = frontmatter.loads(content)
        metadata = post.metadata

        note_id = metadata.get("id")
        if not note_id:
            raise ValueError(f"Note ID missing from frontmatter of '{fname}'")

        title = metadata.get("title") or title_from_fname(fname)

        created_at = parse_timestamp(metadata.get("created")) or utc_now()
        updated_at = parse_timestamp(metadata.get("updated")) or created_at

        custom: Dict[str, Any] = {}
        raw_custom = metadata.get("custom")
        if isinstance(raw_custom, dict):
            custom.update(raw_custom)
        elif raw_custom is not None:
            logger.warning("Ignoring non-mapping 'custom' in note %s", note_id)

        # top-level keys fill in what `custom` does not set
        for key, value in metadata.items():
            if key in _RESERVED_KEYS:
                continue
            custom.setdefault(key, value)

        return Note(
            id=str(note_id),
            fname=fname,
            title=str(title),
            vault=vault,
            schema_id=self._parse_schema(metadata.get("schema")),
            custom=custom,
            created=created_at,
            updated=updated_at,
        )

    @staticmethod
    def _parse_schema(value: Any) -> Optional[str]:
        """Schema references are either a plain string or ``{moduleId, schemaId}``."""
        if value is None:
            return None
        if isinstance(value, dict):
            module_id = value.get("moduleId")
            schema_id = value.get("schemaId")
            if module_id and schema_id:
                return f"{module_id}.{schema_id}"
            return schema_id or module_id
        return str(value)
