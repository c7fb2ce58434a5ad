"""Tests for parsing note files."""
import datetime
from datetime import timezone

import pytest

from notenav.models.schema import Vault
from notenav.storage.markdown_parser import MarkdownParser, parse_timestamp, title_from_fname

VAULT = Vault(fsPath="notes")


@pytest.fixture
def parser():
    return MarkdownParser()


class TestParseNote:
    """Tests for MarkdownParser.parse_note."""

    def test_full_frontmatter(self, parser):
        content = """---
id: n1
title: Getting Started
desc: Intro
created: 1700000000000
updated: 1700000500000
nav_order: 3
custom:
  nav_exclude: true
---
# Body
"""
        note = parser.parse_note(content, "docs.start", VAULT)
        assert note.id == "n1"
        assert note.fname == "docs.start"
        assert note.title == "Getting Started"
        assert note.vault == VAULT
        assert note.created == datetime.datetime.fromtimestamp(1700000000, tz=timezone.utc)
        assert note.updated == datetime.datetime.fromtimestamp(1700000500, tz=timezone.utc)
        assert note.custom == {"nav_exclude": True, "nav_order": 3}
        assert note.children == []
        assert note.parent is None
        assert note.stub is False

    def test_missing_id_rejected(self, parser):
        with pytest.raises(ValueError):
            parser.parse_note("---\ntitle: No id\n---\n", "a", VAULT)

    def test_no_frontmatter_rejected(self, parser):
        with pytest.raises(ValueError):
            parser.parse_note("just text", "a", VAULT)

    def test_title_defaults_from_fname(self, parser):
        note = parser.parse_note("---\nid: x\n---\n", "projects.alpha", VAULT)
        assert note.title == "Alpha"

    def test_updated_defaults_to_created(self, parser):
        note = parser.parse_note("---\nid: x\ncreated: 2024-03-01T10:00:00+00:00\n---\n", "a", VAULT)
        assert note.updated == note.created
        assert note.created.year == 2024

    def test_custom_block_wins_over_top_level(self, parser):
        content = "---\nid: x\nnav_order: 1\ncustom:\n  nav_order: 5\n---\n"
        note = parser.parse_note(content, "a", VAULT)
        assert note.custom["nav_order"] == 5

    def test_non_mapping_custom_ignored(self, parser):
        note = parser.parse_note("---\nid: x\ncustom: nope\n---\n", "a", VAULT)
        assert note.custom == {}

    def test_numeric_id_becomes_string(self, parser):
        note = parser.parse_note("---\nid: 42\n---\n", "a", VAULT)
        assert note.id == "42"

    def test_schema_string(self, parser):
        note = parser.parse_note("---\nid: x\nschema: daily\n---\n", "a", VAULT)
        assert note.schema_id == "daily"

    def test_schema_mapping(self, parser):
        content = "---\nid: x\nschema:\n  moduleId: journal\n  schemaId: day\n---\n"
        note = parser.parse_note(content, "a", VAULT)
        assert note.schema_id == "journal.day"

    def test_invalid_timestamp_rejected(self, parser):
        with pytest.raises(ValueError):
            parser.parse_note("---\nid: x\ncreated: yesterday\n---\n", "a", VAULT)


class TestHelpers:
    """Tests for the parsing helpers."""

    def test_title_from_fname(self):
        assert title_from_fname("a.b.cat") == "Cat"
        assert title_from_fname("root") == "Root"

    def test_parse_timestamp_variants(self):
        expected = datetime.datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert parse_timestamp(None) is None
        assert parse_timestamp(expected.timestamp() * 1000) == expected
        assert parse_timestamp(datetime.date(2024, 1, 2)) == expected
        assert parse_timestamp(datetime.datetime(2024, 1, 2)) == expected
        assert parse_timestamp("2024-01-02T00:00:00") == expected

    def test_parse_timestamp_rejects_bool(self):
        with pytest.raises(ValueError):
            parse_timestamp(True)

    def test_parse_timestamp_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_timestamp(10**20)
