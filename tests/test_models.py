# tests/test_models.py
"""Tests for the data models and exceptions."""
import datetime

import pytest
from pydantic import ValidationError

from notenav.exceptions import ErrorCode, NotesOmittedError, SidebarItemNotFoundError
from notenav.models.schema import (
    DuplicateNoteBehavior,
    DuplicateNotePayload,
    Note,
    Result,
    TreeNode,
    Vault,
    get_publish_fm,
)
from tests.factories import make_note


class TestVaultModel:
    """Tests for the Vault model."""

    def test_alias_and_field_name(self):
        """Vaults accept the on-disk 'fsPath' key and the Python field name."""
        assert Vault(fsPath="notes").fs_path == "notes"
        assert Vault(fs_path="notes").fs_path == "notes"

    def test_name_prefers_explicit_name(self):
        assert Vault(fsPath="a/b/notes", name="main").get_name() == "main"
        assert Vault(fsPath="a/b/notes").get_name() == "notes"
        assert Vault(fsPath="a/b/notes/").get_name() == "notes"

    def test_key_falls_back_to_path(self):
        """Duplicate resolution keys vaults by name, else by path."""
        assert Vault(fsPath="vault1", name="v1").key == "v1"
        assert Vault(fsPath="vault1").key == "vault1"


class TestNoteModel:
    """Tests for the Note model."""

    def test_note_creation(self):
        note = make_note("a.b.c", title="C")
        assert note.id == "a.b.c"
        assert note.basename == "c"
        assert note.children == []
        assert note.stub is False
        assert note.updated.tzinfo is not None

    def test_schema_alias(self):
        note = Note(
            id="n1", fname="n", title="N", vault=Vault(fsPath="v"), schema="daily"
        )
        assert note.schema_id == "daily"

    def test_blank_identity_rejected(self):
        with pytest.raises(ValidationError):
            make_note("a", id="  ")
        with pytest.raises(ValidationError):
            make_note("", id="x")

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            make_note("a", body="text")

    def test_naive_timestamps_become_utc(self):
        note = make_note("a", updated=datetime.datetime(2024, 5, 1, 12, 0))
        assert note.updated.tzinfo == datetime.timezone.utc


class TestPublishFrontmatter:
    """Tests for get_publish_fm."""

    def test_defaults(self):
        fm = get_publish_fm(make_note("a"))
        assert fm.nav_order is None
        assert fm.nav_exclude is False
        assert fm.sort_order == "normal"
        assert fm.reverse is False

    def test_values_from_custom(self):
        note = make_note(
            "a", custom={"nav_order": 3, "nav_exclude": True, "sort_order": "reverse"}
        )
        fm = get_publish_fm(note)
        assert fm.nav_order == 3
        assert fm.nav_exclude is True
        assert fm.reverse is True

    def test_non_numeric_nav_order_ignored(self):
        assert get_publish_fm(make_note("a", custom={"nav_order": "first"})).nav_order is None
        assert get_publish_fm(make_note("a", custom={"nav_order": True})).nav_order is None

    def test_unknown_sort_order_is_normal(self):
        assert get_publish_fm(make_note("a", custom={"sort_order": "sideways"})).reverse is False


class TestDuplicateNoteBehavior:
    """Tests for the duplicate note policy model."""

    def test_list_payload(self):
        behavior = DuplicateNoteBehavior(payload=["v2", "v1"])
        assert behavior.action == "useVault"
        assert behavior.payload == ["v2", "v1"]

    def test_vault_payload(self):
        behavior = DuplicateNoteBehavior(
            payload={"vault": {"fsPath": "vault2", "name": "v2"}}
        )
        assert isinstance(behavior.payload, DuplicateNotePayload)
        assert behavior.payload.vault.name == "v2"

    def test_default_payload_is_empty(self):
        assert DuplicateNoteBehavior().payload.vault is None


class TestResult:
    """Tests for the Result container."""

    def test_ok(self):
        result = Result.ok([1, 2])
        assert result.is_ok
        assert result.unwrap() == [1, 2]

    def test_err_unwrap_raises(self):
        result = Result.err(SidebarItemNotFoundError("nope"))
        assert not result.is_ok
        with pytest.raises(SidebarItemNotFoundError):
            result.unwrap()

    def test_err_may_carry_data(self):
        result = Result.err(NotesOmittedError(["x"]), data=["a"])
        assert result.data == ["a"]
        assert not result.is_ok


class TestTreeNode:
    def test_to_dict(self):
        tree = TreeNode("root", [TreeNode("a", [TreeNode("b")])])
        assert tree.to_dict() == {
            "fname": "root",
            "children": [{"fname": "a", "children": [{"fname": "b", "children": []}]}],
        }


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_not_found_to_dict(self):
        error = SidebarItemNotFoundError("a.b")
        data = error.to_dict()
        assert data["error"] == "SidebarItemNotFoundError"
        assert data["code"] == ErrorCode.SIDEBAR_ITEM_NOT_FOUND.value
        assert data["message"] == "SidebarItem `a.b` does not exist"
        assert data["details"] == {"reference": "a.b"}

    def test_str_includes_code_and_details(self):
        error = NotesOmittedError(["x", "y"])
        assert str(error).startswith("[NOTES_OMITTED]")
        assert "omitted" in str(error)
        assert error.omitted == ["x", "y"]
