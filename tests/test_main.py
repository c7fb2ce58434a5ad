"""Tests for the command line interface."""
import json

import pytest

from notenav.config import config
from notenav.exceptions import ErrorCode
from notenav.main import main, parse_args


def _run(capsys, workspace, *args):
    code = main(["--workspace-dir", str(workspace), *args])
    return code, json.loads(capsys.readouterr().out)


class TestParseArgs:
    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_options(self):
        args = parse_args(["--workspace-dir", "ws", "--log-level", "DEBUG", "parents", "n1"])
        assert args.workspace_dir == "ws"
        assert args.log_level == "DEBUG"
        assert args.command == "parents"
        assert args.note_id == "n1"


@pytest.mark.usefixtures("isolated_config")
class TestCommands:
    """End-to-end runs against a workspace on disk."""

    def test_sidebar_default(self, capsys, workspace):
        code, data = _run(capsys, workspace, "sidebar")
        assert code == 0
        sidebar = data["defaultSidebar"]
        # same-named top-level notes keep vault load order
        assert [item.get("link", {}).get("id", item.get("id")) for item in sidebar] == [
            "projects",
            "shared-projects",
            "tags",
        ]
        projects = sidebar[0]
        assert projects["type"] == "category"
        assert projects["label"] == "Projects"
        assert [item["type"] for item in projects["items"]] == ["note", "category"]
        assert projects["items"][0] == {"type": "note", "id": "alpha", "label": "Alpha"}

    def test_sidebar_from_file(self, capsys, workspace):
        (workspace / "sidebars.yml").write_text(
            "main:\n  - type: note\n    id: tags.urgent\n    label: Hot\n", encoding="utf-8"
        )
        code, data = _run(capsys, workspace, "--sidebars", "sidebars.yml", "sidebar")
        assert code == 0
        assert data == {"main": [{"type": "note", "id": "urgent", "label": "Hot"}]}

    def test_sidebar_error_reported(self, capsys, workspace):
        (workspace / "sidebars.yml").write_text(
            "main:\n  - type: note\n    id: missing\n", encoding="utf-8"
        )
        code, data = _run(capsys, workspace, "--sidebars", "sidebars.yml", "sidebar")
        assert code == 1
        assert data["error"] == "SidebarItemNotFoundError"
        assert data["code"] == ErrorCode.SIDEBAR_ITEM_NOT_FOUND.value

    def test_tree(self, capsys, workspace):
        code, data = _run(capsys, workspace, "tree")
        assert code == 0
        keys = [node["key"] for node in data["roots"]]
        assert keys == ["projects", "shared-projects", "tags"]

        tags = data["roots"][2]
        assert tags["icon"] == "numberOutlined"
        assert tags["children"][0]["has_title_number_outlined"] is True
        stub = data["roots"][0]["children"][1]
        assert stub["key"] == "stub-notes-projects.beta"
        assert stub["icon"] == "plusOutlined"
        assert data["roots"][1]["vault_name"] == "team"
        assert data["child2parent"]["beta-tasks"] == "stub-notes-projects.beta"

    def test_parents(self, capsys, workspace):
        code, data = _run(capsys, workspace, "parents", "beta-tasks")
        assert code == 0
        assert data == [
            {"id": "projects", "label": "Projects"},
            {"id": "stub-notes-projects.beta", "label": "Beta"},
        ]

    def test_verify_all_vaults(self, capsys, workspace):
        code, data = _run(capsys, workspace, "verify")
        assert code == 0
        assert data == [
            {"vault": "notes", "ok": True, "error": None},
            {"vault": "team", "ok": True, "error": None},
        ]

    def test_verify_unknown_vault(self, capsys, workspace):
        code, data = _run(capsys, workspace, "verify", "nope")
        assert code == 1
        assert data["error"] == "ConfigurationError"

    def test_missing_workspace(self, capsys, tmp_path):
        code, data = _run(capsys, tmp_path / "empty", "tree")
        assert code == 1
        assert data["code"] == ErrorCode.CONFIG_MISSING.value

    def test_children_in_display_order(self, capsys, workspace):
        code, data = _run(capsys, workspace, "children", "projects")
        assert code == 0
        # nav_order puts alpha before the stub
        assert data == {
            "children": [
                {"id": "alpha", "title": "Alpha"},
                {"id": "stub-notes-projects.beta", "title": "Beta"},
            ],
            "omitted": [],
        }

    def test_children_reversed(self, capsys, workspace):
        code, data = _run(capsys, workspace, "children", "projects", "--reverse")
        assert code == 0
        assert [child["id"] for child in data["children"]] == [
            "stub-notes-projects.beta",
            "alpha",
        ]

    def test_children_of_unknown_note(self, capsys, workspace):
        code, data = _run(capsys, workspace, "children", "nope")
        assert code == 1
        assert data["code"] == ErrorCode.NOTE_NOT_FOUND.value

    def test_children_with_unknown_label_type(self, capsys, workspace, monkeypatch):
        monkeypatch.setattr(config, "label_type", "emoji")
        code, data = _run(capsys, workspace, "children", "projects")
        assert code == 1
        assert data["error"] == "ConfigurationError"
        assert data["code"] == ErrorCode.CONFIG_INVALID.value
        assert data["details"]["config_key"] == "label_type"

    def test_malformed_note_does_not_stop_the_run(self, capsys, workspace):
        (workspace / "notes" / "bad.md").write_text("---\nid: [unclosed\n---\n", encoding="utf-8")
        code, data = _run(capsys, workspace, "verify", "notes")
        assert code == 0
        assert data == [{"vault": "notes", "ok": True, "error": None}]

    def test_metrics_printed_to_stderr(self, capsys, workspace):
        code = main(["--workspace-dir", str(workspace), "--metrics", "tree"])
        captured = capsys.readouterr()
        assert code == 0
        # stdout stays a single JSON document
        assert "roots" in json.loads(captured.out)
        assert '"total_operations": 3' in captured.err
        for operation in ("load_notes", "get_sidebars", "generate_tree_menu"):
            assert f'"{operation}"' in captured.err

    def test_metrics_printed_after_failure(self, capsys, workspace):
        code = main(["--workspace-dir", str(workspace), "--metrics", "children", "nope"])
        captured = capsys.readouterr()
        assert code == 1
        assert json.loads(captured.out)["code"] == ErrorCode.NOTE_NOT_FOUND.value
        assert '"load_notes"' in captured.err

    def test_no_metrics_by_default(self, capsys, workspace):
        main(["--workspace-dir", str(workspace), "tree"])
        assert "total_operations" not in capsys.readouterr().err
