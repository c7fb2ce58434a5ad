"""Common test fixtures for notenav."""

import textwrap
from pathlib import Path

import pytest

from notenav.config import config
from notenav.observability import metrics
from tests.factories import graph, write_note


@pytest.fixture(autouse=True)
def _reset_metrics():
    """Keep metrics from leaking between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def notes():
    """root, two top-level notes and one grandchild."""
    return graph("root", "a", "b", "a.x")


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Point the global config at a scratch workspace (auto-restored)."""
    monkeypatch.setattr(config, "workspace_dir", tmp_path)
    monkeypatch.setattr(config, "workspace_config", Path("dendron.yml"))
    monkeypatch.setattr(config, "sidebars_path", None)
    monkeypatch.setattr(config, "duplicate_vaults", [])
    monkeypatch.setattr(config, "label_type", "title")
    monkeypatch.setattr(config, "log_level", "WARNING")
    monkeypatch.setattr(config, "log_dir", None)
    yield config


@pytest.fixture
def workspace(tmp_path):
    """A workspace with two vaults on disk.

    ``notes`` vault: root, projects, projects.alpha, projects.beta.tasks
    (projects.beta is missing and becomes a stub), tags, tags.urgent.
    ``shared`` vault: root-less, with a single ``projects`` note.
    """
    (tmp_path / "dendron.yml").write_text(
        textwrap.dedent(
            """\
            version: 5
            workspace:
              vaults:
                - fsPath: notes
                - fsPath: shared
                  name: team
            """
        ),
        encoding="utf-8",
    )
    notes_dir = tmp_path / "notes"
    notes_dir.mkdir()
    write_note(notes_dir, "root", id="root-notes", title="Root")
    write_note(notes_dir, "projects", id="projects", title="Projects", updated=1700000000000)
    write_note(notes_dir, "projects.alpha", id="alpha", title="Alpha", nav_order=2)
    write_note(notes_dir, "projects.beta.tasks", id="beta-tasks", title="Beta Tasks")
    write_note(notes_dir, "tags", id="tags", title="Tags")
    write_note(notes_dir, "tags.urgent", id="urgent", title="Urgent")
    (notes_dir / "README.txt").write_text("not a note", encoding="utf-8")

    shared_dir = tmp_path / "shared"
    shared_dir.mkdir()
    write_note(shared_dir, "projects", id="shared-projects", title="Shared Projects")
    return tmp_path
