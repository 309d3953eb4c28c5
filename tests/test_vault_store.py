"""
Tests for the vault backend: layout, seeding, listing, lookups and writes.
"""
import pytest

from pmvault import frontmatter
from pmvault.errors import BoardNotFound, MalformedDocument, SchemaError, TaskNotFound
from pmvault.schema import (
    DEFAULT_COLUMNS,
    Board,
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
    EntityKind,
    Project,
    Task,
)
from pmvault.vault_store import VaultStore


def _snapshot(directory):
    return {p.name: p.read_text() for p in directory.iterdir()}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Layout & seeding
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_ensure_layout_creates_subdirectories(tmp_path):
    store = VaultStore(tmp_path)
    store.ensure_layout()
    for name in ("boards", "tasks", "projects", "epics"):
        assert (tmp_path / "vault" / name).is_dir()
    assert (tmp_path / "vault" / "boards" / "default.md").is_file()
    assert (tmp_path / "vault" / "tasks" / "task-1.md").is_file()


def test_ensure_layout_is_idempotent(vault_store):
    tasks_dir = vault_store.kind_dir(EntityKind.TASK)
    before = _snapshot(tasks_dir)
    vault_store.ensure_layout()
    vault_store.ensure_layout()
    assert _snapshot(tasks_dir) == before


def test_ensure_layout_does_not_reseed_populated_directory(tmp_path):
    store = VaultStore(tmp_path)
    tasks_dir = store.kind_dir(EntityKind.TASK)
    tasks_dir.mkdir(parents=True)
    store.write(EntityKind.TASK, Task(id="mine", title="Mine", board="default", column="Inbox"))
    store.ensure_layout()
    assert [t.id for t in store.list_tasks()] == ["mine"]
    # Other empty kinds still get their samples
    assert [b.id for b in store.list_boards()] == ["default"]


def test_seeded_board(vault_store):
    boards = vault_store.list_boards()
    assert len(boards) == 1
    assert boards[0].id == "default"
    assert boards[0].columns == DEFAULT_COLUMNS


def test_seeded_projects_and_epics(vault_store):
    assert [p.id for p in vault_store.list_projects()] == ["project-1"]
    assert [e.id for e in vault_store.list_epics("project-1")] == ["epic-1"]
    assert vault_store.list_epics("project-unknown") == []


def test_fresh_board_with_tasks(vault_store):
    result = vault_store.board_with_tasks("default")
    assert result.board.id == "default"
    assert [c.name for c in result.columns] == DEFAULT_COLUMNS
    placed = {c.name: [t.id for t in c.tasks] for c in result.columns}
    assert placed["Inbox"] == ["task-1"]
    assert placed["Backlog"] == ["task-2"]
    assert all(not placed[name] for name in ("Ready", "In Progress", "Review", "Done"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Listing
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_list_sorted_by_title(vault_store):
    for i, title in enumerate(["zulu", "Alpha", "alpha", "Mike"]):
        vault_store.write(EntityKind.BOARD, Board(id=f"b{i}", title=title, columns=["X"]))
    titles = [b.title for b in vault_store.list_boards()]
    assert titles == sorted(titles)
    assert titles.index("Alpha") < titles.index("alpha")


def test_list_tasks_filtered_by_board(vault_store):
    vault_store.write(EntityKind.TASK, Task(id="other-1", title="Elsewhere", board="other", column="X"))
    assert [t.id for t in vault_store.list_tasks("other")] == ["other-1"]
    assert "other-1" not in [t.id for t in vault_store.list_tasks("default")]
    assert "other-1" in [t.id for t in vault_store.list_tasks()]


def test_list_skips_undecodable_files(vault_store):
    tasks_dir = vault_store.kind_dir(EntityKind.TASK)
    (tasks_dir / "broken.md").write_text("no frontmatter here\n")
    (tasks_dir / "unclosed.md").write_text("---\nid: unclosed\n")
    (tasks_dir / "incomplete.md").write_text("---\nid: incomplete\n---\n")
    (tasks_dir / "notes.txt").write_text("---\nid: txt\ntitle: T\nboard: default\ncolumn: Inbox\n---\n")
    ids = [t.id for t in vault_store.list_tasks()]
    assert ids == ["task-1", "task-2"]


def test_task_body_round_trip(vault_store):
    task = Task(id="task-9", title="Body", board="default", column="Inbox", body="# Notes\n\n- one")
    vault_store.save(task)
    assert vault_store.get_task("task-9").body == "# Notes\n\n- one"


def test_hand_written_file_is_listed(vault_store):
    path = vault_store.kind_dir(EntityKind.TASK) / "task-hand.md"
    path.write_text(
        "---\n"
        "id: task-hand\n"
        "title: Hand written\n"
        "board: default\n"
        "column: Review\n"
        "created: 1700000000\n"
        "due: 2024-05-01\n"
        "---\n"
        "Body\n"
    )
    task = vault_store.get_task("task-hand")
    assert task.created == "1700000000"
    assert task.due == "2024-05-01"
    assert task.body == "Body"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Lookups
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_read_by_id_unknown(vault_store):
    with pytest.raises(TaskNotFound):
        vault_store.get_task("task-missing")


def test_read_by_id_propagates_decode_errors(vault_store):
    (vault_store.kind_dir(EntityKind.TASK) / "task-bad.md").write_text("not a document")
    with pytest.raises(MalformedDocument):
        vault_store.get_task("task-bad")


def test_read_by_id_invalid_utf8_is_decode_error(vault_store):
    path = vault_store.kind_dir(EntityKind.TASK) / "task-1.md"
    path.write_bytes(b"---\nid: task-1\ntitle: \xff\n---\n")
    with pytest.raises(SchemaError, match="invalid utf-8"):
        vault_store.get_task("task-1")


def test_list_skips_invalid_utf8(vault_store):
    (vault_store.kind_dir(EntityKind.TASK) / "latin1.md").write_bytes(
        b"---\nid: latin1\ntitle: caf\xe9\nboard: default\ncolumn: Inbox\n---\n"
    )
    assert [t.id for t in vault_store.list_tasks()] == ["task-1", "task-2"]


def test_read_by_id_finds_misnamed_file(vault_store):
    text = frontmatter.serialize({"id": "task-x", "title": "X", "board": "default", "column": "Done"})
    (vault_store.kind_dir(EntityKind.TASK) / "renamed.md").write_text(text)
    assert vault_store.read_by_id(EntityKind.TASK, "task-x").title == "X"


def test_board_with_tasks_unknown_board(vault_store):
    with pytest.raises(BoardNotFound):
        vault_store.board_with_tasks("nope")


def test_board_with_tasks_drops_undeclared_columns(vault_store):
    vault_store.save(Task(id="task-stray", title="Stray", board="default", column="Archive"))
    result = vault_store.board_with_tasks("default")
    ids = [t.id for c in result.columns for t in c.tasks]
    assert "task-stray" not in ids


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Mutations
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_update_task_column(vault_store):
    task = vault_store.update_task_column("task-1", "Done")
    assert task.column == "Done"
    assert task.updated

    listed = {t.id: t for t in vault_store.list_tasks()}
    assert listed["task-1"].column == "Done"
    assert listed["task-1"].updated
    # Body survives the rewrite
    assert "Markdown file" in listed["task-1"].body


def test_update_unknown_task_writes_nothing(vault_store):
    tasks_dir = vault_store.kind_dir(EntityKind.TASK)
    before = _snapshot(tasks_dir)
    with pytest.raises(TaskNotFound):
        vault_store.update_task_column("task-missing", "Done")
    assert _snapshot(tasks_dir) == before


def test_write_overwrites_same_id(vault_store):
    vault_store.write(EntityKind.PROJECT, Project(id="project-1", title="Renamed"))
    projects = vault_store.list_projects()
    assert [(p.id, p.title) for p in projects] == [("project-1", "Renamed")]


def test_create_story_defaults(vault_store):
    story = vault_store.create_story(CreateStoryPayload(title="New story", description="Details"))
    assert story.id.startswith("story-")
    assert story.board == "default"
    assert story.column == "Backlog"
    assert story.tags == ["story"]
    assert story.created
    assert story.updated is None
    assert story.description == "Details"

    stored = vault_store.get_task(story.id)
    assert stored.body == "Details"
    assert stored.column == "Backlog"
    assert (vault_store.kind_dir(EntityKind.TASK) / f"{story.id}.md").is_file()


def test_create_story_explicit_column_and_empty_description(vault_store):
    story = vault_store.create_story(CreateStoryPayload(title="S", column="Ready", description=""))
    assert story.column == "Ready"
    assert story.description is None
    assert story.body == ""


def test_create_ids_unique_within_one_second(vault_store):
    first = vault_store.create_story(CreateStoryPayload(title="One"))
    second = vault_store.create_story(CreateStoryPayload(title="Two"))
    assert first.id != second.id
    assert second.id.startswith("story-")


def test_create_project_and_epic(vault_store):
    project = vault_store.create_project(CreateProjectPayload(title="Launch", owner="sam"))
    epic = vault_store.create_epic(CreateEpicPayload(title="Website", project_id=project.id))
    assert project.id.startswith("project-")
    assert epic.id.startswith("epic-")
    assert project.created and epic.created
    assert [e.id for e in vault_store.list_epics(project.id)] == [epic.id]
