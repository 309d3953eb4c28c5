"""
Tests for the command surface on both backends, and the error boundary.
"""
import pytest

from pmvault.commands import COMMAND_NAMES, Commands, error_message
from pmvault.errors import ConfigError, TaskNotFound
from pmvault.schema import DEFAULT_COLUMNS


class ExplodingSession:
    """HTTP session that must never be reached."""

    def post(self, *args, **kwargs):
        raise AssertionError("network call attempted")


@pytest.fixture(params=["vault", "json"])
def commands(request, make_config):
    return Commands(make_config(backend=request.param))


@pytest.fixture
def vault_commands(make_config):
    return Commands(make_config(backend="vault"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Both backends
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_vault_info(commands, tmp_path):
    info = commands.vault_info()
    assert info["path"].startswith(str(tmp_path))
    assert info["backend"] == commands.config.backend


def test_list_boards(commands):
    boards = commands.list_boards()
    assert [b["id"] for b in boards] == ["default"]
    assert boards[0]["columns"] == DEFAULT_COLUMNS


def test_create_story_defaults(commands):
    story = commands.create_story("Story", description="Because")
    assert story["column"] == "Backlog"
    assert story["board"] == "default"
    assert story["tags"] == ["story"]
    assert story["id"].startswith("story-")


def test_create_story_then_move(commands):
    story = commands.create_story(
        "Story",
        project_id="project-9",
        acceptance_criteria=["one"],
        column="Ready",
    )
    assert story["column"] == "Ready"
    moved = commands.update_task_column(story["id"], "Done")
    assert moved["column"] == "Done"
    assert moved["updated"]

    board = commands.get_board_with_tasks("default")
    done = next(c for c in board["columns"] if c["name"] == "Done")
    assert story["id"] in [t["id"] for t in done["tasks"]]


def test_lists_sorted_by_title(commands):
    for title in ["m", "Z", "a"]:
        commands.create_project(title)
        commands.create_epic(title, project_id="p")
        commands.create_story(title)
    for items in (commands.list_projects(), commands.list_epics(), commands.list_tasks()):
        titles = [i["title"] for i in items]
        assert titles == sorted(titles)


def test_list_epics_by_project(commands):
    project = commands.create_project("Launch", owner="sam", description="Go live")
    assert project["owner"] == "sam"
    epic = commands.create_epic("Website", project_id=project["id"])
    assert [e["id"] for e in commands.list_epics(project["id"])] == [epic["id"]]


def test_update_unknown_task(commands):
    with pytest.raises(TaskNotFound):
        commands.update_task_column("task-missing", "Done")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Vault-specific seeded behavior
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_move_seeded_task(vault_commands):
    vault_commands.update_task_column("task-1", "Done")
    task = next(t for t in vault_commands.list_tasks() if t["id"] == "task-1")
    assert task["column"] == "Done"
    assert task["updated"]


def test_seeded_board_with_tasks(vault_commands):
    board = vault_commands.get_board_with_tasks("default")
    assert [c["name"] for c in board["columns"]] == DEFAULT_COLUMNS
    assert [t["id"] for t in board["columns"][0]["tasks"]] == ["task-1"]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Boundary
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_invoke_success(vault_commands):
    result = vault_commands.invoke("list_tasks", board_id="default")
    assert result.ok
    assert {t["id"] for t in result.data} == {"task-1", "task-2"}
    assert result.to_dict()["ok"] is True


def test_invoke_not_found_is_flat_message(vault_commands):
    result = vault_commands.invoke("get_board_with_tasks", board_id="nope")
    assert not result.ok
    assert result.error == "board not found: nope"
    assert result.to_dict() == {"ok": False, "error": "board not found: nope"}


def test_invoke_unknown_task(vault_commands):
    result = vault_commands.invoke("update_task_column", task_id="task-x", column="Done")
    assert result.error == "task not found: task-x"


def test_invoke_invalid_utf8_is_flat_message(vault_commands, tmp_path):
    vault_commands.invoke("vault_info")
    path = tmp_path / "vault" / "tasks" / "task-1.md"
    path.write_bytes(b"---\nid: task-1\ntitle: \xff\n---\n")
    result = vault_commands.invoke("update_task_column", task_id="task-1", column="Done")
    assert not result.ok
    assert "invalid utf-8" in result.error


def test_invoke_invalid_utf8_json_document(make_config, tmp_path):
    commands = Commands(make_config(backend="json"))
    (tmp_path / "pm-db.json").write_bytes(b'{"version": 1, "boards": ["\xff"]}')
    result = commands.invoke("list_boards")
    assert not result.ok
    assert "invalid utf-8" in result.error


def test_invoke_unknown_command(vault_commands):
    result = vault_commands.invoke("delete_task", task_id="task-1")
    assert not result.ok
    assert "unknown command" in result.error


def test_invoke_bad_arguments(vault_commands):
    result = vault_commands.invoke("create_story", name="no title kwarg")
    assert not result.ok
    assert "invalid arguments" in result.error


def test_invoke_validation_error(vault_commands):
    result = vault_commands.invoke("create_project", title=42)
    assert not result.ok
    assert "title must be a string" in result.error


def test_invoke_accepts_blank_title(vault_commands):
    result = vault_commands.invoke("create_project", title="")
    assert result.ok
    assert result.data["title"] == ""


def test_invoke_io_error(make_config, tmp_path):
    blocker = tmp_path / "blocked"
    blocker.write_text("a file where the store expects a directory")
    config = make_config()
    config.data_dir = str(blocker)
    result = Commands(config).invoke("list_boards")
    assert not result.ok
    assert result.error.startswith("io error:")


def test_autofill_without_key_never_calls_out(make_config):
    commands = Commands(make_config(openai_api_key=""))
    result = commands.invoke("openai_autofill_story", description="Reset passwords")
    assert not result.ok
    assert "OPENAI_API_KEY" in result.error

    # A session that would fail loudly is not reached either
    commands.autofill_client.http = ExplodingSession()
    with pytest.raises(ConfigError):
        commands.openai_autofill_story("Reset passwords")


def test_autofill_uses_injected_client(make_config):
    class StubClient:
        def autofill(self, payload):
            from pmvault.schema import AutofillResult
            return AutofillResult(title=f"About: {payload.description}")

    commands = Commands(make_config(), autofill_client=StubClient())
    assert commands.openai_autofill_story("x")["title"] == "About: x"


def test_every_command_is_callable(vault_commands):
    for name in COMMAND_NAMES:
        assert callable(getattr(vault_commands, name))


def test_error_message_formats():
    assert error_message(TaskNotFound("t")) == "task not found: t"
    assert error_message(PermissionError("denied")) == "io error: denied"
