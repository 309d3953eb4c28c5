#!/usr/bin/env python3
"""
Quick verification that the vault works end-to-end on both backends.
"""
import logging
import sys
import tempfile

from pmvault.commands import Commands
from pmvault.config import Config


def check_backend(backend: str, data_dir: str) -> bool:
    print(f"\n── {backend} backend ──")
    config = Config(data_dir=data_dir, backend=backend)
    config.resolve_paths()
    commands = Commands(config)

    print("\n[1/5] Opening store...")
    info = commands.invoke("vault_info")
    if not info.ok:
        print(f"❌ {info.error}")
        return False
    print(f"✅ Store at {info.data['path']}")

    print("\n[2/5] Listing boards...")
    boards = commands.invoke("list_boards").data
    for board in boards:
        print(f"   {board['id']}: {board['title']} {board['columns']}")

    print("\n[3/5] Creating project, epic and story...")
    project = commands.invoke("create_project", title="Verification").data
    epic = commands.invoke("create_epic", title="Smoke test", project_id=project["id"]).data
    story = commands.invoke(
        "create_story",
        title="Check the board renders",
        project_id=project["id"],
        epic_id=epic["id"],
        as_a="maintainer",
        i_want="a smoke test",
        so_that="releases do not break the vault",
    ).data
    print(f"✅ Story created: {story['id']} in '{story['column']}'")

    print("\n[4/5] Moving story to Done...")
    moved = commands.invoke("update_task_column", task_id=story["id"], column="Done")
    if not moved.ok:
        print(f"❌ {moved.error}")
        return False
    print(f"✅ updated={moved.data['updated']}")

    print("\n[5/5] Rendering default board...")
    board = commands.invoke("get_board_with_tasks", board_id="default").data
    for column in board["columns"]:
        titles = ", ".join(t["title"] for t in column["tasks"]) or "-"
        print(f"   {column['name']:<12} {titles}")

    missing = commands.invoke("update_task_column", task_id="task-missing", column="Done")
    if missing.ok:
        print("❌ Unknown task id was accepted")
        return False
    print(f"✅ Unknown task rejected: {missing.error}")
    return True


def main():
    logging.basicConfig(level=logging.WARNING, handlers=[logging.StreamHandler(sys.stdout)])

    print("=" * 60)
    print("pmvault Verification")
    print("=" * 60)

    ok = True
    for backend in ("vault", "json"):
        with tempfile.TemporaryDirectory(prefix=f"pmvault-{backend}-") as data_dir:
            ok = check_backend(backend, data_dir) and ok

    print("\n" + "=" * 60)
    print("✅ ALL CHECKS PASSED" if ok else "❌ CHECKS FAILED")
    print("=" * 60)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
