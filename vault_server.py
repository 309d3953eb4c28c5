#!/usr/bin/env python3
"""
pmvault Server
--------------
JSON API over the vault commands, for the desktop shell or any local client.

Usage:
    python vault_server.py
    python vault_server.py --backend json --data-dir /tmp/pmvault

API:
    GET  /health                     → { status, backend, path }
    GET  /api/vault                  → { path, backend }
    GET  /api/boards                 → { boards }
    GET  /api/boards/<id>            → { board, columns: [{ name, tasks }] }
    GET  /api/tasks?board=<id>       → { tasks, count }
    POST /api/tasks/<id>/column      → JSON body: { column }
    GET  /api/projects               → { projects }
    POST /api/projects               → JSON body: { title, owner?, description? }
    GET  /api/epics?project=<id>     → { epics }
    POST /api/epics                  → JSON body: { title, projectId?, owner?, description? }
    POST /api/stories                → JSON body: { title, projectId?, epicId?, ..., column? }
    POST /api/autofill               → JSON body: { description, title?, asA?, ... }

Errors come back as { "error": "<message>" }.
"""

import logging
import sys

from flask import Flask, jsonify, request

from pmvault.commands import Commands, error_message
from pmvault.config import Config
from pmvault.errors import ConfigError, MalformedDocument, NotFound, SchemaError, UpstreamError, VaultError
from pmvault.schema import (
    AutofillPayload,
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
)

logger = logging.getLogger(__name__)

app = Flask(__name__)


def get_commands() -> Commands:
    """Commands bound at startup; built from Config.load() on first use."""
    commands = app.config.get("COMMANDS")
    if commands is None:
        commands = Commands(Config.load(app.config.get("CONFIG_PATH")))
        app.config["COMMANDS"] = commands
    return commands


def _status_for(exc: BaseException) -> int:
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, (SchemaError, MalformedDocument, ConfigError)):
        return 400
    if isinstance(exc, UpstreamError):
        return 502
    return 500


@app.errorhandler(VaultError)
@app.errorhandler(OSError)
def handle_vault_error(e):
    status = _status_for(e)
    if status >= 500:
        logger.warning(f"{request.method} {request.path} failed: {e}")
    return jsonify({"error": error_message(e)}), status


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


# ── Routes ───────────────────────────────────────────────────────────────────

@app.route("/api/vault")
def api_vault():
    return jsonify(get_commands().vault_info())


@app.route("/api/boards")
def api_boards():
    return jsonify({"boards": get_commands().list_boards()})


@app.route("/api/boards/<board_id>")
def api_board(board_id):
    return jsonify(get_commands().get_board_with_tasks(board_id))


@app.route("/api/tasks", methods=["GET"])
def api_tasks():
    tasks = get_commands().list_tasks(request.args.get("board") or None)
    return jsonify({"tasks": tasks, "count": len(tasks)})


@app.route("/api/tasks/<task_id>/column", methods=["POST"])
def api_update_task_column(task_id):
    """Move a task to another column."""
    column = _json_body().get("column")
    if not isinstance(column, str) or not column.strip():
        return jsonify({"error": "column is required"}), 400
    return jsonify({"task": get_commands().update_task_column(task_id, column)})


@app.route("/api/projects", methods=["GET"])
def api_projects():
    return jsonify({"projects": get_commands().list_projects()})


@app.route("/api/projects", methods=["POST"])
def api_create_project():
    payload = CreateProjectPayload.from_dict(_json_body())
    project = get_commands().create_project(
        payload.title, owner=payload.owner, description=payload.description,
    )
    return jsonify({"project": project, "id": project["id"]}), 201


@app.route("/api/epics", methods=["GET"])
def api_epics():
    return jsonify({"epics": get_commands().list_epics(request.args.get("project") or None)})


@app.route("/api/epics", methods=["POST"])
def api_create_epic():
    payload = CreateEpicPayload.from_dict(_json_body())
    epic = get_commands().create_epic(
        payload.title,
        project_id=payload.project_id,
        owner=payload.owner,
        description=payload.description,
    )
    return jsonify({"epic": epic, "id": epic["id"]}), 201


@app.route("/api/stories", methods=["POST"])
def api_create_story():
    """Create a story on the default board."""
    payload = CreateStoryPayload.from_dict(_json_body())
    story = get_commands().create_story(
        payload.title,
        project_id=payload.project_id,
        epic_id=payload.epic_id,
        owner=payload.owner,
        description=payload.description,
        as_a=payload.as_a,
        i_want=payload.i_want,
        so_that=payload.so_that,
        acceptance_criteria=payload.acceptance_criteria,
        column=payload.column,
    )
    return jsonify({"story": story, "id": story["id"]}), 201


@app.route("/api/autofill", methods=["POST"])
def api_autofill():
    """Infer missing story fields with the completion API."""
    payload = AutofillPayload.from_dict(_json_body())
    result = get_commands().openai_autofill_story(
        payload.description,
        title=payload.title,
        as_a=payload.as_a,
        i_want=payload.i_want,
        so_that=payload.so_that,
        acceptance_criteria=payload.acceptance_criteria,
    )
    return jsonify(result)


@app.route("/health")
def health():
    info = get_commands().vault_info()
    return jsonify({"status": "ok", "backend": info["backend"], "path": info["path"]})


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="pmvault Server")
    parser.add_argument("--host", default="127.0.0.1",
                        help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--config", help="Path to pmvault.yaml")
    parser.add_argument("--data-dir", help="Storage directory (overrides PMVAULT_DATA_DIR)")
    parser.add_argument("--backend", choices=["vault", "json"],
                        help="Storage backend (overrides PMVAULT_BACKEND)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [pmvault] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        config = Config.load(args.config)
        if args.data_dir:
            config.data_dir = args.data_dir
        if args.backend:
            config.backend = args.backend
        config.resolve_paths()
        commands = Commands(config)
        info = commands.vault_info()
    except (VaultError, OSError) as e:
        print(f"pmvault: {error_message(e)}", file=sys.stderr)
        sys.exit(1)

    app.config["COMMANDS"] = commands

    print(f"""
╔═══════════════════════════════════════╗
║  pmvault Server                       ║
╠═══════════════════════════════════════╣
║  URL:     http://{args.host}:{args.port:<17}║
║  Backend: {info['backend']:<28}║
║  Path:    {info['path']}
╚═══════════════════════════════════════╝
""")

    # One command at a time: stores do unguarded read-modify-write
    app.run(host=args.host, port=args.port, debug=False, threaded=False)
