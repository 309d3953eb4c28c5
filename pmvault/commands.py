"""
Command surface.

Each command opens the store (seeding defaults if needed), performs one read
or read-modify-write, and returns plain dicts. ``invoke`` is the boundary:
it turns every VaultError or I/O failure into a flat message string.
"""
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .autofill import AutofillClient
from .config import Config
from .errors import VaultError
from .schema import (
    AutofillPayload,
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
    VaultInfo,
)
from .store import KanbanStore, open_store

logger = logging.getLogger(__name__)

COMMAND_NAMES = (
    "vault_info",
    "list_boards",
    "list_tasks",
    "get_board_with_tasks",
    "update_task_column",
    "list_projects",
    "list_epics",
    "create_project",
    "create_epic",
    "create_story",
    "openai_autofill_story",
)


@dataclass
class CommandResult:
    """Outcome of one command: a payload or a human readable error."""
    ok: bool
    data: Any = None
    error: str = ""

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error}


def error_message(exc: BaseException) -> str:
    """Flatten an exception into the message shown to the user."""
    if isinstance(exc, VaultError):
        return str(exc)
    if isinstance(exc, OSError):
        return f"io error: {exc}"
    return f"{type(exc).__name__}: {exc}"


class Commands:
    """The vault commands, bound to one store and one autofill client."""

    def __init__(
        self,
        config: Config,
        store: Optional[KanbanStore] = None,
        autofill_client: Optional[AutofillClient] = None,
    ):
        self.config = config
        self.store = store or open_store(config)
        self.autofill_client = autofill_client or AutofillClient(config)

    # ── Reads ───────────────────────────────────────────────────────────────

    def vault_info(self) -> Dict[str, Any]:
        self.store.ensure()
        return VaultInfo(path=str(self.store.location), backend=self.store.backend).to_dict()

    def list_boards(self) -> List[Dict[str, Any]]:
        return [b.to_dict() for b in self.store.list_boards()]

    def list_tasks(self, board_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [t.to_dict() for t in self.store.list_tasks(board_id)]

    def get_board_with_tasks(self, board_id: str) -> Dict[str, Any]:
        return self.store.board_with_tasks(board_id).to_dict()

    def list_projects(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.store.list_projects()]

    def list_epics(self, project_id: Optional[str] = None) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.store.list_epics(project_id)]

    # ── Writes ──────────────────────────────────────────────────────────────

    def update_task_column(self, task_id: str, column: str) -> Dict[str, Any]:
        return self.store.update_task_column(task_id, column).to_dict()

    def create_project(
        self,
        title: str,
        owner: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = CreateProjectPayload.from_dict(
            {"title": title, "owner": owner, "description": description}
        )
        return self.store.create_project(payload).to_dict()

    def create_epic(
        self,
        title: str,
        project_id: Optional[str] = None,
        owner: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = CreateEpicPayload.from_dict({
            "title": title,
            "project_id": project_id,
            "owner": owner,
            "description": description,
        })
        return self.store.create_epic(payload).to_dict()

    def create_story(
        self,
        title: str,
        project_id: Optional[str] = None,
        epic_id: Optional[str] = None,
        owner: Optional[str] = None,
        description: Optional[str] = None,
        as_a: Optional[str] = None,
        i_want: Optional[str] = None,
        so_that: Optional[str] = None,
        acceptance_criteria: Optional[List[str]] = None,
        column: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = CreateStoryPayload.from_dict({
            "title": title,
            "project_id": project_id,
            "epic_id": epic_id,
            "owner": owner,
            "description": description,
            "as_a": as_a,
            "i_want": i_want,
            "so_that": so_that,
            "acceptance_criteria": acceptance_criteria,
            "column": column,
        })
        return self.store.create_story(payload).to_dict()

    # ── Autofill ────────────────────────────────────────────────────────────

    def openai_autofill_story(
        self,
        description: str,
        title: Optional[str] = None,
        as_a: Optional[str] = None,
        i_want: Optional[str] = None,
        so_that: Optional[str] = None,
        acceptance_criteria: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        payload = AutofillPayload.from_dict({
            "description": description,
            "title": title,
            "as_a": as_a,
            "i_want": i_want,
            "so_that": so_that,
            "acceptance_criteria": acceptance_criteria,
        })
        return self.autofill_client.autofill(payload).to_dict()

    # ── Boundary ────────────────────────────────────────────────────────────

    def invoke(self, name: str, **kwargs) -> CommandResult:
        """Run a command by name; never raises for VaultError or OSError."""
        if name not in COMMAND_NAMES:
            return CommandResult(ok=False, error=f"unknown command: {name}")

        handler = getattr(self, name)
        try:
            inspect.signature(handler).bind(**kwargs)
        except TypeError as e:
            return CommandResult(ok=False, error=f"invalid arguments for {name}: {e}")

        try:
            return CommandResult(ok=True, data=handler(**kwargs))
        except (VaultError, OSError) as e:
            logger.warning(f"Command {name} failed: {e}")
            return CommandResult(ok=False, error=error_message(e))
