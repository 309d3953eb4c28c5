"""
Storage interface shared by the vault and flat-JSON backends.

Backends only know how to load, look up and write entities of one kind;
queries, creates and the column move live here once.
"""
import logging
import time
from pathlib import Path
from typing import Any, List, Optional

from .errors import BoardNotFound, ConfigError, EntityNotFound, TaskNotFound
from .query import filter_by_parent, partition_by_column, sort_by_title
from .schema import (
    DEFAULT_BOARD_ID,
    DEFAULT_BOARD_TITLE,
    DEFAULT_COLUMNS,
    DEFAULT_STORY_COLUMN,
    ENTITY_TYPES,
    STORY_TAG,
    Board,
    BoardWithTasks,
    CreateEpicPayload,
    CreateProjectPayload,
    CreateStoryPayload,
    EntityKind,
    Epic,
    Project,
    Task,
)

logger = logging.getLogger(__name__)


def now_epoch() -> str:
    """Unix epoch seconds as a string."""
    return str(int(time.time()))


def default_board() -> Board:
    return Board(id=DEFAULT_BOARD_ID, title=DEFAULT_BOARD_TITLE, columns=list(DEFAULT_COLUMNS))


def kind_of(entity: Any) -> EntityKind:
    for kind, cls in ENTITY_TYPES.items():
        if isinstance(entity, cls):
            return kind
    raise TypeError(f"not a vault entity: {type(entity).__name__}")


class KanbanStore:
    """Base class for the storage backends."""

    backend = ""

    def __init__(self, root: Path):
        self.root = Path(root)

    # ── Backend hooks ───────────────────────────────────────────────────────

    @property
    def location(self) -> Path:
        """Path reported by ``vault_info``."""
        raise NotImplementedError

    def ensure(self) -> None:
        """Create the storage layout and seed data if missing. Idempotent."""
        raise NotImplementedError

    def _load_all(self, kind: EntityKind) -> List[Any]:
        raise NotImplementedError

    def _get(self, kind: EntityKind, entity_id: str) -> Any:
        """Return one entity; raise EntityNotFound if absent."""
        raise NotImplementedError

    def _save(self, kind: EntityKind, entity: Any) -> None:
        raise NotImplementedError

    def _exists(self, kind: EntityKind, entity_id: str) -> bool:
        return any(e.id == entity_id for e in self._load_all(kind))

    # ── Queries ─────────────────────────────────────────────────────────────

    def list(self, kind: EntityKind, parent_id: Optional[str] = None) -> List[Any]:
        """All entities of ``kind``, optionally filtered by parent, sorted by title."""
        self.ensure()
        items = self._load_all(kind)
        return sort_by_title(filter_by_parent(items, kind.parent_field, parent_id))

    def list_boards(self) -> List[Board]:
        return self.list(EntityKind.BOARD)

    def list_tasks(self, board_id: Optional[str] = None) -> List[Task]:
        return self.list(EntityKind.TASK, board_id)

    def list_projects(self) -> List[Project]:
        return self.list(EntityKind.PROJECT)

    def list_epics(self, project_id: Optional[str] = None) -> List[Epic]:
        return self.list(EntityKind.EPIC, project_id)

    def get_board(self, board_id: str) -> Board:
        self.ensure()
        try:
            return self._get(EntityKind.BOARD, board_id)
        except EntityNotFound:
            raise BoardNotFound(board_id) from None

    def get_task(self, task_id: str) -> Task:
        self.ensure()
        try:
            return self._get(EntityKind.TASK, task_id)
        except EntityNotFound:
            raise TaskNotFound(task_id) from None

    def board_with_tasks(self, board_id: str) -> BoardWithTasks:
        """The board with its declared columns populated by matching tasks."""
        board = self.get_board(board_id)
        return partition_by_column(board, self._load_all(EntityKind.TASK))

    # ── Mutations ───────────────────────────────────────────────────────────

    def save(self, entity: Any) -> None:
        """Write ``entity``, replacing any stored entity with the same id."""
        self.ensure()
        self._save(kind_of(entity), entity)

    def update_task_column(self, task_id: str, column: str) -> Task:
        """Move a task to ``column`` and stamp ``updated``. Nothing is written for unknown ids."""
        task = self.get_task(task_id)
        task.column = column
        task.updated = now_epoch()
        self._save(EntityKind.TASK, task)
        logger.info(f"Task {task_id} moved to '{column}'")
        return task

    def create_project(self, payload: CreateProjectPayload) -> Project:
        self.ensure()
        project = Project(
            id=self._new_id(EntityKind.PROJECT, "project"),
            title=payload.title,
            owner=payload.owner,
            created=now_epoch(),
            description=payload.description,
        )
        self._save(EntityKind.PROJECT, project)
        logger.info(f"Created project {project.id}")
        return project

    def create_epic(self, payload: CreateEpicPayload) -> Epic:
        self.ensure()
        epic = Epic(
            id=self._new_id(EntityKind.EPIC, "epic"),
            title=payload.title,
            project_id=payload.project_id,
            owner=payload.owner,
            created=now_epoch(),
            description=payload.description,
        )
        self._save(EntityKind.EPIC, epic)
        logger.info(f"Created epic {epic.id}")
        return epic

    def create_story(self, payload: CreateStoryPayload) -> Task:
        """Create a story task on the default board."""
        self.ensure()
        description = payload.description or ""
        task = Task(
            id=self._new_id(EntityKind.TASK, "story"),
            title=payload.title,
            board=DEFAULT_BOARD_ID,
            column=payload.column or DEFAULT_STORY_COLUMN,
            tags=[STORY_TAG],
            created=now_epoch(),
            project_id=payload.project_id,
            epic_id=payload.epic_id,
            owner=payload.owner,
            description=description or None,
            as_a=payload.as_a,
            i_want=payload.i_want,
            so_that=payload.so_that,
            acceptance_criteria=payload.acceptance_criteria,
            body=description,
        )
        self._save(EntityKind.TASK, task)
        logger.info(f"Created story {task.id} in '{task.column}'")
        return task

    def _new_id(self, kind: EntityKind, prefix: str) -> str:
        """``<prefix>-<epoch>``, bumped past ids already taken this second."""
        stamp = int(now_epoch())
        while self._exists(kind, f"{prefix}-{stamp}"):
            stamp += 1
        return f"{prefix}-{stamp}"


def open_store(config) -> KanbanStore:
    """Build the backend selected by ``config.backend``."""
    # local imports: both backends import this module
    from .json_store import JsonStore
    from .vault_store import VaultStore

    backends = {VaultStore.backend: VaultStore, JsonStore.backend: JsonStore}
    if config.backend not in backends:
        raise ConfigError(
            f"Unknown storage backend '{config.backend}'. "
            f"Available: {sorted(backends)}"
        )
    return backends[config.backend](Path(config.data_dir))
