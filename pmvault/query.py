"""
Filtering and sorting over in-memory entity collections.

Shared by both stores so that ordering and column membership rules are the
same whichever backend loaded the data.
"""
import logging
from typing import Dict, Iterable, List, Optional, TypeVar

from .schema import Board, BoardColumn, BoardWithTasks, Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


def sort_by_title(items: Iterable[T]) -> List[T]:
    """Sort by title, ascending, ordinal (case-sensitive). Stable."""
    return sorted(items, key=lambda item: item.title)


def filter_by_parent(items: Iterable[T], attr: Optional[str], parent_id: Optional[str]) -> List[T]:
    """Keep items whose ``attr`` equals ``parent_id``; no-op when either is None."""
    if attr is None or parent_id is None:
        return list(items)
    return [item for item in items if getattr(item, attr, None) == parent_id]


def partition_by_column(board: Board, tasks: Iterable[Task]) -> BoardWithTasks:
    """
    Group the board's tasks into its declared columns, in column order.

    Tasks on other boards are ignored. Tasks whose column is not declared on
    the board are left out of the result.
    """
    by_column: Dict[str, List[Task]] = {}
    for task in tasks:
        if task.board != board.id:
            continue
        by_column.setdefault(task.column, []).append(task)

    columns = []
    for name in board.columns:
        columns.append(BoardColumn(name=name, tasks=sort_by_title(by_column.pop(name, []))))

    for name, stray in by_column.items():
        logger.debug(
            f"Board {board.id}: {len(stray)} task(s) in undeclared column '{name}' left out"
        )

    return BoardWithTasks(board=board, columns=columns)
