"""A thread-safe FIFO of asynchronous tasks."""

from __future__ import annotations

from collections import deque
from typing import Callable, Optional

Task = Callable[[], object]


class TaskQueue:
    """Unbounded FIFO queue of tasks, safe to share between threads."""

    def __init__(self) -> None:
        self._items: deque[Task] = deque()

    def enqueue(self, task: Task) -> None:
        """Put ``task`` at the tail of the queue."""
        self._items.append(task)

    def dequeue(self) -> Optional[Task]:
        """Remove and return the task at the head, or ``None`` if empty."""
        try:
            return self._items.popleft()
        except IndexError:
            return None

    def empty(self) -> bool:
        """Report whether the queue holds no tasks."""
        return not self._items

    def __len__(self) -> int:
        return len(self._items)