"""
Task contract for units run by the external workqueue
"""
from contextlib import ExitStack
from abc import ABC, abstractmethod
from typing import Any, Callable, ContextManager
from uuid import UUID

from .errors import TaskExecutionError

# project_id -> context manager yielding a tenant-scoped handle; released on exit
TenantScope = Callable[[UUID], ContextManager[Any]]


class Task(ABC):
    """A single unit of work the scheduler executes synchronously"""

    def __init__(self, name: str, requires_llm: bool = False):
        self.name = name
        self.requires_llm = requires_llm

    @abstractmethod
    def execute(self) -> None:
        """
        Run the task.

        Raises:
            TaskExecutionError: On infrastructure failures the scheduler may retry
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


def acquire_tenant(tenant_scope: TenantScope, project_id: UUID) -> ExitStack:
    """
    Enter the tenant scope for a project.

    Returns an ExitStack to be used in a `with` block so the scope is released
    on every exit path. Acquisition failures are wrapped as task errors.
    """
    stack = ExitStack()
    try:
        stack.enter_context(tenant_scope(project_id))
    except Exception as e:
        raise TaskExecutionError("acquire tenant connection", e) from e
    return stack
