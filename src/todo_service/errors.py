from __future__ import annotations


class TodoServiceError(Exception):
    """Base class for failures reported by the todo service layer."""


# PUBLIC_INTERFACE
class NotFoundError(TodoServiceError):
    """The requested todo does not exist."""

    def __init__(self, todo_id: int) -> None:
        super().__init__(f"todo {todo_id} not found")
        self.todo_id = todo_id


# PUBLIC_INTERFACE
class InternalError(TodoServiceError):
    """The store failed or the request could not be completed."""


class RequestCancelledError(TodoServiceError):
    """The request was cancelled or ran past its deadline before the store call finished."""
