from __future__ import annotations

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError

from ..context import RequestContext
from ..dependencies import get_request_context, get_settings_dep, get_todo_service
from ..errors import NotFoundError, TodoServiceError
from ..schemas import (
    INT64_MAX,
    INT64_MIN,
    CreateTodoRequest,
    CreateTodoResponse,
    DeleteTodoRequest,
    DeleteTodoResponse,
    ReadTodoResponse,
    TodoOut,
    UpdateTodoRequest,
    UpdateTodoResponse,
)
from ..service import TodoService
from ..settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

_INTEGER = re.compile(r"[+-]?[0-9]+")

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


def _internal_error(exc: TodoServiceError) -> HTTPException:
    logger.error("Todo request failed: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def _int_query(name: str, raw: Optional[str]) -> Optional[int]:
    """
    Parse an optional signed 64-bit integer query parameter. An empty value counts as absent.
    """
    if raw is None or raw == "":
        return None
    if _INTEGER.fullmatch(raw) and INT64_MIN <= int(raw) <= INT64_MAX:
        return int(raw)
    raise RequestValidationError(
        [
            {
                "type": "int_parsing",
                "loc": ("query", name),
                "msg": f"{name} must be a 64-bit integer",
                "input": raw,
            }
        ]
    )


def _page_size(size: Optional[int], settings: Settings) -> int:
    """
    Absent or non-positive sizes fall back to the default; MAX_PAGE_SIZE clamps when set.
    """
    if size is None or size <= 0:
        size = DEFAULT_PAGE_SIZE
    if settings.max_page_size and size > settings.max_page_size:
        size = settings.max_page_size
    return size


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreateTodoResponse,
    status_code=status.HTTP_200_OK,
    summary="Create Todo",
    description="Create a new Todo item and return it wrapped in a 'todo' envelope.",
    responses={
        200: {"description": "Todo created successfully"},
        400: {"description": "Malformed body or empty subject"},
        500: {"description": "Store failure"},
    },
)
def create_todo(
    payload: CreateTodoRequest,
    ctx: RequestContext = Depends(get_request_context),
    svc: TodoService = Depends(get_todo_service),
) -> CreateTodoResponse:
    """
    Create a new Todo.
    """
    try:
        created = svc.create(ctx, payload.subject, payload.description or "")
    except TodoServiceError as e:
        raise _internal_error(e) from e
    return CreateTodoResponse(todo=TodoOut(**created))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ReadTodoResponse,
    summary="List Todos",
    description=(
        "List todos newest first using cursor pagination.\n\n"
        "Query parameters:\n"
        "- prev_id: id of the last item of the previous page; 0 or absent starts at the newest\n"
        "- size: maximum number of items to return; absent or non-positive means 10\n\n"
        "A page shorter than size means the end of the collection."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Non-integer query parameters"},
        500: {"description": "Store failure"},
    },
)
def read_todos(
    prev_id: Optional[str] = Query(None, description="Cursor: id of the last item already seen"),
    size: Optional[str] = Query(None, description="Maximum number of items to return"),
    ctx: RequestContext = Depends(get_request_context),
    svc: TodoService = Depends(get_todo_service),
    settings: Settings = Depends(get_settings_dep),
) -> ReadTodoResponse:
    """
    Read one page of todos.
    """
    cursor = _int_query("prev_id", prev_id) or 0
    page_size = _page_size(_int_query("size", size), settings)
    try:
        todos = svc.read(ctx, cursor, page_size)
    except TodoServiceError as e:
        raise _internal_error(e) from e
    return ReadTodoResponse(todos=[TodoOut(**t) for t in todos])


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=UpdateTodoResponse,
    summary="Update Todo",
    description="Overwrite subject and description of the Todo identified by 'id' in the body.",
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Malformed body, zero id or empty subject"},
        404: {"description": "Todo not found"},
        500: {"description": "Store failure"},
    },
)
def update_todo(
    payload: UpdateTodoRequest,
    ctx: RequestContext = Depends(get_request_context),
    svc: TodoService = Depends(get_todo_service),
) -> UpdateTodoResponse:
    """
    Update a Todo. Unknown ids answer 404, any other failure 500.
    """
    try:
        updated = svc.update(ctx, payload.id, payload.subject, payload.description or "")
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")
    except TodoServiceError as e:
        raise _internal_error(e) from e
    return UpdateTodoResponse(todo=TodoOut(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=DeleteTodoResponse,
    summary="Delete Todos",
    description="Delete every Todo whose id is listed in 'ids'. Unknown ids are ignored.",
    responses={
        200: {"description": "Todos deleted"},
        400: {"description": "Malformed body"},
        500: {"description": "Store failure"},
    },
)
def delete_todos(
    payload: DeleteTodoRequest,
    ctx: RequestContext = Depends(get_request_context),
    svc: TodoService = Depends(get_todo_service),
) -> DeleteTodoResponse:
    """
    Delete Todos. Deleting an id that does not exist is not an error.
    """
    try:
        svc.delete(ctx, payload.ids)
    except TodoServiceError as e:
        raise _internal_error(e) from e
    return DeleteTodoResponse()
