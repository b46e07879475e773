from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import get_current_identity, get_todo_store
from ..models import Identity, TodoEntity
from ..schemas import MessageOut, PaginationInfo, TodoCreate, TodoOut, TodoPage, TodoUpdate
from ..services import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TodoStore

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


def _out(entity: TodoEntity) -> TodoOut:
    return TodoOut(**entity)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item owned by the caller and return it.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Validation error"},
        401: {"description": "Not authenticated"},
    },
)
def create_todo(
    payload: TodoCreate,
    identity: Identity = Depends(get_current_identity),
    store: TodoStore = Depends(get_todo_store),
) -> TodoOut:
    """
    Create a new Todo. Priority defaults to medium, completed to false.
    """
    return _out(store.create(identity, payload))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoPage,
    summary="List Todos",
    description=(
        "List the caller's todos, newest first.\n\n"
        "Query parameters:\n"
        "- page: 1-based page number (default 1)\n"
        f"- limit: page size, 1..{MAX_PAGE_SIZE} (default {DEFAULT_PAGE_SIZE})\n"
        "- search: case-insensitive substring matched against title or description\n\n"
        "Returns the page items and a pagination block."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    page: int = Query(1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(
        DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Maximum number of items per page"
    ),
    search: Optional[str] = Query(None, description="Search text for title/description"),
    identity: Identity = Depends(get_current_identity),
    store: TodoStore = Depends(get_todo_store),
) -> TodoPage:
    items, info = store.list(identity, page=page, page_size=limit, search=search)
    return TodoPage(items=[_out(it) for it in items], pagination=PaginationInfo(**info))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get one of the caller's Todo items by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(
    todo_id: str,
    identity: Identity = Depends(get_current_identity),
    store: TodoStore = Depends(get_todo_store),
) -> TodoOut:
    return _out(store.get(identity, todo_id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description=(
        "Partially update a Todo item: only the fields present in the body change. "
        "Send null to clear description or due_date."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Validation error"},
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    todo_id: str,
    payload: TodoUpdate,
    identity: Identity = Depends(get_current_identity),
    store: TodoStore = Depends(get_todo_store),
) -> TodoOut:
    return _out(store.update(identity, todo_id, payload))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Permanently delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: str,
    identity: Identity = Depends(get_current_identity),
    store: TodoStore = Depends(get_todo_store),
) -> MessageOut:
    store.delete(identity, todo_id)
    return MessageOut(message="Todo deleted successfully")
