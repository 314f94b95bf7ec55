from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import PlainTextResponse
from typing import Any, List, Optional
import logging

from config import Settings, get_settings
from errors import ForbiddenError, NotFoundError, ValidationError, ValidationFailure
from middleware.auth import require_read_identity, require_write_identity
from models import Task
from repository import TaskRepository, get_task_repository
from schemas import (
    PRIORITY_LEVELS,
    PRIORITY_MESSAGE,
    TAGS,
    TAG_MESSAGE,
    Identity,
    TaskCreate,
    TaskFilter,
    TaskResponse,
    normalize_choice,
    parse_payload,
    to_utc,
)
from utils.patch import build_patch_operations

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_json_body(
    request: Request,
    identity: Identity = Depends(require_write_identity)
) -> Any:
    """
    Decode the JSON request body once the caller is authenticated

    Raises:
        ValidationError: If the body is empty or not valid JSON
    """
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError(
            ValidationFailure.INVALID_PAYLOAD, "Request body must be valid JSON."
        ) from exc


@router.post(
    "/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED
)
def create_task(
    identity: Identity = Depends(require_write_identity),
    payload: Any = Depends(read_json_body),
    repository: TaskRepository = Depends(get_task_repository),
    settings: Settings = Depends(get_settings)
) -> Task:
    """
    Create a new task

    Args:
        payload: Task JSON; id, owner and creation time are assigned here
        identity: Verified caller
        repository: Task store
        settings: Application settings

    Returns:
        The persisted task
    """
    logger.info("Create task triggered")
    task_data = parse_payload(TaskCreate, payload)

    if task_data.title is None or not task_data.title.strip():
        raise ValidationError(ValidationFailure.MISSING_TITLE, "Task must have a title.")

    # The owner always comes from the token
    if (
        settings.strict_owner_check
        and task_data.user_email is not None
        and task_data.user_email != identity.email
    ):
        raise ValidationError(
            ValidationFailure.OWNER_MISMATCH,
            "userEmail does not match the authenticated user.",
        )

    priority_level = normalize_choice(task_data.priority_level, PRIORITY_LEVELS, PRIORITY_MESSAGE)
    tag = normalize_choice(task_data.tag, TAGS, TAG_MESSAGE)

    task = Task(
        title=task_data.title.strip(),
        description=task_data.description.strip() if task_data.description else None,
        is_completed=task_data.is_completed,
        user_email=identity.email,
        priority_level=priority_level or "low",
        tag=tag,
        due_date=to_utc(task_data.due_date),
    )

    return repository.insert(task)


@router.get("/tasks", response_model=List[TaskResponse])
def list_tasks(
    identity: Identity = Depends(require_read_identity),
    repository: TaskRepository = Depends(get_task_repository)
) -> List[Task]:
    """
    Get all tasks for authenticated user

    Order is whatever the store returns and may differ between calls.
    """
    logger.info("List tasks triggered")
    return repository.list_for_owner(identity.email)


@router.get("/tasks/filter", response_model=List[TaskResponse])
def query_tasks(
    priority: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    due: Optional[str] = None,
    identity: Identity = Depends(require_read_identity),
    repository: TaskRepository = Depends(get_task_repository)
) -> List[Task]:
    """
    Get the authenticated user's tasks matching every supplied filter

    Args:
        priority: low, medium or high
        status_filter: "completed", anything else means not completed
        due: "today" or "tomorrow" (UTC), anything else means today

    Returns:
        Matching tasks
    """
    logger.info("Query tasks triggered")
    filters = TaskFilter.from_params({"priority": priority, "status": status_filter, "due": due})
    return repository.query(identity.email, filters)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    identity: Identity = Depends(require_read_identity),
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """Get task details"""
    logger.info("Get task triggered")
    task = repository.get(task_id, identity.email)

    if task is None:
        raise NotFoundError()

    return task


@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    identity: Identity = Depends(require_write_identity),
    payload: Any = Depends(read_json_body),
    repository: TaskRepository = Depends(get_task_repository)
) -> Task:
    """
    Update a task

    Only the fields present in the body are replaced. A task owned by someone
    else is reported exactly like a missing one.
    """
    logger.info("Update task triggered")
    existing = repository.find_by_id(task_id)

    if existing is None or existing.user_email != identity.email:
        raise NotFoundError("Task not found or access denied.")

    operations = build_patch_operations(payload)
    task = repository.patch(task_id, identity.email, operations)

    # Deleted between lookup and patch
    if task is None:
        raise NotFoundError("Task not found or access denied.")

    return task


@router.delete("/tasks/{task_id}", response_class=PlainTextResponse)
def delete_task(
    task_id: str,
    identity: Identity = Depends(require_write_identity),
    repository: TaskRepository = Depends(get_task_repository)
) -> str:
    """
    Delete a task

    Unlike update, a task owned by someone else is reported as forbidden.
    """
    logger.info("Delete task triggered")
    task = repository.find_by_id(task_id)

    if task is None:
        raise NotFoundError()

    if task.user_email != identity.email:
        raise ForbiddenError("You are not allowed to delete this task.")

    title = task.title
    if not repository.delete(task_id, identity.email):
        raise NotFoundError()

    return f"Task '{title}' deleted."
