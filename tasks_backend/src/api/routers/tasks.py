from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from ..repositories import TaskRepository, get_repository
from ..schemas import DeleteAck, TaskCreate, TaskOut, TaskUpdate, UpdateAck

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description="List every task in the database, sorted ascending on the configured sort property.",
    responses={
        200: {"description": "List retrieved successfully"},
        502: {"description": "The external store could not be queried"},
        503: {"description": "The database schema could not be fetched"},
    },
)
def list_tasks(repo: TaskRepository = Depends(get_repository)) -> List[TaskOut]:
    return [TaskOut(**record) for record in repo.list_records()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description=(
        "Create a task from a property bag. Unknown properties and empty values "
        "are ignored; the database's title property is required."
    ),
    responses={
        201: {"description": "Task created successfully"},
        400: {"description": "Title property missing from the database or the request"},
    },
)
def create_task(payload: TaskCreate, repo: TaskRepository = Depends(get_repository)) -> TaskOut:
    """
    Create a new task and return it as stored.
    """
    return TaskOut(**repo.create_record(payload.properties))


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=UpdateAck,
    summary="Update Task",
    description="Partially update a task's properties and optionally its completion flag.",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
    },
)
def update_task(
    task_id: str, payload: TaskUpdate, repo: TaskRepository = Depends(get_repository)
) -> UpdateAck:
    ack = repo.update_record(task_id, payload.properties, payload.completed)
    return UpdateAck(**ack)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=DeleteAck,
    summary="Delete Task",
    description="Archive a task in the external store.",
    responses={
        200: {"description": "Task archived"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: str, repo: TaskRepository = Depends(get_repository)) -> DeleteAck:
    """
    Archive a task. The record is kept in the store but no longer listed.
    """
    return DeleteAck(**repo.archive_record(task_id))
