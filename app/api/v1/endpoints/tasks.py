"""
Task Endpoints Module

This module provides CRUD endpoints for tasks shared between an owner and any number
of collaborators. Access rules and notification fan-out live in the service layer;
these handlers only translate between HTTP and TaskService.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from app.models.task import TaskRead
from app.models.user import User
from app.schemas.task import TaskCreate, TaskUpdate
from app.services.tasks import TaskService
from app.api import deps

router = APIRouter()


@router.get("", response_model=List[TaskRead])
def list_tasks(
    service: TaskService = Depends(deps.get_task_service),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Retrieve every task the caller owns or collaborates on.

    Each task carries an effective_status, which reads "Timed Out" once the due
    date has passed regardless of the stored status.
    """
    return service.present_many(service.list_for(current_user))


@router.get("/{task_id}", response_model=TaskRead)
def read_task(
    task_id: int,
    service: TaskService = Depends(deps.get_task_service),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Get a specific task by ID.

    Raises:
        404: If the task doesn't exist
        403: If the task is not shared with the caller
    """
    return service.present(service.get_for(current_user, task_id))


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    service: TaskService = Depends(deps.get_task_service),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Create a new task owned by the caller.

    Collaborators may be given by user id or by email. If any of them can't be
    found the task is not created and the 404 lists every unknown reference.
    Each collaborator receives an assignment notification and everyone involved
    receives a "created" notice.
    """
    task = service.create(current_user, task_in)
    return service.present(task)


@router.put("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: int,
    task_in: TaskUpdate,
    service: TaskService = Depends(deps.get_task_service),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Update an existing task.

    The owner and collaborators with can_edit may update fields. Only the owner
    may send a collaborators list; anyone else gets a 403 even when can_edit is set.

    Raises:
        404: If the task doesn't exist
        403: "Not allowed to edit this task" or "Only the owner can modify collaborators"
    """
    task = service.update(current_user, task_id, task_in)
    return service.present(task)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    service: TaskService = Depends(deps.get_task_service),
    current_user: User = Depends(deps.get_current_user),
):
    """
    Delete a task. Only the owner may do this.

    Everyone who could see the task gets a task-deleted realtime event and an
    info notification.
    """
    service.delete(current_user, task_id)
    return {"status": "success", "detail": "Task deleted"}
