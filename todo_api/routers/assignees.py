from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.task import BulkAssignees, TaskAssigneeCreate
from todo_api.models.user import UserResponse
from todo_api.services.assignee_service import AssigneeService

router = APIRouter(prefix="/api/v1/tasks/{task_id}/assignees", tags=["assignees"])


@router.get("", response_model=list[UserResponse])
async def get_assignees(
    task_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await AssigneeService.can_read(task_id, auth, db))
    users, count, total = await AssigneeService.read_all(
        task_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return users


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def add_assignee(
    task_id: int,
    data: TaskAssigneeCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await AssigneeService.can_create(task_id, auth, db))
    return await AssigneeService.add(task_id, data.user_id, db)


@router.post(
    "/bulk", response_model=list[UserResponse], status_code=status.HTTP_201_CREATED
)
async def bulk_assign(
    task_id: int, data: BulkAssignees, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    """Replace all assignees of a task"""
    check_right(await AssigneeService.can_bulk(task_id, auth, db))
    return await AssigneeService.bulk(task_id, data.assignees, db)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_assignee(
    task_id: int, user_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await AssigneeService.can_delete(task_id, auth, db))
    await AssigneeService.remove(task_id, user_id, db)
