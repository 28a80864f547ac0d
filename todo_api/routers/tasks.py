from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.task import TaskCreate, TaskFilter, TaskResponse, TaskUpdate
from todo_api.services.list_service import ListService
from todo_api.services.task_service import TaskService

router = APIRouter(prefix="/api/v1", tags=["tasks"])


def task_filter_params(
    sort_by: list[str] = Query(default=[]),
    order_by: list[str] = Query(default=[]),
    filter_by: list[str] = Query(default=[]),
    filter_value: list[str] = Query(default=[]),
    filter_comparator: list[str] = Query(default=[]),
    filter_concat: str = Query(default="and"),
    filter_include_nulls: bool = Query(default=False),
) -> TaskFilter:
    return TaskFilter(
        sort_by=sort_by,
        order_by=order_by,
        filter_by=filter_by,
        filter_value=filter_value,
        filter_comparator=filter_comparator,
        filter_concat=filter_concat,
        filter_include_nulls=filter_include_nulls,
    )


async def _collection(
    list_id: int,
    response: Response,
    auth,
    params,
    task_filter: TaskFilter,
    db: AsyncSession,
):
    tasks, count, total = await TaskService.collection(
        list_id,
        auth,
        db,
        task_filter=task_filter,
        search=params.search,
        page=params.page,
        per_page=params.per_page,
    )
    params.set_headers(response, total, count)
    return tasks


@router.get("/tasks/all", response_model=list[TaskResponse])
async def get_all_tasks(
    response: Response,
    auth: AuthDep,
    params: PageDep,
    task_filter: TaskFilter = Depends(task_filter_params),
    db: AsyncSession = Depends(get_db),
):
    """Tasks of every list the user has access to"""
    return await _collection(0, response, auth, params, task_filter, db)


@router.get("/lists/{list_id}/tasks", response_model=list[TaskResponse])
async def get_list_tasks(
    list_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    task_filter: TaskFilter = Depends(task_filter_params),
    db: AsyncSession = Depends(get_db),
):
    can_read, _ = await ListService.can_read(list_id, auth, db)
    check_right(can_read)
    return await _collection(list_id, response, auth, params, task_filter, db)


@router.post(
    "/lists/{list_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    list_id: int, data: TaskCreate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    """Create a new task"""
    check_right(await TaskService.can_create(list_id, auth, db))
    return await TaskService.create(list_id, data, auth, db)


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(task_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    """Get a specific task by ID"""
    check_right(await TaskService.can_read(task_id, auth, db))
    return await TaskService.read_one(task_id, db)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int, data: TaskUpdate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await TaskService.can_update(task_id, data, auth, db))
    return await TaskService.update(task_id, data, auth, db)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    """Delete a task"""
    check_right(await TaskService.can_delete(task_id, auth, db))
    await TaskService.delete(task_id, db)
