from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.errors import ErrUserAlreadyAssigned, ErrUserDoesNotHaveAccessToList
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.task import TaskAssignee
from todo_api.models.user import User, UserResponse
from todo_api.services import permissions
from todo_api.services.list_service import ListService
from todo_api.services.task_service import TaskService
from todo_api.services.user_service import UserService


class AssigneeService:
    @staticmethod
    async def _check_user_can_be_assigned(user_id: int, list_id: int, db: AsyncSession):
        user = await UserService.get_user_by_id(user_id, db)
        todo_list = await ListService.get_simple_by_id(list_id, db)
        if await permissions.list_right(user.id, todo_list, db) is None:
            raise ErrUserDoesNotHaveAccessToList(user_id=user.id, list_id=list_id)
        return user

    @staticmethod
    async def add(task_id: int, user_id: int, db: AsyncSession) -> UserResponse:
        task = await TaskService.get_by_id(task_id, db)
        user = await AssigneeService._check_user_can_be_assigned(user_id, task.list_id, db)

        existing = await db.exec(
            select(TaskAssignee).where(
                TaskAssignee.task_id == task.id, TaskAssignee.user_id == user.id
            )
        )
        if existing.first():
            raise ErrUserAlreadyAssigned(task_id=task.id, user_id=user.id)

        db.add(TaskAssignee(task_id=task.id, user_id=user.id))
        task.touch()
        await db.commit()
        return UserResponse.model_validate(user)

    @staticmethod
    async def remove(task_id: int, user_id: int, db: AsyncSession):
        task = await TaskService.get_by_id(task_id, db)
        result = await db.exec(
            select(TaskAssignee).where(
                TaskAssignee.task_id == task.id, TaskAssignee.user_id == user_id
            )
        )
        for assignee in result.all():
            await db.delete(assignee)
        task.touch()
        await db.commit()

    @staticmethod
    async def read_all(
        task_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[UserResponse], int, int]:
        task = await TaskService.get_by_id(task_id, db)

        query = (
            select(User)
            .join(TaskAssignee, col(TaskAssignee.user_id) == User.id)
            .where(TaskAssignee.task_id == task.id)
        )
        if search:
            query = query.where(col(User.username).contains(search))

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(TaskAssignee.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        users = [UserResponse.model_validate(u) for u in (await db.exec(query)).all()]
        return users, len(users), total

    @staticmethod
    async def bulk(task_id: int, user_ids: list[int], db: AsyncSession) -> list[UserResponse]:
        """Replace every assignee of a task with the given users"""
        task = await TaskService.get_by_id(task_id, db)

        wanted = {}
        for user_id in user_ids:
            user = await AssigneeService._check_user_can_be_assigned(
                user_id, task.list_id, db
            )
            wanted[user.id] = user

        current = await db.exec(select(TaskAssignee).where(TaskAssignee.task_id == task.id))
        existing_ids = set()
        for assignee in current.all():
            if assignee.user_id in wanted:
                existing_ids.add(assignee.user_id)
            else:
                await db.delete(assignee)

        for user_id in wanted:
            if user_id not in existing_ids:
                db.add(TaskAssignee(task_id=task.id, user_id=user_id))

        task.touch()
        await db.commit()
        return [UserResponse.model_validate(u) for u in wanted.values()]

    # Rights: managing assignees needs write access to the task's list

    @staticmethod
    async def can_do(task_id: int, auth: Auth, db: AsyncSession) -> bool:
        task = await TaskService.get_by_id(task_id, db)
        return await ListService.can_write(task.list_id, auth, db)

    @staticmethod
    async def can_read(task_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await TaskService.can_read(task_id, auth, db)

    can_create = can_do
    can_delete = can_do
    can_bulk = can_do
