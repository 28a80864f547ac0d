from datetime import datetime

from sqlmodel import and_, col, func, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api import metrics
from todo_api.core.errors import (
    ErrBucketDoesNotBelongToList,
    ErrBucketDoesNotExist,
    ErrGenericForbidden,
    ErrInvalidSortOrder,
    ErrInvalidSortParam,
    ErrInvalidTaskField,
    ErrInvalidTaskFilterComparator,
    ErrInvalidTaskFilterConcatinator,
    ErrInvalidTaskFilterValue,
    ErrTaskCannotBeEmpty,
    ErrTaskDoesNotExist,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.bucket import DEFAULT_BUCKET_TITLE, Bucket
from todo_api.models.common import get_utc_now
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.namespace import Namespace
from todo_api.models.task import (
    Task,
    TaskAssignee,
    TaskCreate,
    TaskFilter,
    TaskResponse,
    TaskUpdate,
)
from todo_api.models.todo_list import (
    FAVORITES_PSEUDO_LIST_ID,
    TodoList,
    get_saved_filter_id_from_list_id,
)
from todo_api.models.user import User, UserResponse
from todo_api.services import permissions
from todo_api.services.list_service import ListService
from todo_api.services.saved_filter_service import SavedFilterService
from todo_api.services.user_service import UserService

# Fields an update may clear with null
CLEARABLE_FIELDS = {"due_date", "start_date", "end_date"}

SORTABLE_FIELDS = {
    "id",
    "title",
    "description",
    "done",
    "done_at",
    "due_date",
    "created_by_id",
    "list_id",
    "priority",
    "start_date",
    "end_date",
    "percent_done",
    "hex_color",
    "created_at",
    "updated_at",
    "position",
    "bucket_id",
    "index",
}

FILTER_FIELD_TYPES = {
    "done": bool,
    "done_at": datetime,
    "due_date": datetime,
    "start_date": datetime,
    "end_date": datetime,
    "created_at": datetime,
    "updated_at": datetime,
    "priority": int,
    "percent_done": float,
    "title": str,
    "description": str,
    "bucket_id": int,
    "created_by_id": int,
    "list_id": int,
}

COMPARATORS = {
    "equals": lambda c, v: c == v,
    "not_equal": lambda c, v: c != v,
    "greater": lambda c, v: c > v,
    "greater_equals": lambda c, v: c >= v,
    "less": lambda c, v: c < v,
    "less_equals": lambda c, v: c <= v,
    "like": lambda c, v: c.contains(v),
}


def _parse_filter_value(field: str, value: str):
    kind = FILTER_FIELD_TYPES[field]
    try:
        if kind is bool:
            if value.lower() not in ("true", "false", "1", "0"):
                raise ValueError(value)
            return value.lower() in ("true", "1")
        if kind is datetime:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        return kind(value)
    except ValueError:
        raise ErrInvalidTaskFilterValue(field=field, value=value)


def build_filter_condition(task_filter: TaskFilter):
    """Translate the filter parameters into a where clause, None without filters"""
    if task_filter.filter_concat not in ("and", "or"):
        raise ErrInvalidTaskFilterConcatinator(concat=task_filter.filter_concat)
    if not task_filter.filter_by:
        return None
    if len(task_filter.filter_value) != len(task_filter.filter_by):
        raise ErrInvalidTaskFilterValue()

    conditions = []
    for i, field in enumerate(task_filter.filter_by):
        if field not in FILTER_FIELD_TYPES:
            raise ErrInvalidTaskField(field=field)

        comparator = "equals"
        if i < len(task_filter.filter_comparator):
            comparator = task_filter.filter_comparator[i]
        if comparator not in COMPARATORS:
            raise ErrInvalidTaskFilterComparator(comparator=comparator)
        if comparator == "like" and FILTER_FIELD_TYPES[field] is not str:
            raise ErrInvalidTaskFilterComparator(comparator=comparator)

        column = col(getattr(Task, field))
        value = _parse_filter_value(field, task_filter.filter_value[i])
        condition = COMPARATORS[comparator](column, value)
        if task_filter.filter_include_nulls:
            condition = or_(condition, column.is_(None))
        conditions.append(condition)

    if task_filter.filter_concat == "or":
        return or_(*conditions)
    return and_(*conditions)


def build_order_by(task_filter: TaskFilter) -> list:
    order = []
    for i, field in enumerate(task_filter.sort_by):
        if field not in SORTABLE_FIELDS:
            raise ErrInvalidSortParam(sort_by=field)
        direction = "asc"
        if i < len(task_filter.order_by):
            direction = task_filter.order_by[i]
        if direction not in ("asc", "desc"):
            raise ErrInvalidSortOrder(order_by=direction)
        column = col(getattr(Task, field))
        order.append(column.desc() if direction == "desc" else column.asc())

    # Stable pages need a unique last sort key
    if "id" not in task_filter.sort_by:
        order.append(col(Task.id).asc())
    return order


class TaskService:
    @staticmethod
    async def get_by_id(task_id: int, db: AsyncSession) -> Task:
        task = await db.get(Task, task_id) if task_id > 0 else None
        if not task:
            raise ErrTaskDoesNotExist(task_id=task_id)
        return task

    @staticmethod
    async def add_details(tasks, db: AsyncSession) -> list[TaskResponse]:
        """Responses with identifier, creator and assignees of every task"""
        if not tasks:
            return []

        list_ids = {t.list_id for t in tasks}
        lists = await db.exec(select(TodoList).where(col(TodoList.id).in_(list_ids)))
        identifiers = {l.id: l.identifier for l in lists.all()}

        task_ids = [t.id for t in tasks]
        result = await db.exec(
            select(TaskAssignee.task_id, User)
            .join(User, col(User.id) == TaskAssignee.user_id)
            .where(col(TaskAssignee.task_id).in_(task_ids))
            .order_by(TaskAssignee.id)
        )
        assignees: dict[int, list[UserResponse]] = {}
        for task_id, user in result.all():
            assignees.setdefault(task_id, []).append(UserResponse.model_validate(user))

        creators = await UserService.get_users_by_ids(
            {t.created_by_id for t in tasks}, db
        )

        responses = []
        for task in tasks:
            response = TaskResponse.model_validate(task)
            prefix = identifiers.get(task.list_id)
            response.identifier = f"{prefix}-{task.index}" if prefix else f"#{task.index}"
            creator = creators.get(task.created_by_id)
            if creator is not None:
                response.created_by = UserResponse.model_validate(creator)
            response.assignees = assignees.get(task.id, [])
            responses.append(response)
        return responses

    @staticmethod
    async def read_one(task_id: int, db: AsyncSession) -> TaskResponse:
        task = await TaskService.get_by_id(task_id, db)
        return (await TaskService.add_details([task], db))[0]

    @staticmethod
    async def _default_bucket(list_id: int, created_by_id: int, db: AsyncSession) -> Bucket:
        result = await db.exec(
            select(Bucket).where(Bucket.list_id == list_id).order_by(Bucket.id)
        )
        bucket = result.first()
        if bucket is None:
            bucket = Bucket(
                title=DEFAULT_BUCKET_TITLE, list_id=list_id, created_by_id=created_by_id
            )
            db.add(bucket)
            await db.flush()
        return bucket

    @staticmethod
    async def _check_bucket(bucket_id: int, list_id: int, db: AsyncSession) -> Bucket:
        bucket = await db.get(Bucket, bucket_id) if bucket_id > 0 else None
        if not bucket:
            raise ErrBucketDoesNotExist(bucket_id=bucket_id)
        if bucket.list_id != list_id:
            raise ErrBucketDoesNotBelongToList(bucket_id=bucket_id, list_id=list_id)
        return bucket

    @staticmethod
    async def _next_index(list_id: int, db: AsyncSession) -> int:
        result = await db.exec(
            select(func.max(Task.index)).where(Task.list_id == list_id)
        )
        return (result.one() or 0) + 1

    @staticmethod
    def creator_id(auth: Auth) -> int:
        # Tasks created through a link share are attributed to whoever shared it
        if isinstance(auth, LinkSharing):
            return auth.shared_by_id
        return auth.id

    @staticmethod
    async def create(
        list_id: int, data: TaskCreate, auth: Auth, db: AsyncSession
    ) -> TaskResponse:
        if not data.title:
            raise ErrTaskCannotBeEmpty()

        todo_list = await ListService.get_simple_by_id(list_id, db)
        creator_id = TaskService.creator_id(auth)

        if data.bucket_id:
            bucket = await TaskService._check_bucket(data.bucket_id, todo_list.id, db)
        else:
            bucket = await TaskService._default_bucket(todo_list.id, creator_id, db)

        task = Task.model_validate(
            data,
            update={
                "list_id": todo_list.id,
                "bucket_id": bucket.id,
                "index": await TaskService._next_index(todo_list.id, db),
                "created_by_id": creator_id,
            },
        )
        if task.done:
            task.done_at = get_utc_now()

        db.add(task)
        await db.commit()
        await db.refresh(task)

        await metrics.update_count(1, metrics.TASK_COUNT_KEY)
        return (await TaskService.add_details([task], db))[0]

    @staticmethod
    async def update(task_id: int, data: TaskUpdate, auth: Auth, db: AsyncSession):
        task = await TaskService.get_by_id(task_id, db)

        update_data = data.model_dump(exclude_unset=True)
        if "title" in update_data and not update_data["title"]:
            raise ErrTaskCannotBeEmpty(task_id=task_id)
        update_data = {
            field: value
            for field, value in update_data.items()
            if value is not None or field in CLEARABLE_FIELDS
        }

        new_list_id = update_data.pop("list_id", None)
        bucket_id = update_data.pop("bucket_id", None)

        if new_list_id is not None and new_list_id != task.list_id:
            todo_list = await ListService.get_simple_by_id(new_list_id, db)
            task.index = await TaskService._next_index(todo_list.id, db)
            task.list_id = todo_list.id
            if bucket_id is None:
                bucket = await TaskService._default_bucket(
                    todo_list.id, TaskService.creator_id(auth), db
                )
                task.bucket_id = bucket.id

        if bucket_id is not None:
            bucket = await TaskService._check_bucket(bucket_id, task.list_id, db)
            task.bucket_id = bucket.id

        if "done" in update_data and update_data["done"] != task.done:
            task.done_at = get_utc_now() if update_data["done"] else None

        task.sqlmodel_update(update_data)
        task.touch()
        await db.commit()
        await db.refresh(task)
        return (await TaskService.add_details([task], db))[0]

    @staticmethod
    async def delete(task_id: int, db: AsyncSession):
        task = await TaskService.get_by_id(task_id, db)
        assignees = await db.exec(
            select(TaskAssignee).where(TaskAssignee.task_id == task.id)
        )
        for assignee in assignees.all():
            await db.delete(assignee)
        await db.flush()
        await db.delete(task)
        await db.commit()

        await metrics.update_count(-1, metrics.TASK_COUNT_KEY)

    @staticmethod
    def _readable_list_ids(auth: Auth):
        """Non-archived lists the principal can read, as a subquery"""
        if isinstance(auth, LinkSharing):
            return select(TodoList.id).where(TodoList.id == auth.list_id)

        archived_namespaces = select(Namespace.id).where(
            col(Namespace.is_archived).is_(True)
        )
        return select(TodoList.id).where(
            permissions.accessible_lists_condition(auth.id),
            col(TodoList.is_archived).is_(False),
            col(TodoList.namespace_id).not_in(archived_namespaces),
        )

    @staticmethod
    async def collection(
        list_id: int,
        auth: Auth,
        db: AsyncSession,
        task_filter: TaskFilter | None = None,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[TaskResponse], int, int]:
        """
        Tasks of a list, sorted, filtered and paginated.

        A list id of 0 means every list the principal can read. The favorites
        pseudo list holds the favorite tasks of all those lists and a saved
        filter pseudo list applies the stored filter to them instead of the
        one passed in.
        """
        task_filter = task_filter or TaskFilter()
        query = select(Task)

        filter_id = get_saved_filter_id_from_list_id(list_id)
        if list_id == FAVORITES_PSEUDO_LIST_ID:
            if isinstance(auth, LinkSharing):
                raise ErrGenericForbidden()
            query = query.where(
                col(Task.list_id).in_(TaskService._readable_list_ids(auth)),
                col(Task.is_favorite).is_(True),
            )
        elif filter_id > 0:
            saved_filter = await SavedFilterService.get_by_id(filter_id, db)
            task_filter = SavedFilterService.task_filter(saved_filter)
            query = query.where(
                col(Task.list_id).in_(TaskService._readable_list_ids(auth))
            )
        elif list_id == 0:
            query = query.where(
                col(Task.list_id).in_(TaskService._readable_list_ids(auth))
            )
        else:
            todo_list = await ListService.get_simple_by_id(list_id, db)
            query = query.where(Task.list_id == todo_list.id)

        condition = build_filter_condition(task_filter)
        if condition is not None:
            query = query.where(condition)
        if search:
            query = query.where(col(Task.title).contains(search))

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(*build_order_by(task_filter))
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        tasks = (await db.exec(query)).all()

        responses = await TaskService.add_details(tasks, db)
        return responses, len(responses), total

    # Rights

    @staticmethod
    async def can_create(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await ListService.can_write(list_id, auth, db)

    @staticmethod
    async def can_read(task_id: int, auth: Auth, db: AsyncSession) -> bool:
        task = await TaskService.get_by_id(task_id, db)
        can_read, _ = await ListService.can_read(task.list_id, auth, db)
        return can_read

    @staticmethod
    async def can_update(
        task_id: int, data: TaskUpdate, auth: Auth, db: AsyncSession
    ) -> bool:
        task = await TaskService.get_by_id(task_id, db)
        if not await ListService.can_write(task.list_id, auth, db):
            return False
        # Moving a task needs write access to the target list as well
        if data.list_id is not None and data.list_id != task.list_id:
            return await ListService.can_write(data.list_id, auth, db)
        return True

    @staticmethod
    async def can_delete(task_id: int, auth: Auth, db: AsyncSession) -> bool:
        task = await TaskService.get_by_id(task_id, db)
        return await ListService.can_write(task.list_id, auth, db)
