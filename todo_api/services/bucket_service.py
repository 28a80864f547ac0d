from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.errors import ErrBucketDoesNotExist, ErrCannotRemoveLastBucket
from todo_api.models.auth import Auth
from todo_api.models.bucket import Bucket, BucketCreate, BucketResponse, BucketUpdate
from todo_api.models.task import Task
from todo_api.models.user import UserResponse
from todo_api.services.list_service import ListService
from todo_api.services.task_service import TaskService
from todo_api.services.user_service import UserService


class BucketService:
    @staticmethod
    async def get_by_id(bucket_id: int, db: AsyncSession) -> Bucket:
        bucket = await db.get(Bucket, bucket_id) if bucket_id > 0 else None
        if not bucket:
            raise ErrBucketDoesNotExist(bucket_id=bucket_id)
        return bucket

    @staticmethod
    async def _to_response(bucket: Bucket, db: AsyncSession, tasks=()) -> BucketResponse:
        response = BucketResponse.model_validate(bucket)
        creators = await UserService.get_users_by_ids([bucket.created_by_id], db)
        creator = creators.get(bucket.created_by_id)
        if creator is not None:
            response.created_by = UserResponse.model_validate(creator)
        response.tasks = list(tasks)
        return response

    @staticmethod
    async def read_all(list_id: int, db: AsyncSession) -> list[BucketResponse]:
        """All buckets of a list, each with its tasks"""
        todo_list = await ListService.get_simple_by_id(list_id, db)

        buckets = (
            await db.exec(
                select(Bucket).where(Bucket.list_id == todo_list.id).order_by(Bucket.id)
            )
        ).all()
        tasks = (
            await db.exec(
                select(Task)
                .where(Task.list_id == todo_list.id)
                .order_by(col(Task.position).asc(), col(Task.id).asc())
            )
        ).all()

        by_bucket: dict[int, list] = {}
        for task in await TaskService.add_details(tasks, db):
            by_bucket.setdefault(task.bucket_id, []).append(task)

        return [
            await BucketService._to_response(b, db, by_bucket.get(b.id, []))
            for b in buckets
        ]

    @staticmethod
    async def create(
        list_id: int, data: BucketCreate, auth: Auth, db: AsyncSession
    ) -> BucketResponse:
        todo_list = await ListService.get_simple_by_id(list_id, db)
        bucket = Bucket(
            title=data.title,
            list_id=todo_list.id,
            created_by_id=TaskService.creator_id(auth),
        )
        db.add(bucket)
        await db.commit()
        await db.refresh(bucket)
        return await BucketService._to_response(bucket, db)

    @staticmethod
    async def update(bucket_id: int, data: BucketUpdate, db: AsyncSession) -> BucketResponse:
        bucket = await BucketService.get_by_id(bucket_id, db)
        bucket.title = data.title
        bucket.touch()
        await db.commit()
        await db.refresh(bucket)
        return await BucketService._to_response(bucket, db)

    @staticmethod
    async def delete(bucket_id: int, db: AsyncSession):
        bucket = await BucketService.get_by_id(bucket_id, db)

        count = (
            await db.exec(
                select(func.count())
                .select_from(Bucket)
                .where(Bucket.list_id == bucket.list_id)
            )
        ).one()
        if count <= 1:
            raise ErrCannotRemoveLastBucket(bucket_id=bucket_id, list_id=bucket.list_id)

        # Tasks of the removed bucket move to the first remaining one
        remaining = (
            await db.exec(
                select(Bucket)
                .where(Bucket.list_id == bucket.list_id, Bucket.id != bucket.id)
                .order_by(Bucket.id)
            )
        ).first()
        tasks = await db.exec(select(Task).where(Task.bucket_id == bucket.id))
        for task in tasks.all():
            task.bucket_id = remaining.id

        await db.delete(bucket)
        await db.commit()

    # Rights

    @staticmethod
    async def can_create(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        return await ListService.can_write(list_id, auth, db)

    @staticmethod
    async def can_read(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        can_read, _ = await ListService.can_read(list_id, auth, db)
        return can_read

    @staticmethod
    async def _can_do_bucket(bucket_id: int, auth: Auth, db: AsyncSession) -> bool:
        bucket = await BucketService.get_by_id(bucket_id, db)
        return await ListService.can_write(bucket.list_id, auth, db)

    can_update = _can_do_bucket
    can_delete = _can_do_bucket
