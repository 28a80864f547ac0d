import pytest

from todo_api.core.errors import ErrBucketDoesNotExist, ErrCannotRemoveLastBucket
from todo_api.models.bucket import Bucket, BucketCreate, BucketUpdate
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.task import Task
from todo_api.models.user import User
from todo_api.services.bucket_service import BucketService


class TestBucketService:
    """Test kanban buckets"""

    @pytest.mark.asyncio
    async def test_read_all_groups_tasks(self, db):
        buckets = await BucketService.read_all(1, db)

        assert [b.id for b in buckets] == [1, 10]
        assert [t.id for t in buckets[0].tasks] == [1, 3]
        assert [t.id for t in buckets[1].tasks] == [2]
        assert buckets[0].created_by.username == "user1"

    @pytest.mark.asyncio
    async def test_create(self, db):
        bucket = await BucketService.create(
            1, BucketCreate(title="Doing"), await db.get(User, 1), db
        )

        assert bucket.list_id == 1
        assert bucket.tasks == []

    @pytest.mark.asyncio
    async def test_update(self, db):
        bucket = await BucketService.update(10, BucketUpdate(title="Finished"), db)

        assert bucket.title == "Finished"

    @pytest.mark.asyncio
    async def test_delete_moves_tasks(self, db):
        await BucketService.delete(10, db)

        assert await db.get(Bucket, 10) is None
        task = await db.get(Task, 2)
        assert task.bucket_id == 1

    @pytest.mark.asyncio
    async def test_delete_last_bucket(self, db):
        with pytest.raises(ErrCannotRemoveLastBucket):
            await BucketService.delete(2, db)

    @pytest.mark.asyncio
    async def test_nonexistent(self, db):
        with pytest.raises(ErrBucketDoesNotExist):
            await BucketService.update(9999, BucketUpdate(title="x"), db)

    @pytest.mark.asyncio
    async def test_rights(self, db):
        user = await db.get(User, 1)
        read_share = await db.get(LinkSharing, 1)

        assert await BucketService.can_read(3, user, db)
        assert not await BucketService.can_create(3, user, db)
        assert await BucketService.can_update(10, user, db)
        assert await BucketService.can_read(1, read_share, db)
        assert not await BucketService.can_delete(10, read_share, db)


class TestBucketAPI:
    """Test the bucket endpoints"""

    @pytest.mark.asyncio
    async def test_get_buckets(self, client, user1_headers):
        response = await client.get("/api/v1/lists/1/buckets", headers=user1_headers)

        assert response.status_code == 200
        assert [b["title"] for b in response.json()] == ["Backlog", "Done"]

    @pytest.mark.asyncio
    async def test_create_bucket_with_empty_title(self, client, user1_headers):
        response = await client.post(
            "/api/v1/lists/1/buckets", json={"title": ""}, headers=user1_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_bucket_of_other_list(self, client, user1_headers):
        response = await client.patch(
            "/api/v1/lists/2/buckets/10", json={"title": "x"}, headers=user1_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == 10002

    @pytest.mark.asyncio
    async def test_delete_last_bucket(self, client, user1_headers):
        response = await client.delete("/api/v1/lists/2/buckets/2", headers=user1_headers)

        assert response.status_code == 412
        assert response.json()["code"] == 10003
