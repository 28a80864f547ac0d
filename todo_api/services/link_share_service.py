from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.config import get_settings
from todo_api.core.errors import (
    ErrInvalidRight,
    ErrInvalidSharingType,
    ErrLinkSharePasswordInvalid,
    ErrLinkSharePasswordRequired,
    ErrLinkSharingDisabled,
    ErrListShareDoesNotExist,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.core.security import (
    hash_password,
    make_random_string,
    new_link_share_token,
    verify_password,
)
from todo_api.models.auth import Auth
from todo_api.models.common import Right
from todo_api.models.link_sharing import (
    LinkShareToken,
    LinkSharing,
    LinkSharingCreate,
    LinkSharingResponse,
    SharingType,
)
from todo_api.models.user import UserResponse
from todo_api.services.list_service import ListService
from todo_api.services.user_service import UserService

HASH_LENGTH = 40


def check_link_sharing_enabled():
    if not get_settings().enable_link_sharing:
        raise ErrLinkSharingDisabled()


class LinkShareService:
    @staticmethod
    async def get_by_id(share_id: int, db: AsyncSession) -> LinkSharing:
        share = await db.get(LinkSharing, share_id) if share_id > 0 else None
        if not share:
            raise ErrListShareDoesNotExist(share_id=share_id)
        return share

    @staticmethod
    async def get_by_hash(hash: str, db: AsyncSession) -> LinkSharing:
        result = await db.exec(select(LinkSharing).where(LinkSharing.hash == hash))
        share = result.first()
        if not share:
            raise ErrListShareDoesNotExist(hash=hash)
        return share

    @staticmethod
    async def _get_in_list(list_id: int, share_id: int, db: AsyncSession) -> LinkSharing:
        share = await LinkShareService.get_by_id(share_id, db)
        if share.list_id != list_id:
            raise ErrListShareDoesNotExist(share_id=share_id, list_id=list_id)
        return share

    @staticmethod
    async def add_details(shares, db: AsyncSession) -> list[LinkSharingResponse]:
        sharers = await UserService.get_users_by_ids({s.shared_by_id for s in shares}, db)
        responses = []
        for share in shares:
            response = LinkSharingResponse.model_validate(share)
            sharer = sharers.get(share.shared_by_id)
            if sharer is not None:
                response.shared_by = UserResponse.model_validate(sharer)
            responses.append(response)
        return responses

    @staticmethod
    async def create(
        list_id: int, data: LinkSharingCreate, auth: Auth, db: AsyncSession
    ) -> LinkSharingResponse:
        check_link_sharing_enabled()

        if not Right.is_valid(data.right):
            raise ErrInvalidRight(right=data.right)
        if data.sharing_type not in (SharingType.WITHOUT_PASSWORD, SharingType.WITH_PASSWORD):
            raise ErrInvalidSharingType(sharing_type=data.sharing_type)
        if data.sharing_type == SharingType.WITH_PASSWORD and not data.password:
            raise ErrLinkSharePasswordRequired()

        todo_list = await ListService.get_simple_by_id(list_id, db)
        doer = await UserService.get_from_auth(auth, db)

        share = LinkSharing(
            hash=make_random_string(HASH_LENGTH),
            list_id=todo_list.id,
            right=data.right,
            sharing_type=data.sharing_type,
            shared_by_id=doer.id,
        )
        if data.sharing_type == SharingType.WITH_PASSWORD:
            share.password = hash_password(data.password)

        db.add(share)
        await db.commit()
        await db.refresh(share)
        return (await LinkShareService.add_details([share], db))[0]

    @staticmethod
    async def read_one(list_id: int, share_id: int, db: AsyncSession) -> LinkSharingResponse:
        share = await LinkShareService._get_in_list(list_id, share_id, db)
        return (await LinkShareService.add_details([share], db))[0]

    @staticmethod
    async def read_all(
        list_id: int,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[LinkSharingResponse], int, int]:
        todo_list = await ListService.get_simple_by_id(list_id, db)

        query = select(LinkSharing).where(LinkSharing.list_id == todo_list.id)
        if search:
            query = query.where(col(LinkSharing.hash).contains(search))

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(LinkSharing.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        shares = await LinkShareService.add_details((await db.exec(query)).all(), db)
        return shares, len(shares), total

    @staticmethod
    async def delete(list_id: int, share_id: int, db: AsyncSession):
        share = await LinkShareService._get_in_list(list_id, share_id, db)
        await db.delete(share)
        await db.commit()

    @staticmethod
    async def authenticate(hash: str, password: str, db: AsyncSession) -> LinkShareToken:
        """Exchange a share hash (and its password, if it has one) for a token"""
        check_link_sharing_enabled()

        share = await LinkShareService.get_by_hash(hash, db)
        if share.sharing_type == SharingType.WITH_PASSWORD:
            if not password:
                raise ErrLinkSharePasswordRequired(share_id=share.id)
            if not verify_password(password, share.password):
                raise ErrLinkSharePasswordInvalid(share_id=share.id)

        return LinkShareToken(token=new_link_share_token(share), list_id=share.list_id)

    # Rights: a link share principal can never manage link shares

    @staticmethod
    async def can_read(list_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            return False
        can_read, _ = await ListService.can_read(list_id, auth, db)
        return can_read

    @staticmethod
    async def can_create(
        list_id: int, right: int, auth: Auth, db: AsyncSession
    ) -> bool:
        if isinstance(auth, LinkSharing):
            return False
        await ListService.get_simple_by_id(list_id, db)
        # Handing out admin links needs admin access to the list itself
        if right == Right.ADMIN:
            return await ListService.is_admin(list_id, auth, db)
        return await ListService.can_write(list_id, auth, db)

    @staticmethod
    async def can_delete(
        list_id: int, share_id: int, auth: Auth, db: AsyncSession
    ) -> bool:
        share = await LinkShareService._get_in_list(list_id, share_id, db)
        return await LinkShareService.can_create(list_id, share.right, auth, db)
