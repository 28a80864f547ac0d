from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.sharing import (
    ShareUpdate,
    TeamShareCreate,
    TeamShareResponse,
    TeamWithRight,
    UserShareCreate,
    UserShareResponse,
    UserWithRight,
)
from todo_api.services.sharing_service import (
    ListUserService,
    NamespaceUserService,
    TeamListService,
    TeamNamespaceService,
)

router = APIRouter(prefix="/api/v1", tags=["sharing"])


# Namespaces <-> teams


@router.get("/namespaces/{namespace_id}/teams", response_model=list[TeamWithRight])
async def get_namespace_teams(
    namespace_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamNamespaceService.can_read(namespace_id, auth, db))
    teams, count, total = await TeamNamespaceService.read_all(
        namespace_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return teams


@router.post(
    "/namespaces/{namespace_id}/teams",
    response_model=TeamShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_namespace_with_team(
    namespace_id: int,
    data: TeamShareCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamNamespaceService.can_manage(namespace_id, auth, db))
    return await TeamNamespaceService.create(namespace_id, data, db)


@router.patch(
    "/namespaces/{namespace_id}/teams/{team_id}", response_model=TeamShareResponse
)
async def update_namespace_team_share(
    namespace_id: int,
    team_id: int,
    data: ShareUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamNamespaceService.can_manage(namespace_id, auth, db))
    return await TeamNamespaceService.update(namespace_id, team_id, data, db)


@router.delete(
    "/namespaces/{namespace_id}/teams/{team_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_namespace_team_share(
    namespace_id: int, team_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await TeamNamespaceService.can_manage(namespace_id, auth, db))
    await TeamNamespaceService.delete(namespace_id, team_id, db)


# Namespaces <-> users


@router.get("/namespaces/{namespace_id}/users", response_model=list[UserWithRight])
async def get_namespace_users(
    namespace_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await NamespaceUserService.can_read(namespace_id, auth, db))
    users, count, total = await NamespaceUserService.read_all(
        namespace_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return users


@router.post(
    "/namespaces/{namespace_id}/users",
    response_model=UserShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_namespace_with_user(
    namespace_id: int,
    data: UserShareCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await NamespaceUserService.can_manage(namespace_id, auth, db))
    return await NamespaceUserService.create(namespace_id, data, db)


@router.patch(
    "/namespaces/{namespace_id}/users/{username}", response_model=UserShareResponse
)
async def update_namespace_user_share(
    namespace_id: int,
    username: str,
    data: ShareUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await NamespaceUserService.can_manage(namespace_id, auth, db))
    return await NamespaceUserService.update(namespace_id, username, data, db)


@router.delete(
    "/namespaces/{namespace_id}/users/{username}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_namespace_user_share(
    namespace_id: int, username: str, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await NamespaceUserService.can_manage(namespace_id, auth, db))
    await NamespaceUserService.delete(namespace_id, username, db)


# Lists <-> teams


@router.get("/lists/{list_id}/teams", response_model=list[TeamWithRight])
async def get_list_teams(
    list_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamListService.can_read(list_id, auth, db))
    teams, count, total = await TeamListService.read_all(
        list_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return teams


@router.post(
    "/lists/{list_id}/teams",
    response_model=TeamShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_list_with_team(
    list_id: int,
    data: TeamShareCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamListService.can_manage(list_id, auth, db))
    return await TeamListService.create(list_id, data, db)


@router.patch("/lists/{list_id}/teams/{team_id}", response_model=TeamShareResponse)
async def update_list_team_share(
    list_id: int,
    team_id: int,
    data: ShareUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamListService.can_manage(list_id, auth, db))
    return await TeamListService.update(list_id, team_id, data, db)


@router.delete(
    "/lists/{list_id}/teams/{team_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_list_team_share(
    list_id: int, team_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await TeamListService.can_manage(list_id, auth, db))
    await TeamListService.delete(list_id, team_id, db)


# Lists <-> users


@router.get("/lists/{list_id}/users", response_model=list[UserWithRight])
async def get_list_users(
    list_id: int,
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await ListUserService.can_read(list_id, auth, db))
    users, count, total = await ListUserService.read_all(
        list_id, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return users


@router.post(
    "/lists/{list_id}/users",
    response_model=UserShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_list_with_user(
    list_id: int,
    data: UserShareCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await ListUserService.can_manage(list_id, auth, db))
    return await ListUserService.create(list_id, data, db)


@router.patch("/lists/{list_id}/users/{username}", response_model=UserShareResponse)
async def update_list_user_share(
    list_id: int,
    username: str,
    data: ShareUpdate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await ListUserService.can_manage(list_id, auth, db))
    return await ListUserService.update(list_id, username, data, db)


@router.delete(
    "/lists/{list_id}/users/{username}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_list_user_share(
    list_id: int, username: str, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await ListUserService.can_manage(list_id, auth, db))
    await ListUserService.delete(list_id, username, db)
