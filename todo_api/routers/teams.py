from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api.core.auth import AuthDep, check_right
from todo_api.core.pagination import PageDep
from todo_api.database import get_db
from todo_api.models.team import (
    TeamCreate,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
)
from todo_api.services.team_service import TeamService

router = APIRouter(prefix="/api/v1/teams", tags=["teams"])


@router.get("", response_model=list[TeamResponse])
async def get_teams(
    response: Response,
    auth: AuthDep,
    params: PageDep,
    db: AsyncSession = Depends(get_db),
):
    """Teams the user is a member of"""
    teams, count, total = await TeamService.read_all(
        auth, db, params.search, params.page, params.per_page
    )
    params.set_headers(response, total, count)
    return teams


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(data: TeamCreate, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    check_right(await TeamService.can_create(auth, db))
    return await TeamService.create(data, auth, db)


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(team_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    check_right(await TeamService.can_read(team_id, auth, db))
    return await TeamService.read_one(team_id, db)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: int, data: TeamUpdate, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await TeamService.can_update(team_id, auth, db))
    return await TeamService.update(team_id, data, db)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(team_id: int, auth: AuthDep, db: AsyncSession = Depends(get_db)):
    check_right(await TeamService.can_delete(team_id, auth, db))
    await TeamService.delete(team_id, db)


@router.post(
    "/{team_id}/members",
    response_model=TeamMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_team_member(
    team_id: int,
    data: TeamMemberCreate,
    auth: AuthDep,
    db: AsyncSession = Depends(get_db),
):
    check_right(await TeamService.is_admin(team_id, auth, db))
    return await TeamService.add_member(team_id, data, db)


@router.delete("/{team_id}/members/{username}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team_member(
    team_id: int, username: str, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    check_right(await TeamService.is_admin(team_id, auth, db))
    await TeamService.delete_member(team_id, username, db)


@router.post("/{team_id}/members/{username}/admin")
async def toggle_team_member_admin(
    team_id: int, username: str, auth: AuthDep, db: AsyncSession = Depends(get_db)
):
    """Toggle the admin flag of a member, whatever was there before"""
    check_right(await TeamService.is_admin(team_id, auth, db))
    admin = await TeamService.toggle_member_admin(team_id, username, db)
    return {"admin": admin}
