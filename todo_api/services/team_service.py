from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from todo_api import metrics
from todo_api.core.errors import (
    ErrCannotDeleteLastTeamMember,
    ErrTeamDoesNotExist,
    ErrTeamNameCannotBeEmpty,
    ErrUserIsMemberOfTeam,
    ErrUserIsNotMemberOfTeam,
)
from todo_api.core.pagination import get_limit_from_page_index
from todo_api.models.auth import Auth
from todo_api.models.link_sharing import LinkSharing
from todo_api.models.sharing import TeamList, TeamNamespace
from todo_api.models.team import (
    Team,
    TeamCreate,
    TeamMember,
    TeamMemberCreate,
    TeamMemberResponse,
    TeamResponse,
    TeamUpdate,
    TeamUser,
)
from todo_api.models.user import User, UserResponse
from todo_api.services.user_service import UserService


class TeamService:
    @staticmethod
    async def get_by_id(team_id: int, db: AsyncSession) -> Team:
        team = await db.get(Team, team_id) if team_id > 0 else None
        if not team:
            raise ErrTeamDoesNotExist(team_id=team_id)
        return team

    @staticmethod
    async def add_details(teams, db: AsyncSession) -> list[TeamResponse]:
        """Responses carrying the creator and the members of each team"""
        if not teams:
            return []

        team_ids = [t.id for t in teams]
        result = await db.exec(
            select(TeamMember, User)
            .join(User, col(User.id) == TeamMember.user_id)
            .where(col(TeamMember.team_id).in_(team_ids))
            .order_by(TeamMember.id)
        )
        members: dict[int, list[TeamUser]] = {}
        for member, user in result.all():
            team_user = TeamUser.model_validate(user, update={"admin": member.admin})
            members.setdefault(member.team_id, []).append(team_user)

        creators = await UserService.get_users_by_ids(
            {t.created_by_id for t in teams}, db
        )

        responses = []
        for team in teams:
            response = TeamResponse.model_validate(team)
            creator = creators.get(team.created_by_id)
            if creator is not None:
                response.created_by = UserResponse.model_validate(creator)
            response.members = members.get(team.id, [])
            responses.append(response)
        return responses

    @staticmethod
    async def read_one(team_id: int, db: AsyncSession) -> TeamResponse:
        team = await TeamService.get_by_id(team_id, db)
        return (await TeamService.add_details([team], db))[0]

    @staticmethod
    async def read_all(
        auth: Auth,
        db: AsyncSession,
        search: str = "",
        page: int = -1,
        per_page: int = 0,
    ) -> tuple[list[TeamResponse], int, int]:
        """Teams the user is a member of"""
        doer = await UserService.get_from_auth(auth, db)

        member_of = select(TeamMember.team_id).where(TeamMember.user_id == doer.id)
        query = select(Team).where(col(Team.id).in_(member_of))
        if search:
            query = query.where(col(Team.name).contains(search))

        total = (
            await db.exec(select(func.count()).select_from(query.subquery()))
        ).one()

        query = query.order_by(Team.id)
        limit, start = get_limit_from_page_index(page, per_page)
        if limit > 0:
            query = query.offset(start).limit(limit)
        teams = await TeamService.add_details((await db.exec(query)).all(), db)
        return teams, len(teams), total

    @staticmethod
    async def create(data: TeamCreate, auth: Auth, db: AsyncSession) -> TeamResponse:
        if not data.name:
            raise ErrTeamNameCannotBeEmpty()

        doer = await UserService.get_from_auth(auth, db)
        team = Team.model_validate(data, update={"created_by_id": doer.id})
        db.add(team)
        await db.flush()

        # The creator is the first admin of the team
        db.add(TeamMember(team_id=team.id, user_id=doer.id, admin=True))
        await db.commit()
        await db.refresh(team)

        await metrics.update_count(1, metrics.TEAM_COUNT_KEY)
        return (await TeamService.add_details([team], db))[0]

    @staticmethod
    async def update(team_id: int, data: TeamUpdate, db: AsyncSession) -> TeamResponse:
        update_data = data.model_dump(exclude_unset=True)
        if "name" in update_data and not update_data["name"]:
            raise ErrTeamNameCannotBeEmpty(team_id=team_id)

        team = await TeamService.get_by_id(team_id, db)
        team.sqlmodel_update(update_data)
        team.touch()
        await db.commit()
        await db.refresh(team)
        return (await TeamService.add_details([team], db))[0]

    @staticmethod
    async def delete(team_id: int, db: AsyncSession):
        team = await TeamService.get_by_id(team_id, db)

        for model in (TeamMember, TeamNamespace, TeamList):
            rows = await db.exec(select(model).where(model.team_id == team.id))
            for row in rows.all():
                await db.delete(row)

        await db.flush()
        await db.delete(team)
        await db.commit()

        await metrics.update_count(-1, metrics.TEAM_COUNT_KEY)

    # Members

    @staticmethod
    async def _get_member(team_id: int, user_id: int, db: AsyncSession) -> TeamMember | None:
        result = await db.exec(
            select(TeamMember).where(
                TeamMember.team_id == team_id, TeamMember.user_id == user_id
            )
        )
        return result.first()

    @staticmethod
    async def add_member(
        team_id: int, data: TeamMemberCreate, db: AsyncSession
    ) -> TeamMemberResponse:
        team = await TeamService.get_by_id(team_id, db)
        user = await UserService.get_user_by_username(data.username, db)

        if await TeamService._get_member(team.id, user.id, db):
            raise ErrUserIsMemberOfTeam(team_id=team.id, user_id=user.id)

        member = TeamMember(team_id=team.id, user_id=user.id, admin=data.admin)
        db.add(member)
        await db.commit()
        await db.refresh(member)
        return TeamMemberResponse(
            id=member.id,
            team_id=team.id,
            username=user.username,
            admin=member.admin,
            created_at=member.created_at,
        )

    @staticmethod
    async def delete_member(team_id: int, username: str, db: AsyncSession):
        user = await UserService.get_user_by_username(username, db)
        member = await TeamService._get_member(team_id, user.id, db)
        if member is None:
            raise ErrUserIsNotMemberOfTeam(team_id=team_id, user_id=user.id)

        members = (
            await db.exec(
                select(func.count())
                .select_from(TeamMember)
                .where(TeamMember.team_id == team_id)
            )
        ).one()
        if members == 1:
            raise ErrCannotDeleteLastTeamMember(team_id=team_id, user_id=user.id)

        await db.delete(member)
        await db.commit()

    @staticmethod
    async def toggle_member_admin(team_id: int, username: str, db: AsyncSession) -> bool:
        """Flip the admin flag of a member and return the new value"""
        user = await UserService.get_user_by_username(username, db)
        member = await TeamService._get_member(team_id, user.id, db)
        if member is None:
            raise ErrUserIsNotMemberOfTeam(team_id=team_id, user_id=user.id)

        member.admin = not member.admin
        await db.commit()
        return member.admin

    # Rights

    @staticmethod
    async def can_create(auth: Auth, db: AsyncSession) -> bool:
        return not isinstance(auth, LinkSharing)

    @staticmethod
    async def can_read(team_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            return False
        team = await TeamService.get_by_id(team_id, db)
        return await TeamService._get_member(team.id, auth.id, db) is not None

    @staticmethod
    async def is_admin(team_id: int, auth: Auth, db: AsyncSession) -> bool:
        if isinstance(auth, LinkSharing):
            return False
        team = await TeamService.get_by_id(team_id, db)
        member = await TeamService._get_member(team.id, auth.id, db)
        return member is not None and member.admin

    can_update = is_admin
    can_delete = is_admin
