# modules/team/router.py
from fastapi import APIRouter

from app.modules.team.schemas import EquipeOut
from app.modules.team.service import TeamService
from app.shared.deps import DbDep, UserDep

router = APIRouter(prefix="/team", tags=["Team"])
service = TeamService()


@router.get("", response_model=EquipeOut)
async def list_team(db: DbDep, current_user: UserDep):
    """Membres de l'équipe avec leur total de visites."""
    return await service.list_members(db)
