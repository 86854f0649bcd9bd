# modules/team/service.py
"""
Liste de l'équipe : profils triés par nom + nombre de visites de chacun.
"""
import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UpstreamStoreError
from app.modules.team.repository import TeamRepository

logger = logging.getLogger(__name__)

repo = TeamRepository()


class TeamService:

    async def list_members(self, db: AsyncSession) -> Dict[str, List[Dict[str, Any]]]:
        try:
            profiles = await repo.get_profiles(db)
        except SQLAlchemyError as e:
            logger.error("Erreur lors de la récupération de l'équipe", extra={"error": str(e)})
            raise UpstreamStoreError("Impossible de récupérer les membres de l'équipe.") from e

        try:
            counts = await repo.count_visits_by_commercial(db)
        except SQLAlchemyError as e:
            logger.error(
                "Erreur lors de la récupération des visites pour le calcul équipe",
                extra={"error": str(e)},
            )
            raise UpstreamStoreError("Impossible de récupérer les visites pour l'équipe.") from e

        return {
            "data": [
                {
                    "id": str(p.id),
                    "email": p.email,
                    "nom": p.nom,
                    "prenom": p.prenom,
                    "role": p.role,
                    "telephone": p.telephone,
                    "total_visites": counts.get(str(p.id), 0),
                }
                for p in profiles
            ]
        }
