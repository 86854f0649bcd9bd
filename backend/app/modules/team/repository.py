# modules/team/repository.py
from typing import Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Profile, Visite


class TeamRepository:

    async def get_profiles(self, db: AsyncSession) -> List[Profile]:
        r = await db.execute(select(Profile).order_by(Profile.nom.asc()))
        return list(r.scalars().all())

    async def count_visits_by_commercial(self, db: AsyncSession) -> Dict[str, int]:
        r = await db.execute(
            select(Visite.commercial_id, func.count(Visite.id))
            .where(Visite.commercial_id.is_not(None))
            .group_by(Visite.commercial_id)
        )
        return {str(commercial_id): count for commercial_id, count in r.all()}
