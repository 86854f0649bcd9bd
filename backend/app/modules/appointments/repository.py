# modules/appointments/repository.py
"""
Accès DB pour les rendez-vous et le sweep des rappels.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.models import Profile, RendezVous, Visite


class RendezVousRepository:

    async def create(self, db: AsyncSession, data: Dict[str, Any]) -> RendezVous:
        db_obj = RendezVous(**data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def list_filtered(
        self,
        db: AsyncSession,
        commercial_id: Optional[str] = None,
        visite_id: Optional[str] = None,
        statut: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[RendezVous]:
        query = select(RendezVous)
        if commercial_id:
            query = query.where(RendezVous.commercial_id == commercial_id)
        if visite_id:
            query = query.where(RendezVous.visite_id == visite_id)
        if statut:
            query = query.where(RendezVous.statut == statut)
        if start:
            query = query.where(RendezVous.date_rdv >= start)
        if end:
            query = query.where(RendezVous.date_rdv <= end)
        r = await db.execute(query.order_by(RendezVous.date_rdv.asc()))
        return list(r.scalars().all())

    # ── Visites / profils liés ───────────────────────────────

    async def get_visite(self, db: AsyncSession, visite_id: str) -> Optional[Visite]:
        r = await db.execute(select(Visite).where(Visite.id == visite_id))
        return r.scalar_one_or_none()

    async def get_visites_by_ids(self, db: AsyncSession, visite_ids: Sequence[str]) -> List[Visite]:
        if not visite_ids:
            return []
        r = await db.execute(select(Visite).where(Visite.id.in_(list(visite_ids))))
        return list(r.scalars().all())

    async def get_profiles_by_ids(self, db: AsyncSession, profile_ids: Sequence[str]) -> List[Profile]:
        if not profile_ids:
            return []
        r = await db.execute(select(Profile).where(Profile.id.in_(list(profile_ids))))
        return list(r.scalars().all())

    # ── Rappels ──────────────────────────────────────────────

    async def get_due_reminders(
        self, db: AsyncSession, window_start: datetime, window_end: datetime
    ) -> List[RendezVous]:
        """rappel_envoye = false ET window_start ≤ rappel_date ≤ window_end."""
        r = await db.execute(
            select(RendezVous).where(
                RendezVous.rappel_envoye.is_(False),
                RendezVous.rappel_date.is_not(None),
                RendezVous.rappel_date >= window_start,
                RendezVous.rappel_date <= window_end,
            )
        )
        return list(r.scalars().all())

    async def mark_reminders_sent(self, db: AsyncSession, rdv_ids: Sequence[str]) -> None:
        """Un seul UPDATE groupé. Ne repasse jamais une ligne à False."""
        await db.execute(
            update(RendezVous)
            .where(RendezVous.id.in_(list(rdv_ids)))
            .values(rappel_envoye=True)
        )
        await db.commit()
